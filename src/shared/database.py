"""Relational store access: declarative base, engine setup and unit of work.

Every aggregate table hangs off the same ``Base.metadata``. A unit of work is
one database transaction: it commits when the block exits normally and rolls
back on any exception, so callers never observe partial effects.
"""

import importlib
from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from shared.config import Settings
from shared.errors import DuplicateKeyError

logger = structlog.get_logger(__name__)

# Modules that declare mapped classes; imported before schema creation so
# that every table is registered on the metadata.
MODEL_MODULES = (
    "identity.user.user",
    "catalogue.category.category",
    "catalogue.product.product",
    "ordering.order.order",
)


class Base(DeclarativeBase):
    pass


def load_models() -> None:
    for module in MODEL_MODULES:
        importlib.import_module(module)


def _configure_sqlite_connection(dbapi_connection, connection_record):  # noqa: ARG001
    # Let SQLAlchemy emit BEGIN itself (see _begin_immediate)
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_immediate(conn):
    # Take the write lock up front: concurrent writers then queue on the busy
    # timeout instead of failing when they upgrade a shared lock.
    conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> Engine:
    if make_url(url).get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"timeout": 30, "check_same_thread": False},
        )
        event.listen(engine, "connect", _configure_sqlite_connection)
        event.listen(engine, "begin", _begin_immediate)
        return engine

    return create_engine(url, echo=echo, pool_pre_ping=True)


class Database:
    """Engine plus session factory for one relational store."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.engine = build_engine(url, echo=echo)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(settings.database_url, echo=settings.sql_echo)

    @contextmanager
    def unit_of_work(self) -> Iterator[Session]:
        """Open a session wrapped in a single transaction."""
        with self._session_factory() as session, session.begin():
            yield session

    def create_all(self) -> None:
        load_models()
        Base.metadata.create_all(self.engine)
        logger.info("Database schema created", url=self.engine.url.render_as_string(hide_password=True))

    def drop_all(self) -> None:
        load_models()
        Base.metadata.drop_all(self.engine)
        logger.info("Database schema dropped", url=self.engine.url.render_as_string(hide_password=True))

    def dispose(self) -> None:
        self.engine.dispose()


def duplicate_key_from(exc: IntegrityError, **candidates) -> DuplicateKeyError | None:
    """Translate a unique-constraint violation into a ``DuplicateKeyError``.

    ``candidates`` maps column names to the values that were being written.
    Returns ``None`` when the violation is not a unique constraint on one of
    them, in which case the caller should let the original error propagate.
    """
    message = str(exc.orig).lower()
    if "unique" not in message and "duplicate" not in message:
        return None

    for field, value in candidates.items():
        if field in message:
            return DuplicateKeyError(field, value)
    return None
