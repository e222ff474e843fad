"""OrderDesk database management CLI.

Creates and drops the relational schema described by the mapped classes.
The target database comes from ``DATABASE_URL`` unless ``--database-url`` is
given.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys

import structlog

from shared.config import Settings
from shared.database import Database
from shared.logging import configure_logging

logger = structlog.get_logger(__name__)


def _database(database_url=None, settings: Settings | None = None) -> Database:
    settings = settings or Settings.from_env()
    if database_url:
        return Database(database_url, echo=settings.sql_echo)
    return Database.from_settings(settings)


def setup_database(database_url=None, settings: Settings | None = None):
    """Create every table that does not exist yet."""
    database = _database(database_url, settings)
    try:
        database.create_all()
    finally:
        database.dispose()


def drop_database(database_url=None, settings: Settings | None = None):
    """Drop every table."""
    database = _database(database_url, settings)
    try:
        database.drop_all()
    finally:
        database.dispose()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OrderDesk database management")
    parser.add_argument("--database-url", help="Override DATABASE_URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings)

    if args.command == "setup-db":
        setup_database(args.database_url, settings)
    elif args.command == "drop-db":
        drop_database(args.database_url, settings)
    else:
        logger.error("Unknown command", command=args.command)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
