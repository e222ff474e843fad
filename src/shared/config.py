"""Runtime configuration, read from environment variables."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}

# Default log level per environment; LOG_LEVEL overrides it
_LEVELS_BY_ENV = {
    "production": "INFO",
    "staging": "INFO",
    "development": "DEBUG",
    "test": "WARNING",
}


@dataclass(frozen=True)
class Settings:
    env: str = "development"
    database_url: str = "sqlite:///orderdesk.db"
    sql_echo: bool = False
    log_level: str = "DEBUG"
    log_dir: str = "logs"
    # Compare-and-swap attempts for a single stock row before giving up
    cas_attempts: int = 5
    # Whole-transaction attempts when an order row was changed underneath us
    transaction_attempts: int = 3
    order_number_attempts: int = 5

    @property
    def json_logs(self) -> bool:
        return self.env in ("production", "staging")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        environ = os.environ if environ is None else environ
        env = (
            environ.get("ORDERDESK_ENV") or environ.get("ENVIRONMENT") or environ.get("ENV") or cls.env
        ).lower()

        return cls(
            env=env,
            database_url=environ.get("DATABASE_URL", cls.database_url),
            sql_echo=environ.get("SQL_ECHO", "").lower() in _TRUTHY,
            log_level=environ.get("LOG_LEVEL", _LEVELS_BY_ENV.get(env, "INFO")).upper(),
            log_dir=environ.get("LOG_DIR", cls.log_dir),
            cas_attempts=int(environ.get("ORDERDESK_CAS_ATTEMPTS", cls.cas_attempts)),
            transaction_attempts=int(environ.get("ORDERDESK_TX_ATTEMPTS", cls.transaction_attempts)),
            order_number_attempts=int(environ.get("ORDERDESK_ORDER_NUMBER_ATTEMPTS", cls.order_number_attempts)),
        )
