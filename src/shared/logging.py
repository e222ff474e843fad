"""Logging for the API server and the management CLI.

Both entry points call ``configure_logging(settings)`` once at start-up, so
level, log directory and output format always come from the same
``Settings``. Records go to stdout plus two rotating files under
``settings.log_dir``: ``orderdesk.log`` (everything at the configured level)
and ``orderdesk_error.log`` (errors only). Production and staging render JSON
lines; other environments get coloured console output with rich tracebacks.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from shared.config import Settings

LOG_FILE_PREFIX = "orderdesk"
_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def _rotating_handler(path: Path, level) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        filename=path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8"
    )
    handler.setLevel(level)
    return handler


def _install_handlers(level: str, log_dir: Path) -> None:
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers = [
        logging.StreamHandler(sys.stdout),
        _rotating_handler(log_dir / f"{LOG_FILE_PREFIX}.log", level),
        _rotating_handler(log_dir / f"{LOG_FILE_PREFIX}_error.log", logging.ERROR),
    ]
    root.setLevel(level)

    # SQL statements are echoed only through SQL_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def _renderer(json_logs: bool) -> list:
    if json_logs:
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
        )
    ]


def configure_logging(settings: Settings | None = None) -> None:
    """Route stdlib and structlog output according to ``settings``."""
    settings = settings or Settings.from_env()
    _install_handlers(settings.log_level, Path(settings.log_dir))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            *_renderer(settings.json_logs),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def add_context(**kwargs: Any) -> None:
    """Bind values to every log line emitted from the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
