"""
Structured Logging Configuration
structlog for engine events; python-json-logger when logs are shipped as JSON.
"""

import logging
import sys
from typing import Any

import structlog
from pythonjsonlogger import jsonlogger

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Third-party loggers that are chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def _handler(json_logs: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if json_logs:
        handler.setFormatter(jsonlogger.JsonFormatter(JSON_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def configure_logging(level: str | None = None, json_logs: bool | None = None) -> None:
    """
    Configure structured logging for the engine.

    Args:
        level: Log level name; defaults to ``Settings.log_level``
        json_logs: JSON output; defaults to ``Settings.json_logs``
    """
    if level is None or json_logs is None:
        from .config import get_settings

        settings = get_settings()
        level = level or settings.log_level
        json_logs = settings.json_logs if json_logs is None else json_logs

    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=log_level, handlers=[_handler(json_logs)], force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Structured logger for a module (pass ``__name__``)."""
    return structlog.get_logger(name)


class LogContext:
    """
    Bind render identifiers to every log line in scope.

    Used around a render pass with the session and generation ids. Fields
    set to None are skipped; on exit the previous values of the bound keys
    are restored, so nested passes do not clobber each other.
    """

    def __init__(self, **fields: Any):
        self.fields = {k: v for k, v in fields.items() if v is not None}
        self._bound: Any = None

    def __enter__(self) -> "LogContext":
        self._bound = structlog.contextvars.bound_contextvars(**self.fields)
        self._bound.__enter__()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._bound.__exit__(*exc)
