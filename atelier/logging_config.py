"""
Logging setup for the review studio.

One stderr handler on the root logger: a short text line in development,
one JSON object per line in production. Every record carries the request
id bound by RequestIdMiddleware ("-" outside a request).

Usage:
    from atelier.logging_config import get_logger
    logger = get_logger(__name__)
    logger.error("Auto-unlock error", extra={"student_id": student_id})
"""

import json
import logging
import logging.config
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class RequestIdFilter(logging.Filter):
    """Stamp the current request id onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """Render a record and its extra= fields as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            payload["request_id"] = request_id
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        for key, value in vars(record).items():
            if key in _STANDARD_ATTRS or value is None:
                continue
            payload[key] = value

        return json.dumps(payload, default=str)


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """Install the root handler; safe to call again (replaces the previous setup)."""
    level = "DEBUG" if debug else log_level.upper()
    formatter = "json" if environment == "production" else "text"

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_id": {"()": RequestIdFilter}},
        "formatters": {
            "text": {
                "format": "%(asctime)s %(levelname)-5s [%(name)s] req=%(request_id)s %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "filters": ["request_id"],
                "formatter": formatter,
            },
        },
        "root": {"level": level, "handlers": ["stderr"]},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    })


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
