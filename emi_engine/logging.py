"""Logging setup for schedule runs.

Engine modules log through ``logging.getLogger(__name__)``; loan context
travels as ``extra=log_context(loan_id=...)`` and is merged into JSON
records by :class:`JsonFormatter`.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

STANDARD_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are noisy below WARNING
QUIET_LOGGERS = ("faker",)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with loan context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "extra", None)
        if isinstance(context, dict):
            payload.update(context)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        # Decimals and dates in the context are written as strings
        return json.dumps(payload, default=str)


def log_context(**fields: Any) -> dict[str, dict[str, Any]]:
    """Build the ``extra`` argument for a log call carrying loan context."""
    return {"extra": fields}


def setup_logging(level: str = "INFO", format_type: str = "standard") -> None:
    """Route all logging to stdout.

    Parameters
    ----------
    level : str
        Level name for the root and ``emi_engine`` loggers; unknown names
        fall back to INFO.
    format_type : str
        ``"standard"`` for a pipe-separated line, ``"json"`` for
        :class:`JsonFormatter`.
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    if format_type == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=STANDARD_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    logging.getLogger("emi_engine").setLevel(log_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
