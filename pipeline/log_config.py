"""Logging configuration.

JSON lines for deployed instances, rich console output for local runs.
The request middleware stores a request id in ``request_id_var`` so every
record emitted while handling a request carries it.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

SENSITIVE_FIELDS = ("token", "secret", "password", "authorization", "api_key")

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RECORD_ATTRS = set(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class RequestIdFilter(logging.Filter):
    """Attach the current request id to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", ""):
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """JSON log formatter with structured fields."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if request_id := getattr(record, "request_id", ""):
            log_data["request_id"] = request_id

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key == "request_id":
                continue
            if any(s in key.lower() for s in SENSITIVE_FIELDS):
                log_data[key] = "***MASKED***"
            else:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.levelno >= logging.ERROR:
            log_data["source"] = {
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Configure root logging.

    Args:
        level: Log level name
        fmt: "json" for structured output, "rich" for console output
    """
    if fmt == "rich":
        handler: logging.Handler = RichHandler(rich_tracebacks=True, show_path=False)
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers = [handler]

    # Reduce noise from common libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
