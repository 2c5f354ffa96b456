"""
Logging setup for the console.

Human-readable lines during development, one JSON object per line in
production so the output can be shipped to a log aggregator.
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Optional

from staff_console.config import Settings, get_settings

_STANDARD_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
}


class JSONFormatter(logging.Formatter):
    """Structured formatter used when LOG_FORMAT is json"""

    def __init__(self, service_name: str = "staff-console", environment: str = "production"):
        super().__init__()
        self.service_name = service_name
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "environment": self.environment,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        # Fields passed through `extra=`
        extra_fields = {
            key: value for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Plain single-line formatter for development"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        message = f"{timestamp} | {record.levelname:8} | {record.name} | {record.getMessage()}"
        if record.exc_info:
            message += "\n" + traceback.format_exception(*record.exc_info)[-1].strip()
        return message


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Install a single stream handler on the package logger."""
    settings = settings or get_settings()

    if settings.LOG_FORMAT.lower() == "json":
        formatter: logging.Formatter = JSONFormatter(environment=settings.ENVIRONMENT)
    else:
        formatter = ConsoleFormatter()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    logger = logging.getLogger("staff_console")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL.upper())
    logger.propagate = False

    # httpx logs every request at INFO; the gateway logs its own calls at DEBUG
    logging.getLogger("httpx").setLevel(logging.WARNING)
