"""
Logging configuration
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Optional


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record, for log shippers
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    """
    Configure logging for the CLI and the API.

    Falls back to CINEMA_SEATING_LOG_LEVEL / CINEMA_SEATING_LOG_FORMAT.
    """
    level = (level or os.environ.get("CINEMA_SEATING_LOG_LEVEL", "INFO")).upper()
    fmt = fmt or os.environ.get("CINEMA_SEATING_LOG_FORMAT", "text")

    log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
            "json": {"()": JSONFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "json" if fmt == "json" else "default",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            "seat_layout": {"level": level, "handlers": ["console"], "propagate": False},
            "backend": {"level": level, "handlers": ["console"], "propagate": False},
        },
    }
    logging.config.dictConfig(log_config)
