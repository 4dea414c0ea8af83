"""Logging configuration and setup."""

import json
import logging
import os
import sys
import traceback
import uuid
from datetime import datetime, timezone
from pathlib import Path

# Get log level from environment
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# File logging can be switched off (tests, read-only containers)
LOG_TO_FILE = os.getenv("LOG_TO_FILE", "true").lower() == "true"
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

# Session ID distinguishes multiple app starts on the same day
SESSION_ID = str(uuid.uuid4())[:8]

LOG_DATE = datetime.now(timezone.utc).strftime("%Y-%m-%d")
LOG_FILENAME = f"orders_{LOG_DATE}_{SESSION_ID}.log"

# Attributes passed via `extra=` that are copied into the JSON record
EXTRA_FIELDS = ("order_id", "order_ref", "shopify_id", "sync_type")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON (UTC timestamps)."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


# Configure root logger once
root_logger = logging.getLogger()
root_logger.setLevel(logging.DEBUG)

if not root_logger.handlers:
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    console_handler.setFormatter(JSONFormatter())
    root_logger.addHandler(console_handler)

    if LOG_TO_FILE:
        LOG_DIR.mkdir(exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / LOG_FILENAME)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

# SQL echo and HTTP client chatter stay at WARNING
for noisy in ("sqlalchemy.engine", "httpx", "httpcore", "aiosqlite"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


def setup_logger(name: str) -> logging.Logger:
    """Get logger for a module."""
    logger = logging.getLogger(name)
    logger.propagate = True
    return logger


logger = setup_logger("order_dashboard")
