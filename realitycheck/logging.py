"""
Structured Logging — JSON lines for the engine and API

Every module logs through the `realitycheck` logger tree. Context goes in
`extra=`; the fields listed in EXTRA_FIELDS become top-level JSON keys
(or `key=value` suffixes in text mode).

Usage:
    from realitycheck.logging import get_logger
    logger = get_logger("pipeline")
    logger.info("Batch analyzed", extra={"items": 12, "analyzed": 9})
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone


LOG_LEVEL = os.getenv("REALITYCHECK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.getenv("REALITYCHECK_LOG_FORMAT", "json")  # "json" or "text"

EXTRA_FIELDS = (
    "risk_score", "rule_id", "item_index", "duration_ms", "provider",
    "attempts", "error", "error_type", "status_code", "method", "path",
    "items", "analyzed",
)


def _extras(record: logging.LogRecord) -> dict:
    return {
        key: getattr(record, key)
        for key in EXTRA_FIELDS
        if getattr(record, key, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.module}:{record.lineno}"
        entry.update(_extras(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Console format for local development."""

    def __init__(self):
        super().__init__(
            fmt="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = _extras(record)
        if extras:
            line += " | " + " ".join(f"{k}={v}" for k, v in extras.items())
        return line


def setup_logging(fmt: str | None = None, level: str | None = None) -> logging.Logger:
    """(Re)configure the `realitycheck` logger with a single stdout handler."""
    root = logging.getLogger("realitycheck")
    root.setLevel(getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if (fmt or LOG_FORMAT) == "json" else TextFormatter())
    root.handlers[:] = [handler]

    for noisy in ("uvicorn.access", "httpcore", "httpx", "transformers"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    return root


def get_logger(name: str) -> logging.Logger:
    """Logger under the realitycheck namespace."""
    return logging.getLogger(f"realitycheck.{name}")
