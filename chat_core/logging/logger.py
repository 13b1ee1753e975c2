"""
Structured JSON logging for the chat service.

One JSON object per line on stdout, tagged with the service name and the
source location of the call. Callers attach structured fields with
``extra={"_extra": {...}}``; they end up under the ``extra`` key of the entry.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "openai")


class JSONFormatter(logging.Formatter):

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": self.service_name,
            "logger": record.name,
            "where": f"{record.module}:{record.lineno}",
            "message": record.getMessage(),
        }

        exc_type = record.exc_info[0] if record.exc_info else None
        if exc_type is not None:
            payload["error"] = {
                "type": exc_type.__name__,
                "traceback": self.formatException(record.exc_info),
            }

        structured = getattr(record, "_extra", None)
        if structured:
            payload["extra"] = structured

        return json.dumps(payload, default=str, ensure_ascii=False)


def _resolve_level(level: str) -> tuple[str, int]:
    name = level.strip().upper()
    value = logging.getLevelName(name)
    if isinstance(value, int):
        return name, value
    return "INFO", logging.INFO


def setup_logging(service_name: str, level: str = "INFO") -> logging.Logger:
    """
    Route every logger through one JSON handler on stdout.

    Call once at service startup (in the FastAPI lifespan). Unknown level
    names fall back to INFO. Returns the service's own logger.
    """
    level_name, numeric_level = _resolve_level(level)

    stdout = logging.StreamHandler(sys.stdout)
    stdout.setFormatter(JSONFormatter(service_name))
    root = logging.getLogger()
    root.handlers[:] = [stdout]
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    service_logger = logging.getLogger(service_name)
    service_logger.info("Logging configured", extra={"_extra": {"level": level_name}})
    return service_logger
