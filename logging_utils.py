"""Logging configuration helpers with optional structured output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from config import Settings


class JsonFormatter(logging.Formatter):
    """Minimal JSON formatter for log aggregation systems."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "event": getattr(record, "event", record.funcName),
            "environment": getattr(record, "environment", "unknown"),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class ContextFilter(logging.Filter):
    """Injects the deployment environment into every log record."""

    def __init__(self, environment: str) -> None:
        super().__init__()
        self._environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.environment = self._environment
        return True


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    """Emit a structured log event as a compact JSON message."""
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, separators=(",", ":")), extra={"event": event})


def configure_logging(settings: Settings) -> None:
    root = logging.getLogger()
    if settings.log_level:
        root.setLevel(settings.log_level.upper())
    else:
        root.setLevel(logging.DEBUG if settings.environment == "development" else logging.INFO)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
    handler.addFilter(ContextFilter(settings.environment))
    root.addHandler(handler)
