"""JSON logging for the LINE relay.

Every line is one JSON object. The sender id, when a record carries one, is
lifted out of the context so log queries can filter on it directly. Chat text
only reaches the log in DEBUG records, and then only as a short preview.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

TEXT_KEYS = ("text", "reply")
TEXT_PREVIEW_CHARS = 40

QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def preview(text: Any, limit: int = TEXT_PREVIEW_CHARS) -> str:
    text = str(text)
    if len(text) <= limit:
        return text
    return text[:limit] + "…"


def redact_context(context: dict[str, Any], levelno: int) -> dict[str, Any]:
    """Trim chat text at DEBUG, drop it at every other level."""
    redacted = {}
    for key, value in context.items():
        if key in TEXT_KEYS:
            if levelno > logging.DEBUG:
                continue
            value = preview(value)
        redacted[key] = value
    return redacted


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            context = redact_context(context, record.levelno)
            sender = context.pop("sender", None)
            if sender:
                log_data["sender"] = sender
            if context:
                log_data["context"] = context

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"relay.{name}")


class LoggerAdapter(logging.LoggerAdapter):
    """Attach a fixed context (e.g. sender id) to every record."""

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = kwargs.pop("context", None)
        if context or self.extra:
            kwargs["extra"] = {"context": {**self.extra, **(context or {})}}
        return msg, kwargs


def sender_logger(name: str, sender_id: str) -> LoggerAdapter:
    return LoggerAdapter(get_logger(name), {"sender": sender_id})
