"""
Structured logging for the extraction engine.

Every record is written as one JSON line carrying the correlation id of the
extraction call that produced it. Context is passed as keyword arguments:

    logger.info("Layout detected", bank="ICICI Bank", rows=42)
"""
import logging
import json
import os
import uuid
import datetime
from contextvars import ContextVar
from typing import Any, Optional

# Correlation id for the extraction call currently running (async-safe)
_extraction_id: ContextVar[Optional[str]] = ContextVar("extraction_id", default=None)

# Keyword arguments Logger.log understands; everything else is context
_LOG_KWARGS = frozenset({'exc_info', 'stack_info', 'stacklevel', 'extra'})


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "extraction_id": _extraction_id.get() or "GLOBAL",
        }
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(log_level: int = logging.INFO, log_file: Optional[str] = None):
    """
    Send JSON lines to stderr and, when `log_file` is given, to that file.

    Replaces any handlers already on the root logger.
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        if os.path.dirname(log_file):
            os.makedirs(os.path.dirname(log_file), exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    formatter = JSONFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(log_level)

    get_logger(__name__).info("Logging infrastructure initialized.", status="ready")


def set_extraction_id(extraction_id: Optional[str] = None) -> str:
    """Bind a correlation id to the current context and return it."""
    extraction_id = extraction_id or uuid.uuid4().hex[:12]
    _extraction_id.set(extraction_id)
    return extraction_id


def get_extraction_id() -> Optional[str]:
    return _extraction_id.get()


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Moves keyword context into `extra_fields` for JSONFormatter."""

    def process(self, msg: Any, kwargs: Any) -> tuple[Any, Any]:
        context = {k: v for k, v in kwargs.items() if k not in _LOG_KWARGS}
        log_kwargs = {k: v for k, v in kwargs.items() if k in _LOG_KWARGS}
        extra = dict(log_kwargs.get("extra") or {})
        extra["extra_fields"] = {**extra.get("extra_fields", {}), **context}
        log_kwargs["extra"] = extra
        return msg, log_kwargs


def get_logger(name: str) -> StructuredLoggerAdapter:
    return StructuredLoggerAdapter(logging.getLogger(name), {})
