"""
Structured logging configuration.

Production logs are one JSON object per line; development logs are a
single readable line per record. Both carry the request context set by
``RequestLoggingMiddleware`` and the query fields listed in
``EXTRA_FIELDS`` when a call site passes them through ``extra=``.

Usage:
    from quakefeed.core.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__)
    logger.info("Fetched feed", extra={"country_code": "TR", "count": 12})
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional, TextIO

from quakefeed.core.config import Settings, settings

_request_context: ContextVar[Dict[str, Any]] = ContextVar(
    "request_context", default={}
)

# Record attributes reported when a call site sets them via ``extra=``
EXTRA_FIELDS = (
    "country_code", "count", "kept", "url", "duration_ms",
    "status_code", "endpoint", "error_code",
)


def set_request_context(**kwargs: Any) -> None:
    """Set request-scoped log context (call from middleware)."""
    _request_context.set(kwargs)


def get_request_context() -> Dict[str, Any]:
    return _request_context.get()


def record_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """The ``EXTRA_FIELDS`` present on a record, in declaration order."""
    return {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}


# ── JSON Formatter (Production) ──

class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log aggregation."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }

        ctx = get_request_context()
        if ctx:
            entry["context"] = dict(ctx)
        entry.update(record_extras(record))

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            entry["exception"] = {"type": type(exc).__name__, "message": str(exc)}

        return json.dumps(entry, default=str)


# ── Pretty Formatter (Development) ──

class PrettyFormatter(logging.Formatter):
    """
    ``12:00:01 WARNING  [3f9a1c2e] quakefeed.ingestion.usgs_client: msg  url=... duration_ms=12.3``

    Level names are coloured only when ``use_color`` is set (a terminal).
    """

    LEVEL_COLORS = {
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[31m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = False):
        super().__init__()
        self.use_color = use_color

    def _level(self, levelname: str) -> str:
        label = f"{levelname:8s}"
        color = self.LEVEL_COLORS.get(levelname)
        if self.use_color and color:
            return f"{color}{label}{self.RESET}"
        return label

    @staticmethod
    def _format_value(value: Any) -> str:
        if isinstance(value, float):
            return f"{value:.1f}"
        return str(value)

    def format(self, record: logging.LogRecord) -> str:
        ts = self.formatTime(record, "%H:%M:%S")
        request_id = get_request_context().get("request_id")
        tag = f" [{request_id[:8]}]" if request_id else ""

        line = f"{ts} {self._level(record.levelname)}{tag} {record.name}: {record.getMessage()}"

        extras = record_extras(record)
        if extras:
            line += "  " + " ".join(
                f"{key}={self._format_value(value)}" for key, value in extras.items()
            )

        if record.exc_info and record.exc_info[1]:
            exc = record.exc_info[1]
            line += f"\n  {type(exc).__name__}: {exc}"

        return line


# ── Setup ──

def setup_logging(config: Optional[Settings] = None, stream: Optional[TextIO] = None) -> None:
    """Configure root logging based on environment."""
    config = config or settings
    stream = stream or sys.stdout

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler(stream)
    if config.is_production:
        handler.setFormatter(JSONFormatter())
    else:
        isatty = getattr(stream, "isatty", None)
        handler.setFormatter(PrettyFormatter(use_color=bool(isatty and isatty())))
    root.addHandler(handler)

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
