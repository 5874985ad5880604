"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Query-layer exception classes (validation, transport, decoding)
    • Consistent JSON error response format
    • Automatic logging of unhandled errors

The query core does not raise these across its public boundary: they are
carried as values inside ``ValidationResult`` / ``FetchResult``. Callers
that prefer exceptions use ``raise_for_error()`` / ``unwrap()``.

Usage:
    from quakefeed.core.errors import (
        QueryError,
        MagnitudeRangeError,
        UnknownCountryError,
        register_error_handlers,
    )

    raise UnknownCountryError("ZZ")
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quakefeed.core.config import settings

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class QueryError(Exception):
    """Base exception for all query-layer errors."""

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        *,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
            "status": self.status_code,
        }
        if self.details:
            d["details"] = self.details
        return d


class QueryValidationError(QueryError):
    """A query failed local validation (422). Nothing was sent."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        error_code: str = "VALIDATION_ERROR",
        status_code: int = 422,
        **details: Any,
    ):
        d = {**details}
        if field:
            d["field"] = field
        super().__init__(
            message=message,
            status_code=status_code,
            error_code=error_code,
            details=d,
        )
        self.field = field


class InvalidTimeError(QueryValidationError):
    """Date/time components do not form a calendar-valid instant."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        super().__init__(
            message, field=field, error_code="INVALID_TIME", **details,
        )


class TimeRangeError(QueryValidationError):
    """Start time is after end time."""

    def __init__(self, message: str = "Start time cannot be after end time", **details: Any):
        super().__init__(
            message, field="start_time", error_code="TIME_RANGE", **details,
        )


class StartTimeInFutureError(TimeRangeError):
    """Start time lies in the future — the feed can hold no events."""

    def __init__(self, message: str = "Start time cannot be in the future", **details: Any):
        super().__init__(message, **details)
        self.error_code = "START_TIME_IN_FUTURE"


class MagnitudeRangeError(QueryValidationError):
    """Magnitude bounds are reversed or outside [0, ceiling]."""

    def __init__(self, message: str, *, field: Optional[str] = None, **details: Any):
        super().__init__(
            message, field=field, error_code="MAGNITUDE_RANGE", **details,
        )


class LimitRangeError(QueryValidationError):
    """Result limit outside what the feed accepts."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message, field="limit", error_code="LIMIT_RANGE", **details,
        )


class UnknownCountryError(QueryValidationError):
    """Country code has no entry in the boundary index (404)."""

    def __init__(self, country_code: str):
        super().__init__(
            f"Unknown country code: {country_code!r}",
            field="country_code",
            error_code="UNKNOWN_COUNTRY",
            status_code=404,
            country_code=country_code,
        )
        self.country_code = country_code


class TransportError(QueryError):
    """The HTTP call to the feed failed (502)."""

    def __init__(
        self,
        message: str = "",
        *,
        url: Optional[str] = None,
        status_code: int = 502,
        upstream_status: Optional[int] = None,
        error_code: str = "TRANSPORT_ERROR",
    ):
        details: Dict[str, Any] = {"service": "usgs"}
        if url:
            details["url"] = url
        if upstream_status is not None:
            details["upstream_status"] = upstream_status
        super().__init__(
            message=f"USGS request failed: {message}" if message else "USGS request failed",
            status_code=status_code,
            error_code=error_code,
            details=details,
        )
        self.url = url
        self.upstream_status = upstream_status


class FeedTimeoutError(TransportError, TimeoutError):
    """The HTTP call exceeded the caller-supplied timeout (504)."""

    def __init__(self, timeout: Optional[float], *, url: Optional[str] = None):
        super().__init__(
            f"timed out after {timeout}s" if timeout is not None else "timed out",
            url=url,
            status_code=504,
            error_code="TIMEOUT",
        )
        self.timeout = timeout


class DecodeError(QueryError):
    """The feed response could not be decoded into records (502)."""

    def __init__(self, message: str, **details: Any):
        super().__init__(
            message=f"Could not decode USGS response: {message}",
            status_code=502,
            error_code="DECODE_ERROR",
            details=details,
        )


# ═══════════════════════════════════════════════════════════════════════════
# Error Response Builder
# ═══════════════════════════════════════════════════════════════════════════

def _build_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    request: Optional[Request] = None,
) -> JSONResponse:
    """Build a consistent JSON error response."""
    body: Dict[str, Any] = {
        "error": {
            "code": error_code,
            "message": message,
            "status": status_code,
        }
    }

    if details:
        body["error"]["details"] = details

    # Include request path in non-production
    if request and not settings.is_production:
        body["error"]["path"] = str(request.url.path)
        body["error"]["method"] = request.method

    return JSONResponse(status_code=status_code, content=body)


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(QueryError)
    async def handle_query_error(request: Request, exc: QueryError):
        log = logger.info if isinstance(exc, QueryValidationError) else logger.error
        log(
            "Query error [%s]: %s | details=%s",
            exc.error_code, exc.message, exc.details,
        )
        return _build_error_response(
            exc.status_code, exc.error_code, exc.message,
            exc.details, request,
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.critical(
            "Unhandled exception: %s\n%s",
            exc, traceback.format_exc(),
        )
        message = str(exc) if settings.DEBUG else "Internal server error"
        details = (
            {"traceback": traceback.format_exc().split("\n")}
            if settings.DEBUG else None
        )
        return _build_error_response(
            500, "INTERNAL_ERROR", message, details, request,
        )
