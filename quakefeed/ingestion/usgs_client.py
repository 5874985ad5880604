"""
usgs_client.py — Run earthquake queries against the USGS FDSN event service.

Pipeline for one fetch:

    EarthquakeQuery ─validate─► QueryDescriptor ─encode─► URL
        ─Transport.send─► bytes ─Codec.decode─► ResultSet
        ─alert "none" post-filter─► ─CountryFilter─► FetchResult

Nothing leaves the process unless validation passes. Every failure, local
or remote, comes back as a failed ``FetchResult`` carrying the error; the
caller decides whether to ``unwrap()`` it into an exception.

Usage:
    with USGSClient() as client:
        result = (
            client.query()
            .start_time(2023, 2, 6)
            .end_time(2023, 2, 7)
            .min_magnitude(5.0)
            .country("TR")
            .fetch(timeout=10)
        )
        if result.success:
            for record in result.result:
                print(record.magnitude, record.place)
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from quakefeed.core.config import settings
from quakefeed.core.errors import QueryError
from quakefeed.ingestion.codec import Codec, GeoJSONCodec
from quakefeed.ingestion.transport import HttpxTransport, Transport
from quakefeed.query.builder import EarthquakeQuery
from quakefeed.query.models import AlertLevel, QueryDescriptor, ResultSet
from quakefeed.query.validation import validate
from quakefeed.spatial.boundaries import BoundaryIndex, get_boundary_index
from quakefeed.spatial.country_filter import CountryFilter

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Result Container
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch: a ResultSet, or the error that stopped it."""
    success: bool
    result: Optional[ResultSet] = None
    error: Optional[QueryError] = None
    url: Optional[str] = None
    fetch_time_ms: float = 0.0

    def __post_init__(self) -> None:
        if self.success and self.result is None:
            raise ValueError("A successful FetchResult needs a result")
        if not self.success and self.error is None:
            raise ValueError("A failed FetchResult needs an error")

    @classmethod
    def ok(cls, result: ResultSet, *, url: str, fetch_time_ms: float) -> "FetchResult":
        return cls(True, result=result, url=url, fetch_time_ms=fetch_time_ms)

    @classmethod
    def failed(
        cls, error: QueryError, *, url: Optional[str] = None, fetch_time_ms: float = 0.0,
    ) -> "FetchResult":
        return cls(False, error=error, url=url, fetch_time_ms=fetch_time_ms)

    def unwrap(self) -> ResultSet:
        """Return the ResultSet, or raise the carried error."""
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise ValueError("FetchResult holds neither a result nor an error")
        return self.result

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "url": self.url,
            "fetch_time_ms": round(self.fetch_time_ms, 1),
            "error": self.error.to_dict() if self.error is not None else None,
            "result": self.result.to_dict() if self.result is not None else None,
        }


# ═══════════════════════════════════════════════════════════════════════════
# Client
# ═══════════════════════════════════════════════════════════════════════════

class USGSClient:
    """
    Glue between the query builder, the HTTP transport, the codec and the
    country filter.

    Parameters
    ----------
    transport : Transport | None
        Defaults to an ``HttpxTransport`` owned (and closed) by the client.
    codec : Codec | None
        Defaults to ``GeoJSONCodec``.
    boundary_index : BoundaryIndex | None
        Defaults to the shared packaged index, loaded on first use.
    base_url : str | None
        Query endpoint (default: ``settings.USGS_QUERY_URL``).
    timeout : float | None
        Default per-request timeout in seconds (default:
        ``settings.REQUEST_TIMEOUT``).
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        codec: Optional[Codec] = None,
        boundary_index: Optional[BoundaryIndex] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._owns_transport = transport is None
        self.transport: Transport = transport or HttpxTransport()
        self.codec: Codec = codec or GeoJSONCodec()
        self._boundary_index = boundary_index
        self.base_url = base_url or settings.USGS_QUERY_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    @property
    def boundary_index(self) -> BoundaryIndex:
        if self._boundary_index is None:
            self._boundary_index = get_boundary_index()
        return self._boundary_index

    # ── context manager ──

    def __enter__(self) -> "USGSClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_transport and isinstance(self.transport, HttpxTransport):
            self.transport.close()

    # ── public API ──

    def query(self) -> EarthquakeQuery:
        """Start an empty query bound to this client."""
        return EarthquakeQuery(client=self)

    def build_url(self, descriptor: QueryDescriptor) -> str:
        separator = "&" if "?" in self.base_url else "?"
        return f"{self.base_url}{separator}{self.codec.encode(descriptor)}"

    def fetch(self, query: EarthquakeQuery, timeout: Optional[float] = None) -> FetchResult:
        """Validate a builder, then run it."""
        validation = query.validate(self.boundary_index)
        if validation.error is not None:
            return FetchResult.failed(validation.error)
        return self._dispatch(validation.descriptor, timeout)

    def execute(self, descriptor: QueryDescriptor, timeout: Optional[float] = None) -> FetchResult:
        """Validate a bare descriptor, then run it."""
        validation = validate(descriptor, self.boundary_index)
        if validation.error is not None:
            return FetchResult.failed(validation.error)
        return self._dispatch(descriptor, timeout)

    # ── internal ──

    def _dispatch(self, descriptor: QueryDescriptor, timeout: Optional[float]) -> FetchResult:
        url = self.build_url(descriptor)
        effective_timeout = timeout if timeout is not None else self.timeout
        start = time.monotonic()

        try:
            raw = self.transport.send(url, timeout=effective_timeout)
            result_set = self.codec.decode(raw, descriptor)

            if descriptor.alert_level is AlertLevel.NONE:
                result_set = result_set.with_records(tuple(
                    r for r in result_set.records if r.alert_level is None
                ))

            if descriptor.country_code is not None:
                result_set = CountryFilter(self.boundary_index).apply(
                    result_set, descriptor.country_code,
                )
        except QueryError as exc:
            elapsed = (time.monotonic() - start) * 1000
            logger.warning(
                "USGS query failed [%s]: %s", exc.error_code, exc.message,
                extra={"url": url, "error_code": exc.error_code, "duration_ms": elapsed},
            )
            return FetchResult.failed(exc, url=url, fetch_time_ms=elapsed)

        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            "USGS query returned %d events in %.0fms", result_set.count, elapsed,
            extra={"url": url, "count": result_set.count, "duration_ms": elapsed},
        )
        return FetchResult.ok(result_set, url=url, fetch_time_ms=elapsed)
