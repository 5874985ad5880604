"""
FastAPI endpoints for country-aware earthquake queries.

Endpoints:
    GET  /api/v1/earthquakes/query      — Filtered USGS query
    GET  /api/v1/earthquakes/countries  — Country codes with boundary data

Query failures are raised as ``QueryError`` subclasses and rendered by the
handlers in ``quakefeed.core.errors`` (422 / 404 / 502 / 504).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from fastapi import APIRouter, Depends, Query

from quakefeed.ingestion.usgs_client import USGSClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/earthquakes", tags=["earthquakes"])


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def get_client() -> Iterator[USGSClient]:
    """One client per request; overridden in tests."""
    with USGSClient() as client:
        yield client


@router.get("/query")
def query_earthquakes(
    start: Optional[datetime] = Query(None, description="ISO-8601 start of the window"),
    end: Optional[datetime] = Query(None, description="ISO-8601 end of the window"),
    min_magnitude: Optional[float] = Query(None, description="Lower magnitude bound"),
    max_magnitude: Optional[float] = Query(None, description="Upper magnitude bound"),
    alert_level: Optional[str] = Query(None, description="none, green, yellow, orange, red or all"),
    order_by: Optional[str] = Query(None, description="time, time-asc, magnitude or magnitude-asc"),
    country: Optional[str] = Query(None, description="ISO-3166 alpha-2 country code"),
    limit: Optional[int] = Query(None, description="Maximum number of events"),
    timeout: Optional[float] = Query(None, gt=0, description="Upstream timeout in seconds"),
    client: USGSClient = Depends(get_client),
) -> Dict[str, Any]:
    """
    Query the USGS feed, optionally narrowed to one country.

    Naive ``start`` / ``end`` values are read as UTC.
    """
    query = client.query()
    if start is not None:
        query = query.start_at(_as_utc(start))
    if end is not None:
        query = query.end_at(_as_utc(end))
    if min_magnitude is not None:
        query = query.min_magnitude(min_magnitude)
    if max_magnitude is not None:
        query = query.max_magnitude(max_magnitude)
    if alert_level is not None:
        query = query.alert_level(alert_level.lower())
    if order_by is not None:
        query = query.order_by(order_by.lower())
    if country is not None:
        query = query.country(country)
    if limit is not None:
        query = query.limit(limit)

    result = query.fetch(timeout=timeout)
    result.unwrap()
    return result.to_dict()


@router.get("/countries")
def list_countries(client: USGSClient = Depends(get_client)) -> Dict[str, Any]:
    """Country codes that can be used with ``country=``."""
    index = client.boundary_index
    countries = [
        {"code": code, "name": index.name_for(code)}
        for code in index.country_codes()
    ]
    return {"count": len(countries), "countries": countries}
