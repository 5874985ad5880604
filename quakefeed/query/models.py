"""
models.py — Value types shared by the query builder, codec and filters.

All types here are immutable snapshots. Anything that "changes" a
descriptor or a result set returns a new instance:

    QueryDescriptor   — validated-or-not filter criteria for one request
    EarthquakeRecord  — one event decoded from a GeoJSON feature
    FeedMetadata      — the response's ``metadata`` block
    ResultSet         — ordered records + count + the query that produced them
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from quakefeed.spatial.geometry import Coordinate


# ═══════════════════════════════════════════════════════════════════════════
# Enums
# ═══════════════════════════════════════════════════════════════════════════

class AlertLevel(str, Enum):
    """USGS PAGER alert levels."""
    NONE   = "none"     # events without a PAGER alert
    GREEN  = "green"    # low
    YELLOW = "yellow"   # moderate
    ORANGE = "orange"   # high
    RED    = "red"      # very high
    ALL    = "all"      # no alert-level filter

    @property
    def wire_value(self) -> Optional[str]:
        """Value of the ``alertlevel`` parameter; None means "omit it"."""
        if self in (AlertLevel.ALL, AlertLevel.NONE):
            return None
        return self.value


class OrderBy(str, Enum):
    """Result ordering accepted by the ``orderby`` parameter."""
    TIME          = "time"            # newest first
    TIME_ASC      = "time-asc"        # oldest first
    MAGNITUDE     = "magnitude"       # largest first
    MAGNITUDE_ASC = "magnitude-asc"   # smallest first


# ═══════════════════════════════════════════════════════════════════════════
# Query Descriptor
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class QueryDescriptor:
    """
    Filter criteria for one feed request. Every field is optional.

    Invariants (enforced by ``validation.validate``, not here):
        start_time ≤ end_time
        0 ≤ min_magnitude ≤ max_magnitude ≤ 10
        country_code ∈ BoundaryIndex
    """
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    min_magnitude: Optional[float] = None
    max_magnitude: Optional[float] = None
    alert_level: Optional[AlertLevel] = None
    order_by: Optional[OrderBy] = None
    country_code: Optional[str] = None
    limit: Optional[int] = None

    def with_changes(self, **changes: Any) -> "QueryDescriptor":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "min_magnitude": self.min_magnitude,
            "max_magnitude": self.max_magnitude,
            "alert_level": self.alert_level.value if self.alert_level else None,
            "order_by": self.order_by.value if self.order_by else None,
            "country_code": self.country_code,
            "limit": self.limit,
        }


# ═══════════════════════════════════════════════════════════════════════════
# Records
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EarthquakeRecord:
    """One reported seismic event."""
    event_id: str
    magnitude: Optional[float]
    place: str
    latitude: float
    longitude: float
    time: datetime
    alert_level: Optional[AlertLevel] = None
    depth_km: Optional[float] = None
    # Remaining scalar properties from the feed (url, felt, mmi, tsunami, …)
    properties: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False,
    )

    @property
    def epicenter(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "magnitude": self.magnitude,
            "place": self.place,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "depth_km": self.depth_km,
            "time": self.time.isoformat(),
            "alert_level": self.alert_level.value if self.alert_level else None,
            "properties": dict(self.properties),
        }


@dataclass(frozen=True)
class FeedMetadata:
    """The ``metadata`` object of a USGS GeoJSON response."""
    generated: Optional[datetime] = None
    url: Optional[str] = None
    title: Optional[str] = None
    status: Optional[int] = None
    api_version: Optional[str] = None
    count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generated": self.generated.isoformat() if self.generated else None,
            "url": self.url,
            "title": self.title,
            "status": self.status,
            "api": self.api_version,
            "count": self.count,
        }


@dataclass(frozen=True)
class ResultSet:
    """Ordered records returned for one query."""
    records: Tuple[EarthquakeRecord, ...]
    query: QueryDescriptor
    metadata: Optional[FeedMetadata] = None
    bbox: Optional[Tuple[float, ...]] = None

    @property
    def count(self) -> int:
        return len(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def with_records(self, records: Tuple[EarthquakeRecord, ...]) -> "ResultSet":
        """New ResultSet over ``records``; metadata count follows along."""
        records = tuple(records)
        metadata = self.metadata
        if metadata is not None:
            metadata = dataclasses.replace(metadata, count=len(records))
        return dataclasses.replace(self, records=records, metadata=metadata)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "query": self.query.to_dict(),
            "metadata": self.metadata.to_dict() if self.metadata else None,
            "bbox": list(self.bbox) if self.bbox else None,
            "records": [r.to_dict() for r in self.records],
        }
