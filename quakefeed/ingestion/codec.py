"""
codec.py — QueryDescriptor → URL query string, GeoJSON bytes → ResultSet.

Encoding
========
    starttime / endtime        → YYYY-MM-DDTHH:MM:SS (UTC)
    minmagnitude / maxmagnitude → decimal
    alertlevel                 → green | yellow | orange | red
                                 (omitted for "all" and "none")
    orderby                    → time | time-asc | magnitude | magnitude-asc
    limit                      → integer

Unset slots are simply omitted; the service applies its own defaults.

Decoding
========
The envelope must be a JSON object matching ``FeatureCollectionSchema``,
otherwise ``DecodeError``. Individual features that fail validation are
skipped with a warning, and so is an unreadable metadata timestamp.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Protocol, Union
from urllib.parse import urlencode

from pydantic import ValidationError

from quakefeed.core.errors import DecodeError
from quakefeed.ingestion.schemas import (
    FeatureCollectionSchema,
    FeatureSchema,
)
from quakefeed.query.models import (
    AlertLevel,
    EarthquakeRecord,
    FeedMetadata,
    QueryDescriptor,
    ResultSet,
)
from quakefeed.query.time_utils import format_query_time, from_epoch_ms

logger = logging.getLogger(__name__)

RESPONSE_FORMAT = "geojson"

# Properties promoted to EarthquakeRecord attributes
CORE_PROPERTIES = frozenset({"mag", "place", "time", "alert"})

# Alert values the feed may report on an event
REPORTED_ALERT_LEVELS = {
    level.value: level
    for level in (AlertLevel.GREEN, AlertLevel.YELLOW, AlertLevel.ORANGE, AlertLevel.RED)
}

_SCALAR_TYPES = (str, int, float, bool)


class Codec(Protocol):
    def encode(self, descriptor: QueryDescriptor) -> str:
        ...

    def decode(self, raw: bytes, descriptor: QueryDescriptor) -> ResultSet:
        ...


def _format_decimal(value: float) -> str:
    return repr(float(value))


def query_params(descriptor: QueryDescriptor) -> Dict[str, str]:
    """Wire parameters for a descriptor, in a stable order."""
    params: Dict[str, str] = {"format": RESPONSE_FORMAT}
    if descriptor.start_time is not None:
        params["starttime"] = format_query_time(descriptor.start_time)
    if descriptor.end_time is not None:
        params["endtime"] = format_query_time(descriptor.end_time)
    if descriptor.min_magnitude is not None:
        params["minmagnitude"] = _format_decimal(descriptor.min_magnitude)
    if descriptor.max_magnitude is not None:
        params["maxmagnitude"] = _format_decimal(descriptor.max_magnitude)
    if descriptor.alert_level is not None and descriptor.alert_level.wire_value:
        params["alertlevel"] = descriptor.alert_level.wire_value
    if descriptor.order_by is not None:
        params["orderby"] = descriptor.order_by.value
    if descriptor.limit is not None:
        params["limit"] = str(descriptor.limit)
    return params


def _passthrough(raw_props: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType({
        key: value
        for key, value in raw_props.items()
        if key not in CORE_PROPERTIES
        and (value is None or isinstance(value, _SCALAR_TYPES))
    })


def parse_feature(raw: Mapping[str, Any]) -> Optional[EarthquakeRecord]:
    """
    Parse one GeoJSON feature into an EarthquakeRecord.

    Returns None (and logs a warning) for a malformed feature.
    """
    try:
        feature = FeatureSchema.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "Skipping malformed USGS feature %s: %s",
            raw.get("id", "<no id>") if isinstance(raw, Mapping) else "<not an object>",
            exc.errors()[0]["msg"] if exc.errors() else exc,
        )
        return None

    props = feature.properties
    coords = feature.geometry.coordinates
    try:
        origin_time = from_epoch_ms(props.time)
    except (OverflowError, OSError, ValueError):
        logger.warning("Skipping USGS feature %s: bad timestamp %r", feature.id, props.time)
        return None

    depth = coords[2] if len(coords) > 2 else None
    alert = REPORTED_ALERT_LEVELS.get((props.alert or "").lower())

    return EarthquakeRecord(
        event_id=feature.id,
        magnitude=props.mag,
        place=props.place or "",
        latitude=float(coords[1]),
        longitude=float(coords[0]),
        time=origin_time,
        alert_level=alert,
        depth_km=depth,
        properties=_passthrough(raw.get("properties") or {}),
    )


def _parse_generated(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return from_epoch_ms(value)
    except (OverflowError, OSError, ValueError):
        logger.warning("Ignoring bad feed metadata timestamp %r", value)
        return None


class GeoJSONCodec:
    """Codec for the FDSN event service's ``format=geojson`` output."""

    def encode(self, descriptor: QueryDescriptor) -> str:
        return urlencode(query_params(descriptor))

    def decode(self, raw: Union[bytes, str], descriptor: QueryDescriptor) -> ResultSet:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DecodeError(f"invalid JSON ({exc})") from exc

        if not isinstance(data, dict):
            raise DecodeError(f"expected a JSON object, got {type(data).__name__}")

        try:
            envelope = FeatureCollectionSchema.model_validate(data)
        except ValidationError as exc:
            raise DecodeError(
                "response is not a GeoJSON FeatureCollection",
                errors=exc.errors(include_url=False, include_context=False, include_input=False),
            ) from exc

        records: List[EarthquakeRecord] = []
        for feat in envelope.features:
            record = parse_feature(feat)
            if record is not None:
                records.append(record)

        skipped = len(envelope.features) - len(records)
        if skipped:
            logger.warning("Skipped %d of %d USGS features", skipped, len(envelope.features))

        metadata = None
        if envelope.metadata is not None:
            m = envelope.metadata
            metadata = FeedMetadata(
                generated=_parse_generated(m.generated),
                url=m.url,
                title=m.title,
                status=m.status,
                api_version=m.api,
                count=len(records),
            )

        return ResultSet(
            records=tuple(records),
            query=descriptor,
            metadata=metadata,
            bbox=tuple(envelope.bbox) if envelope.bbox else None,
        )
