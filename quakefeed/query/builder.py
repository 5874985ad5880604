"""
builder.py — Immutable fluent query builder.

Every configuration call returns a NEW ``EarthquakeQuery``; the original is
never touched, so partially configured queries can be shared and branched
freely:

    base = client.query().min_magnitude(4.5).order_by(OrderBy.MAGNITUDE)
    turkey = base.country("TR")
    japan = base.country("JP")        # `base` and `turkey` are unchanged

Slots are last-write-wins. Nothing is validated until a terminal call
(``validate``, ``build`` or ``fetch``). Inputs that cannot even be stored
(calendar-invalid dates, unknown enum strings, non-numeric magnitudes) are
kept as deferred per-slot errors and reported by the terminal call; a later
valid write to the same slot clears them.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from quakefeed.core.errors import (
    MagnitudeRangeError,
    QueryValidationError,
)
from quakefeed.query import time_utils
from quakefeed.query.models import AlertLevel, OrderBy, QueryDescriptor
from quakefeed.query.validation import ValidationResult, validate
from quakefeed.spatial.boundaries import BoundaryIndex, normalize_country_code

if TYPE_CHECKING:
    from quakefeed.ingestion.usgs_client import FetchResult, USGSClient

# Deferred errors are reported in this order
SLOT_ORDER = (
    "start_time", "end_time", "min_magnitude", "max_magnitude",
    "alert_level", "order_by", "country_code", "limit",
)


@dataclass(frozen=True)
class EarthquakeQuery:
    """Immutable accumulator of filter criteria."""
    descriptor: QueryDescriptor = field(default_factory=QueryDescriptor)
    deferred_errors: Mapping[str, QueryValidationError] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    client: Optional["USGSClient"] = field(default=None, compare=False, repr=False)

    # ── internal ──

    def _set(self, slot: str, value: Any) -> "EarthquakeQuery":
        errors = {k: v for k, v in self.deferred_errors.items() if k != slot}
        return dataclasses.replace(
            self,
            descriptor=self.descriptor.with_changes(**{slot: value}),
            deferred_errors=MappingProxyType(errors),
        )

    def _defer(self, slot: str, error: QueryValidationError) -> "EarthquakeQuery":
        errors = dict(self.deferred_errors)
        errors[slot] = error
        return dataclasses.replace(
            self,
            descriptor=self.descriptor.with_changes(**{slot: None}),
            deferred_errors=MappingProxyType(errors),
        )

    def _set_time(self, slot: str, *components: int, offset: Any) -> "EarthquakeQuery":
        try:
            instant = time_utils.normalize(*components, offset=offset, field=slot)
        except QueryValidationError as exc:
            return self._defer(slot, exc)
        return self._set(slot, instant)

    def _set_magnitude(self, slot: str, value: Any) -> "EarthquakeQuery":
        if isinstance(value, bool):
            return self._defer(slot, MagnitudeRangeError(
                f"Magnitude must be a number, got {value!r}", field=slot,
            ))
        try:
            magnitude = float(value)
        except (TypeError, ValueError):
            return self._defer(slot, MagnitudeRangeError(
                f"Magnitude must be a number, got {value!r}", field=slot,
            ))
        return self._set(slot, magnitude)

    # ── time ──

    def start_time(
        self, year: int, month: int, day: int, hour: int = 0, minute: int = 0,
        offset: Any = None,
    ) -> "EarthquakeQuery":
        """Set the start of the time window from local components."""
        return self._set_time("start_time", year, month, day, hour, minute, offset=offset)

    def end_time(
        self, year: int, month: int, day: int, hour: int = 0, minute: int = 0,
        offset: Any = None,
    ) -> "EarthquakeQuery":
        """Set the end of the time window from local components."""
        return self._set_time("end_time", year, month, day, hour, minute, offset=offset)

    def start_at(self, value: datetime) -> "EarthquakeQuery":
        try:
            return self._set("start_time", time_utils.from_datetime(value))
        except QueryValidationError as exc:
            return self._defer("start_time", exc)

    def end_at(self, value: datetime) -> "EarthquakeQuery":
        try:
            return self._set("end_time", time_utils.from_datetime(value))
        except QueryValidationError as exc:
            return self._defer("end_time", exc)

    # ── magnitude ──

    def min_magnitude(self, value: float) -> "EarthquakeQuery":
        return self._set_magnitude("min_magnitude", value)

    def max_magnitude(self, value: float) -> "EarthquakeQuery":
        return self._set_magnitude("max_magnitude", value)

    def magnitude_range(self, low: float, high: float) -> "EarthquakeQuery":
        return self.min_magnitude(low).max_magnitude(high)

    # ── enums ──

    def alert_level(self, level: Union[AlertLevel, str]) -> "EarthquakeQuery":
        try:
            return self._set("alert_level", AlertLevel(level))
        except ValueError:
            return self._defer("alert_level", QueryValidationError(
                f"Unknown alert level: {level!r}. "
                f"Use: {', '.join(a.value for a in AlertLevel)}",
                field="alert_level",
            ))

    def order_by(self, key: Union[OrderBy, str]) -> "EarthquakeQuery":
        try:
            return self._set("order_by", OrderBy(key))
        except ValueError:
            return self._defer("order_by", QueryValidationError(
                f"Unknown ordering: {key!r}. "
                f"Use: {', '.join(o.value for o in OrderBy)}",
                field="order_by",
            ))

    # ── country / paging ──

    def country(self, code: str) -> "EarthquakeQuery":
        """Keep only events inside this country (ISO-3166 alpha-2)."""
        if not isinstance(code, str) or not code.strip():
            return self._defer("country_code", QueryValidationError(
                f"Country code must be a non-empty string, got {code!r}",
                field="country_code",
            ))
        return self._set("country_code", normalize_country_code(code))

    filter_by_country_code = country

    def limit(self, count: int) -> "EarthquakeQuery":
        if isinstance(count, bool) or not isinstance(count, int):
            return self._defer("limit", QueryValidationError(
                f"Limit must be an integer, got {count!r}", field="limit",
            ))
        return self._set("limit", count)

    # ── terminal operations ──

    def validate(
        self,
        boundary_index: Optional[BoundaryIndex] = None,
        *,
        now: Optional[datetime] = None,
    ) -> ValidationResult:
        """Deferred input errors first, then the descriptor checks."""
        for slot in SLOT_ORDER:
            error = self.deferred_errors.get(slot)
            if error is not None:
                return ValidationResult(self.descriptor, error)

        if boundary_index is None and self.client is not None:
            boundary_index = self.client.boundary_index
        return validate(self.descriptor, boundary_index, now=now)

    def build(self, boundary_index: Optional[BoundaryIndex] = None) -> QueryDescriptor:
        """Validated descriptor; raises the first validation error."""
        return self.validate(boundary_index).raise_for_error()

    def fetch(self, timeout: Optional[float] = None) -> "FetchResult":
        """
        Validate, then run the query.

        Returns a failed ``FetchResult`` without any network activity if
        validation fails. Without a bound client a default ``USGSClient``
        is created for this call and closed afterwards.
        """
        if self.client is not None:
            return self.client.fetch(self, timeout=timeout)

        from quakefeed.ingestion.usgs_client import USGSClient

        with USGSClient() as client:
            return client.fetch(self, timeout=timeout)
