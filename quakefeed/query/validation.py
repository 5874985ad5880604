"""
validation.py — Legality checks on a QueryDescriptor.

Checks run in a fixed order and stop at the first failure:

    1. start_time ≤ end_time                    → TimeRangeError
       start_time not in the future             → StartTimeInFutureError
    2. 0 ≤ min_magnitude, max_magnitude ≤ 10,
       min_magnitude ≤ max_magnitude            → MagnitudeRangeError
       1 ≤ limit ≤ MAX_QUERY_LIMIT              → LimitRangeError
    3. country_code known to the BoundaryIndex  → UnknownCountryError

Validation never mutates the descriptor and never touches the network, so
it is safe to re-run before every fetch. Failures are returned as values.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from quakefeed.core.config import settings
from quakefeed.core.errors import (
    LimitRangeError,
    MagnitudeRangeError,
    QueryValidationError,
    StartTimeInFutureError,
    TimeRangeError,
    UnknownCountryError,
)
from quakefeed.query.models import QueryDescriptor
from quakefeed.query.time_utils import utc_now
from quakefeed.spatial.boundaries import BoundaryIndex, get_boundary_index

logger = logging.getLogger(__name__)

MIN_MAGNITUDE: float = 0.0


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a descriptor: ok, or the first error found."""
    descriptor: QueryDescriptor
    error: Optional[QueryValidationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> QueryDescriptor:
        """Return the descriptor, or raise the validation error."""
        if self.error is not None:
            raise self.error
        return self.descriptor


def _check_time_range(
    d: QueryDescriptor,
    now: datetime,
) -> Optional[QueryValidationError]:
    if d.start_time is not None and d.end_time is not None:
        if d.start_time > d.end_time:
            return TimeRangeError(
                start_time=d.start_time.isoformat(),
                end_time=d.end_time.isoformat(),
            )
    if d.start_time is not None and d.start_time > now:
        return StartTimeInFutureError(start_time=d.start_time.isoformat())
    return None


def _check_magnitudes(d: QueryDescriptor) -> Optional[QueryValidationError]:
    ceiling = settings.MAGNITUDE_CEILING
    lo, hi = d.min_magnitude, d.max_magnitude

    if lo is not None and not (MIN_MAGNITUDE <= lo <= ceiling):
        return MagnitudeRangeError(
            f"Minimum magnitude must be in [{MIN_MAGNITUDE}, {ceiling}], got {lo}",
            field="min_magnitude",
        )
    if hi is not None and not (MIN_MAGNITUDE <= hi <= ceiling):
        return MagnitudeRangeError(
            f"Maximum magnitude must be in [{MIN_MAGNITUDE}, {ceiling}], got {hi}",
            field="max_magnitude",
        )
    if lo is not None and hi is not None and lo > hi:
        return MagnitudeRangeError(
            f"Minimum magnitude {lo} is greater than maximum magnitude {hi}",
            field="min_magnitude",
            min_magnitude=lo,
            max_magnitude=hi,
        )
    return None


def _check_limit(d: QueryDescriptor) -> Optional[QueryValidationError]:
    if d.limit is not None and not (1 <= d.limit <= settings.MAX_QUERY_LIMIT):
        return LimitRangeError(
            f"Limit must be in [1, {settings.MAX_QUERY_LIMIT}], got {d.limit}",
        )
    return None


def _check_country(
    d: QueryDescriptor,
    index_factory: Callable[[], BoundaryIndex],
) -> Optional[QueryValidationError]:
    if d.country_code is None:
        return None
    if d.country_code not in index_factory():
        return UnknownCountryError(d.country_code)
    return None


def validate(
    descriptor: QueryDescriptor,
    boundary_index: Optional[BoundaryIndex] = None,
    *,
    now: Optional[datetime] = None,
) -> ValidationResult:
    """
    Validate a descriptor, short-circuiting on the first failure.

    Parameters
    ----------
    descriptor : QueryDescriptor
        Criteria to check.
    boundary_index : BoundaryIndex | None
        Index used for the country check; the shared default is loaded
        only when a country code is actually set.
    now : datetime | None
        Reference instant for the future-start check (default: utc_now()).

    Returns
    -------
    ValidationResult
    """
    index_factory = (lambda: boundary_index) if boundary_index is not None else get_boundary_index
    reference = now or utc_now()

    checks: List[Callable[[], Optional[QueryValidationError]]] = [
        lambda: _check_time_range(descriptor, reference),
        lambda: _check_magnitudes(descriptor),
        lambda: _check_limit(descriptor),
        lambda: _check_country(descriptor, index_factory),
    ]
    for check in checks:
        error = check()
        if error is not None:
            logger.info(
                "Query rejected [%s]: %s", error.error_code, error.message,
                extra={"error_code": error.error_code},
            )
            return ValidationResult(descriptor, error)

    return ValidationResult(descriptor)
