"""
time_utils.py — Local wall-clock time → canonical UTC instants.

Every range filter sent to the feed is expressed in UTC. Callers, however,
think in local calendar components ("1 Dec 2024, 00:00 in Istanbul"), so
this module converts:

    (year, month, day, hour, minute) + offset  →  aware UTC datetime

Offset resolution
=================
    offset is None         → the local system offset in force for that
                             wall-clock time (DST-aware, via astimezone())
    offset is timedelta    → fixed offset, must lie strictly inside ±24 h
    offset is int          → minutes east of UTC (e.g. 180 for UTC+3)
    offset is tzinfo       → used as-is (e.g. ZoneInfo("Europe/Istanbul"))

Wire format
===========
The FDSN event service assumes UTC for timestamps without a designator, so
instants are serialised as ``YYYY-MM-DDTHH:MM:SS``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import NamedTuple, Optional, Union

from quakefeed.core.errors import InvalidTimeError

OffsetLike = Union[timedelta, int, tzinfo, None]

QUERY_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class LocalComponents(NamedTuple):
    """Wall-clock components as accepted by ``normalize``."""
    year: int
    month: int
    day: int
    hour: int
    minute: int


def _as_tzinfo(offset: OffsetLike, *, field: Optional[str] = None) -> Optional[tzinfo]:
    """Resolve an offset argument to a tzinfo (None means system-local)."""
    if offset is None:
        return None
    if isinstance(offset, tzinfo):
        return offset
    if isinstance(offset, bool):
        raise InvalidTimeError(f"Invalid UTC offset: {offset!r}", field=field)
    if isinstance(offset, int):
        offset = timedelta(minutes=offset)
    if isinstance(offset, timedelta):
        try:
            return timezone(offset)
        except ValueError as exc:
            raise InvalidTimeError(
                f"UTC offset must be strictly between -24h and +24h, got {offset}",
                field=field,
            ) from exc
    raise InvalidTimeError(f"Invalid UTC offset: {offset!r}", field=field)


def normalize(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    offset: OffsetLike = None,
    *,
    field: Optional[str] = None,
) -> datetime:
    """
    Convert local date/time components to an aware UTC datetime.

    Parameters
    ----------
    year, month, day, hour, minute : int
        Local wall-clock components.
    offset : timedelta | int | tzinfo | None
        UTC offset of the components; ``None`` uses the system's local
        offset for that date.
    field : str | None
        Name of the query slot being set, attached to any error.

    Returns
    -------
    datetime
        Aware datetime with ``tzinfo=timezone.utc``.

    Raises
    ------
    InvalidTimeError
        If the components are not a valid calendar date/time or the
        offset is out of range.

    Examples
    --------
    >>> normalize(2024, 12, 1, 3, 0, offset=180)
    datetime.datetime(2024, 12, 1, 0, 0, tzinfo=datetime.timezone.utc)
    >>> normalize(2024, 13, 1, 0, 0, offset=0)
    Traceback (most recent call last):
        ...
    quakefeed.core.errors.InvalidTimeError: Invalid date/time 2024-13-01 00:00: month must be in 1..12
    """
    for name, value in (("year", year), ("month", month), ("day", day),
                        ("hour", hour), ("minute", minute)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidTimeError(
                f"{name} must be an integer, got {value!r}", field=field,
            )

    tz = _as_tzinfo(offset, field=field)

    try:
        local = datetime(year, month, day, hour, minute, tzinfo=tz)
    except ValueError as exc:
        raise InvalidTimeError(
            f"Invalid date/time {year:04d}-{month:02d}-{day:02d} "
            f"{hour:02d}:{minute:02d}: {exc}",
            field=field,
        ) from exc

    try:
        if tz is None:
            # Naive → interpreted as system-local time
            local = local.astimezone()
        return local.astimezone(timezone.utc)
    except (OverflowError, ValueError) as exc:
        raise InvalidTimeError(
            f"Date/time out of representable range: {exc}", field=field,
        ) from exc


def to_local_components(instant: datetime, offset: OffsetLike = None) -> LocalComponents:
    """
    Express a UTC instant as wall-clock components at ``offset``.

    Inverse of ``normalize`` for the same offset:

    >>> utc = normalize(2024, 2, 29, 23, 30, offset=-300)
    >>> to_local_components(utc, offset=-300)
    LocalComponents(year=2024, month=2, day=29, hour=23, minute=30)
    """
    tz = _as_tzinfo(offset)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(tz) if tz is not None else instant.astimezone()
    return LocalComponents(local.year, local.month, local.day, local.hour, local.minute)


def from_datetime(value: datetime) -> datetime:
    """Convert any datetime to aware UTC; naive values are taken as local."""
    try:
        return value.astimezone(timezone.utc)
    except (OverflowError, ValueError) as exc:
        raise InvalidTimeError(f"Invalid datetime {value!r}: {exc}") from exc


def from_epoch_ms(ms: Union[int, float]) -> datetime:
    """USGS timestamps are milliseconds since the Unix epoch."""
    return datetime.fromtimestamp(ms / 1000.0, tz=timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_query_time(instant: datetime) -> str:
    """Serialise an instant for the ``starttime``/``endtime`` parameters."""
    return from_datetime(instant).strftime(QUERY_TIME_FORMAT)
