"""
test_time_utils.py — Local components → UTC instants.

Covers:
    • Fixed offsets as minutes, timedelta and tzinfo
    • Calendar-invalid components (month 13, Feb 30, hour 24, …)
    • Out-of-range offsets
    • Round trip through to_local_components
    • Wire formatting and epoch-millisecond parsing

Run with:
    pytest tests/test_time_utils.py -v
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quakefeed.core.errors import InvalidTimeError
from quakefeed.query.time_utils import (
    LocalComponents,
    format_query_time,
    from_datetime,
    from_epoch_ms,
    normalize,
    to_local_components,
)


def _utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Offsets
# ═══════════════════════════════════════════════════════════════════════════

class TestNormalizeOffsets:

    def test_minutes_east_of_utc(self):
        assert normalize(2024, 12, 1, 3, 0, offset=180) == _utc(2024, 12, 1, 0, 0)

    def test_negative_timedelta(self):
        assert normalize(2024, 12, 1, 3, 0, offset=timedelta(hours=-5)) == _utc(2024, 12, 1, 8, 0)

    def test_tzinfo(self):
        tokyo = timezone(timedelta(hours=9))
        assert normalize(2011, 3, 11, 14, 46, offset=tokyo) == _utc(2011, 3, 11, 5, 46)

    def test_zero_offset_is_utc(self):
        assert normalize(2023, 2, 6, 1, 17, offset=0) == _utc(2023, 2, 6, 1, 17)

    def test_result_is_always_utc(self):
        result = normalize(2024, 6, 15, 12, 0, offset=330)
        assert result.tzinfo == timezone.utc
        assert result.utcoffset() == timedelta(0)

    def test_crosses_day_boundary_backwards(self):
        assert normalize(2024, 1, 1, 1, 0, offset=180) == _utc(2023, 12, 31, 22, 0)

    def test_crosses_day_boundary_forwards(self):
        assert normalize(2024, 2, 28, 22, 0, offset=-180) == _utc(2024, 2, 29, 1, 0)

    def test_system_local_offset(self):
        result = normalize(2024, 1, 15, 12, 0)
        assert result.tzinfo == timezone.utc
        assert to_local_components(result) == LocalComponents(2024, 1, 15, 12, 0)

    def test_hour_and_minute_default_to_midnight(self):
        assert normalize(2024, 5, 1, offset=0) == _utc(2024, 5, 1, 0, 0)


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Invalid input
# ═══════════════════════════════════════════════════════════════════════════

class TestNormalizeInvalid:

    @pytest.mark.parametrize("components", [
        (2024, 13, 1, 0, 0),
        (2024, 0, 1, 0, 0),
        (2024, 2, 30, 0, 0),
        (2023, 2, 29, 0, 0),
        (2024, 4, 31, 0, 0),
        (2024, 1, 1, 24, 0),
        (2024, 1, 1, 0, 60),
        (2024, 1, 1, -1, 0),
    ])
    def test_calendar_invalid(self, components):
        with pytest.raises(InvalidTimeError):
            normalize(*components, offset=0)

    def test_leap_day_is_valid(self):
        assert normalize(2024, 2, 29, 0, 0, offset=0) == _utc(2024, 2, 29)

    def test_non_integer_component(self):
        with pytest.raises(InvalidTimeError, match="month"):
            normalize(2024, "3", 1, offset=0)

    def test_bool_component_rejected(self):
        with pytest.raises(InvalidTimeError):
            normalize(2024, True, 1, offset=0)

    @pytest.mark.parametrize("offset", [
        timedelta(hours=24),
        timedelta(hours=-24),
        24 * 60,
        -25 * 60,
    ])
    def test_offset_out_of_range(self, offset):
        with pytest.raises(InvalidTimeError):
            normalize(2024, 1, 1, 0, 0, offset=offset)

    def test_offset_of_wrong_type(self):
        with pytest.raises(InvalidTimeError):
            normalize(2024, 1, 1, 0, 0, offset="+03:00")

    def test_field_is_attached(self):
        with pytest.raises(InvalidTimeError) as exc_info:
            normalize(2024, 2, 30, offset=0, field="start_time")
        assert exc_info.value.field == "start_time"
        assert exc_info.value.error_code == "INVALID_TIME"
        assert exc_info.value.status_code == 422


# ═══════════════════════════════════════════════════════════════════════════
# Section 3: Round trip and helpers
# ═══════════════════════════════════════════════════════════════════════════

class TestRoundTrip:

    @pytest.mark.parametrize("components, offset", [
        ((2024, 2, 29, 23, 30), -300),
        ((2023, 2, 6, 4, 17), 180),
        ((1999, 12, 31, 23, 59), 0),
        ((2024, 7, 1, 0, 0), 345),
    ])
    def test_components_survive(self, components, offset):
        instant = normalize(*components, offset=offset)
        assert to_local_components(instant, offset=offset) == LocalComponents(*components)

    def test_naive_instant_read_as_utc(self):
        naive = datetime(2024, 3, 1, 12, 0)
        assert to_local_components(naive, offset=60) == LocalComponents(2024, 3, 1, 13, 0)


class TestHelpers:

    def test_format_query_time(self):
        instant = normalize(2023, 2, 6, 4, 17, offset=180)
        assert format_query_time(instant) == "2023-02-06T01:17:00"

    def test_format_converts_to_utc(self):
        istanbul = datetime(2023, 2, 6, 4, 17, tzinfo=timezone(timedelta(hours=3)))
        assert format_query_time(istanbul) == "2023-02-06T01:17:00"

    def test_from_epoch_ms(self):
        assert from_epoch_ms(0) == _utc(1970, 1, 1)
        assert from_epoch_ms(1675647000000) == _utc(2023, 2, 6, 1, 30)

    def test_from_datetime_aware(self):
        value = datetime(2024, 1, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
        assert from_datetime(value) == _utc(2024, 1, 1, 0, 0)
        assert from_datetime(value).tzinfo == timezone.utc
