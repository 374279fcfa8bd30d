"""Tests for time and timezone utilities."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest
import pytz

from cadence.core.errors import TimezoneError
from cadence.core.time import (
    ensure_utc,
    format_utc_iso8601,
    get_current_utc,
    local_midnight_utc,
    parse_utc_iso8601,
    resolve_timezone,
    span_has_dst_transition,
    to_local_date,
)


class TestResolveTimezone:
    def test_resolves_iana_name(self):
        tz = resolve_timezone("America/Toronto")
        assert tz.zone == "America/Toronto"

    def test_strips_whitespace(self):
        assert resolve_timezone("  Europe/Brussels ").zone == "Europe/Brussels"

    def test_passes_tzinfo_through(self):
        tz = pytz.timezone("Asia/Tokyo")
        assert resolve_timezone(tz) is tz

    def test_unknown_name_raises(self):
        with pytest.raises(TimezoneError) as exc_info:
            resolve_timezone("Mars/Olympus_Mons")

        assert exc_info.value.timezone_name == "Mars/Olympus_Mons"
        assert "Mars/Olympus_Mons" in str(exc_info.value)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_unset_timezone_raises(self, value):
        with pytest.raises(TimezoneError, match="not set"):
            resolve_timezone(value)


class TestUtcDiscipline:
    def test_current_utc_is_aware(self):
        now = get_current_utc()
        assert now.tzinfo is not None
        assert now.utcoffset() == timedelta(0)

    def test_naive_is_taken_as_utc(self):
        result = ensure_utc(datetime(2025, 10, 6, 14, 0))
        assert result == datetime(2025, 10, 6, 14, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        toronto = pytz.timezone("America/Toronto")
        local = toronto.localize(datetime(2025, 10, 6, 10, 0))

        assert ensure_utc(local) == datetime(2025, 10, 6, 14, 0, tzinfo=timezone.utc)

    def test_format_and_parse(self):
        dt = datetime(2025, 10, 6, 14, 30, tzinfo=timezone.utc)

        text = format_utc_iso8601(dt)

        assert text.startswith("2025-10-06T14:30:00")
        assert parse_utc_iso8601(text) == dt

    def test_parse_accepts_z_suffix(self):
        assert parse_utc_iso8601("2025-10-06T14:00:00Z") == datetime(2025, 10, 6, 14, 0, tzinfo=timezone.utc)

    def test_parse_converts_offset(self):
        assert parse_utc_iso8601("2025-10-06T10:00:00-04:00") == datetime(2025, 10, 6, 14, 0, tzinfo=timezone.utc)


class TestLocalMidnight:
    def test_regular_day(self):
        tz = resolve_timezone("America/New_York")
        # EDT is UTC-4 in October
        assert local_midnight_utc(date(2025, 10, 8), tz) == datetime(2025, 10, 8, 4, 0, tzinfo=timezone.utc)

    def test_winter_day(self):
        tz = resolve_timezone("America/New_York")
        assert local_midnight_utc(date(2025, 1, 15), tz) == datetime(2025, 1, 15, 5, 0, tzinfo=timezone.utc)

    def test_nonexistent_midnight_maps_after_gap(self):
        # Santiago springs forward at local midnight: 00:00 -> 01:00 on 2024-09-08
        tz = resolve_timezone("America/Santiago")
        result = local_midnight_utc(date(2024, 9, 8), tz)

        assert result == datetime(2024, 9, 8, 4, 0, tzinfo=timezone.utc)
        assert result.astimezone(tz).hour == 1

    def test_to_local_date_crosses_midnight(self):
        tz = resolve_timezone("America/Toronto")
        instant = datetime(2025, 10, 7, 2, 0, tzinfo=timezone.utc)

        assert to_local_date(instant, tz) == date(2025, 10, 6)


class TestDstDetection:
    def test_spring_forward_day(self):
        tz = resolve_timezone("America/New_York")
        assert span_has_dst_transition(date(2025, 3, 9), date(2025, 3, 10), tz)

    def test_fall_back_day(self):
        tz = resolve_timezone("America/New_York")
        assert span_has_dst_transition(date(2025, 11, 2), date(2025, 11, 3), tz)

    def test_regular_day(self):
        tz = resolve_timezone("America/New_York")
        assert not span_has_dst_transition(date(2025, 10, 8), date(2025, 10, 9), tz)

    def test_utc_never_transitions(self):
        assert not span_has_dst_transition(date(2025, 3, 9), date(2025, 3, 10), resolve_timezone("UTC"))

    def test_span_containing_transition(self):
        tz = resolve_timezone("Europe/Brussels")
        assert span_has_dst_transition(date(2025, 3, 1), date(2025, 4, 1), tz)
        assert not span_has_dst_transition(date(2025, 4, 1), date(2025, 5, 1), tz)
