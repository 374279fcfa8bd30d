"""Tests for the rollup engine.

Covers the end-to-end scenarios of the engine (daily sum, weekly count,
rolling sum, boolean, invalid rolling configuration) and the properties every
rollup must hold: coverage, contiguity, gap-fill and idempotence.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest
import pytz

from cadence.core.errors import ConfigurationError, TimezoneError
from cadence.core.models import MONDAY, HabitConfig, LogEntry
from cadence.rollups.engine import build_buckets, rollup, summarize
from cadence.rollups.time_windows import generate_buckets


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def local(tz_name: str, *args) -> datetime:
    return pytz.timezone(tz_name).localize(datetime(*args)).astimezone(timezone.utc)


class ExplodingLogs:
    """Log snapshot that fails the test when read."""

    def __iter__(self):
        raise AssertionError("logs were read")

    def __len__(self):
        raise AssertionError("logs were read")


class TestScenarios:
    def test_daily_sum_in_toronto(self):
        config = HabitConfig(
            id="reading",
            aggregation_kind="sum",
            target_per_period=60,
            period_kind="daily",
            timezone="America/Toronto",
            unit_label="minutes",
        )
        logs = [
            LogEntry(occurred_at_utc=local("America/Toronto", 2025, 10, 6, 20, 0), quantity=45),
            LogEntry(occurred_at_utc=local("America/Toronto", 2025, 10, 7, 21, 30), quantity=65),
        ]

        buckets = rollup(
            config,
            logs,
            local("America/Toronto", 2025, 10, 6),
            local("America/Toronto", 2025, 10, 8),
        )

        assert [b.value for b in buckets] == [Decimal("45.00"), Decimal("65.00"), Decimal("0.00")]
        assert [b.progress_ratio for b in buckets] == [Decimal("0.7500"), Decimal("1.0833"), Decimal("0.0000")]
        assert buckets[0].start == utc(2025, 10, 6, 4)
        assert [b.local_start for b in buckets] == [date(2025, 10, 6), date(2025, 10, 7), date(2025, 10, 8)]

    def test_weekly_count(self):
        config = HabitConfig(
            id="gym",
            aggregation_kind="count",
            target_per_period=3,
            period_kind="weekly",
            week_start_day=MONDAY,
            timezone="UTC",
        )
        # Tuesday, Wednesday and Friday of the week starting Monday Oct 6
        logs = [LogEntry(occurred_at_utc=utc(2025, 10, day, 18), quantity=1) for day in (7, 8, 10)]

        buckets = rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 12, 12))

        assert len(buckets) == 1
        assert buckets[0].start == utc(2025, 10, 6)
        assert buckets[0].end == utc(2025, 10, 13)
        assert buckets[0].value == Decimal("3.00")
        assert buckets[0].progress_ratio == Decimal("1.0000")
        assert buckets[0].log_count == 3

    def test_rolling_sum(self):
        anchor = date(2025, 10, 6)  # Monday
        config = HabitConfig(
            id="water",
            aggregation_kind="sum",
            target_per_period=14,
            period_kind="rolling",
            rolling_length_days=7,
            anchor_date=anchor,
            timezone="UTC",
            unit_label="liters",
        )
        logs = [
            LogEntry(occurred_at_utc=utc(2025, 10, 6 + offset, 12), quantity=2)
            for offset in range(7)
        ]

        buckets = rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 12, 23))

        assert len(buckets) == 1
        assert buckets[0].local_start == anchor
        assert buckets[0].local_end == anchor + timedelta(days=7)
        assert buckets[0].value == Decimal("14.00")
        assert buckets[0].progress_ratio == Decimal("1.0000")

    def test_boolean(self):
        config = HabitConfig(
            id="meditate",
            aggregation_kind="boolean",
            target_per_period=1,
            period_kind="daily",
            timezone="UTC",
        )
        logs = [LogEntry(occurred_at_utc=utc(2025, 10, 7, 7), quantity=0)]

        buckets = rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 8))

        assert [b.value for b in buckets] == [Decimal("0.00"), Decimal("1.00"), Decimal("0.00")]
        assert [b.progress_ratio for b in buckets] == [Decimal("0"), Decimal("1"), Decimal("0")]

    def test_rolling_without_length_fails_before_reading_logs(self):
        config = HabitConfig(
            id="broken",
            aggregation_kind="sum",
            target_per_period=10,
            period_kind="rolling",
            anchor_date=date(2025, 10, 6),
            timezone="UTC",
        )

        with pytest.raises(ConfigurationError):
            rollup(config, ExplodingLogs(), utc(2025, 10, 6), utc(2025, 10, 20))

    def test_unknown_timezone_fails_before_reading_logs(self):
        config = HabitConfig(
            id="tz",
            aggregation_kind="sum",
            target_per_period=10,
            period_kind="daily",
            timezone="Atlantis/Capital",
        )

        with pytest.raises(TimezoneError):
            rollup(config, ExplodingLogs(), utc(2025, 10, 6), utc(2025, 10, 7))


class TestProperties:
    @pytest.fixture
    def config(self):
        return HabitConfig(
            id="steps",
            aggregation_kind="sum",
            target_per_period="10000",
            period_kind="daily",
            timezone="America/New_York",
        )

    @pytest.fixture
    def logs(self):
        start = utc(2025, 3, 1, 15)
        return [LogEntry(occurred_at_utc=start + timedelta(hours=13 * i), quantity="1234.5") for i in range(50)]

    def test_coverage_and_contiguity(self, config, logs):
        range_start = utc(2025, 3, 2, 2)
        range_end = utc(2025, 3, 20, 17)

        buckets = rollup(config, logs, range_start, range_end)

        assert buckets[0].start <= range_start
        assert buckets[-1].end >= range_end
        for previous, current in zip(buckets, buckets[1:]):
            assert previous.end == current.start

    def test_gap_fill(self, config):
        buckets = rollup(config, [], utc(2025, 3, 1, 12), utc(2025, 3, 14, 12))

        assert len(buckets) == 14
        assert all(b.value == Decimal("0.00") for b in buckets)
        assert all(b.log_count == 0 for b in buckets)

    def test_idempotent(self, config, logs):
        first = rollup(config, logs, utc(2025, 3, 1, 12), utc(2025, 3, 25, 12))
        second = rollup(config, logs, utc(2025, 3, 1, 12), utc(2025, 3, 25, 12))

        assert first == second

    def test_prebuilt_windows_match_rollup(self, config, logs):
        windows = generate_buckets(config, utc(2025, 3, 1, 12), utc(2025, 3, 25, 12))

        assert build_buckets(config, logs, windows) == rollup(config, logs, utc(2025, 3, 1, 12), utc(2025, 3, 25, 12))

    def test_sum_matches_logs_in_span(self, config, logs):
        buckets = rollup(config, logs, utc(2025, 3, 1, 12), utc(2025, 3, 25, 12))

        span_start, span_end = buckets[0].start, buckets[-1].end
        expected = sum(
            (entry.quantity for entry in logs if span_start <= entry.occurred_at_utc < span_end),
            Decimal("0"),
        )

        assert sum((b.value for b in buckets), Decimal("0")) == expected

    def test_dst_bucket_is_flagged(self, config):
        buckets = rollup(config, [], utc(2025, 3, 8, 12), utc(2025, 3, 10, 12))

        assert [b.has_dst_transition for b in buckets] == [False, True, False]
        assert buckets[1].end - buckets[1].start == timedelta(hours=23)

    def test_boundary_log_counts_in_later_bucket(self):
        config = HabitConfig(id=1, aggregation_kind="count", target_per_period=1, period_kind="daily", timezone="UTC")
        logs = [LogEntry(occurred_at_utc=utc(2025, 10, 7), quantity=1)]

        buckets = rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 7))

        assert [b.value for b in buckets] == [Decimal("0.00"), Decimal("1.00")]

    def test_zero_target_ratio(self):
        config = HabitConfig(id=1, aggregation_kind="sum", target_per_period=0, period_kind="daily", timezone="UTC")
        logs = [LogEntry(occurred_at_utc=utc(2025, 10, 6, 9), quantity=5)]

        buckets = rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 6))

        assert buckets[0].value == Decimal("5.00")
        assert buckets[0].progress_ratio is None


class TestSummarize:
    def test_totals(self):
        config = HabitConfig(id=1, aggregation_kind="sum", target_per_period=60, period_kind="daily", timezone="UTC")
        logs = [
            LogEntry(occurred_at_utc=utc(2025, 10, 6, 12), quantity=45),
            LogEntry(occurred_at_utc=utc(2025, 10, 7, 12), quantity=65),
        ]

        summary = summarize(rollup(config, logs, utc(2025, 10, 6), utc(2025, 10, 8)))

        assert summary.bucket_count == 3
        assert summary.buckets_met == 1
        assert summary.total_value == Decimal("110.00")
        assert summary.total_target == Decimal("180.00")
        assert summary.overall_ratio == Decimal("0.6111")
        assert summary.to_dict()["overall_ratio"] == "0.6111"

    def test_empty(self):
        summary = summarize([])

        assert summary.bucket_count == 0
        assert summary.overall_ratio is None
