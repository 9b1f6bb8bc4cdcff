"""
Tests for rolling-average consumption and days-to-minimum forecasting.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest

from fuelwatch.errors import InvalidMeasurement
from fuelwatch.schemas.reading import DipReadingRecord
from fuelwatch.services.consumption import estimate, validate_reading

T0 = datetime(2026, 3, 1, 8, 0, 0)


def reading(day_offset, level, tank_id=1):
    return DipReadingRecord(tank_id=tank_id, timestamp=T0 + timedelta(days=day_offset), level=level)


class TestRollingAverage:
    """Drop-only rolling average over the trailing window."""

    def test_three_daily_readings(self):
        readings = [reading(0, 5000), reading(1, 4700), reading(2, 4300)]

        result = estimate(readings, min_level=500, tank_id=1)

        assert result.rolling_avg == pytest.approx(350.0)
        assert result.current_level == 4300
        assert result.days_to_min_level == pytest.approx((4300 - 500) / 350)
        assert result.days_to_min_level == pytest.approx(10.857, abs=1e-3)
        assert result.data_points == 3
        assert result.insufficient_history is False

    def test_refills_count_as_zero_consumption(self):
        readings = [reading(0, 5000), reading(1, 4000), reading(2, 9000), reading(3, 8500)]

        result = estimate(readings)

        # 1000 + 0 + 500 over 3 days
        assert result.rolling_avg == pytest.approx(500.0)

    def test_readings_outside_window_are_ignored(self):
        readings = [reading(0, 9000), reading(10, 5000), reading(11, 4800), reading(12, 4500)]

        result = estimate(readings, window=timedelta(days=7))

        assert result.data_points == 3
        assert result.rolling_avg == pytest.approx(250.0)

    def test_sparse_readings_use_wall_clock_time(self):
        readings = [reading(0, 5000), reading(4, 4200)]

        result = estimate(readings, window=timedelta(days=7))

        assert result.rolling_avg == pytest.approx(200.0)

    def test_no_drops_gives_zero_rate_and_undefined_forecast(self):
        readings = [reading(0, 5000), reading(1, 5000), reading(2, 5200)]

        result = estimate(readings, min_level=500)

        assert result.rolling_avg == 0.0
        assert result.days_to_min_level is None


class TestInsufficientHistory:
    """Fewer than two qualifying readings is unknown, not zero."""

    def test_no_readings(self):
        result = estimate([], current_level=3000, tank_id=7)

        assert result.rolling_avg is None
        assert result.prev_day_used is None
        assert result.days_to_min_level is None
        assert result.insufficient_history is True
        assert result.current_level == 3000
        assert result.latest_reading_at is None

    def test_single_reading(self):
        result = estimate([reading(0, 4000)])

        assert result.rolling_avg is None
        assert result.days_to_min_level is None
        assert result.insufficient_history is True
        assert result.latest_reading_at == T0

    def test_only_one_reading_inside_window(self):
        readings = [reading(0, 5000), reading(30, 4000)]

        result = estimate(readings, window=timedelta(days=7))

        assert result.rolling_avg is None
        assert result.data_points == 1

    def test_duplicate_timestamps_have_no_elapsed_time(self):
        readings = [reading(0, 5000), reading(0, 4900)]

        assert estimate(readings).rolling_avg is None


class TestPrevDayUsed:

    def test_last_twenty_four_hours_only(self):
        readings = [
            reading(0, 6000),
            reading(1, 5000),
            reading(1.5, 4800),
            reading(2, 4500),
        ]

        result = estimate(readings)

        # Readings at day 1, 1.5 and 2 fall in the last 24h
        assert result.prev_day_used == pytest.approx(500.0)

    def test_refill_inside_day_counts_as_zero(self):
        readings = [reading(0, 2000), reading(0.5, 8000), reading(1, 7600)]

        assert estimate(readings).prev_day_used == pytest.approx(400.0)

    def test_undefined_with_single_recent_reading(self):
        readings = [reading(0, 5000), reading(3, 4000)]

        assert estimate(readings).prev_day_used is None


class TestDaysToMinimum:

    def test_never_negative_when_below_minimum(self):
        readings = [reading(0, 1000), reading(1, 600), reading(2, 300)]

        result = estimate(readings, min_level=500)

        assert result.rolling_avg == pytest.approx(350.0)
        assert result.days_to_min_level == 0.0

    def test_uses_supplied_current_level(self):
        readings = [reading(0, 5000), reading(1, 4700), reading(2, 4300)]

        result = estimate(readings, current_level=4000, min_level=500)

        assert result.days_to_min_level == pytest.approx(10.0)

    def test_missing_min_level_treated_as_zero(self):
        readings = [reading(0, 1000), reading(1, 900)]

        result = estimate(readings, min_level=None)

        assert result.days_to_min_level == pytest.approx(9.0)


class TestOrderingAndValidation:

    def test_invariant_to_input_order(self):
        readings = [reading(d, 5000 - d * 137 + (300 if d == 3 else 0)) for d in range(8)]
        shuffled = readings[:]
        random.Random(42).shuffle(shuffled)

        assert estimate(shuffled, min_level=200) == estimate(readings, min_level=200)

    def test_invalid_levels_are_excluded(self):
        readings = [
            reading(0, 5000),
            DipReadingRecord(tank_id=1, timestamp=T0 + timedelta(hours=12), level=None),
            reading(1, 4700),
            {"timestamp": T0 + timedelta(days=1, hours=6), "level": "n/a"},
            {"timestamp": T0 + timedelta(days=1, hours=12), "level": -20},
            {"timestamp": T0 + timedelta(days=1, hours=18), "level": float("nan")},
            reading(2, 4300),
        ]

        result = estimate(readings, min_level=500)

        assert result.data_points == 3
        assert result.rolling_avg == pytest.approx(350.0)

    def test_mixes_aware_and_naive_timestamps(self):
        perth = timezone(timedelta(hours=8))
        readings = [
            reading(0, 5000),
            {"timestamp": (T0 + timedelta(days=1, hours=8)).replace(tzinfo=perth), "level": 4700},
            reading(2, 4300),
        ]

        result = estimate(readings, min_level=500)

        assert result.data_points == 3
        assert result.rolling_avg == pytest.approx(350.0)
        assert result.latest_reading_at == T0 + timedelta(days=2)

    def test_validate_reading_converts_to_utc(self):
        ts = datetime(2026, 3, 1, 16, 0, tzinfo=timezone(timedelta(hours=8)))

        assert validate_reading({"timestamp": ts, "level": 10}) == (datetime(2026, 3, 1, 8, 0), 10.0)

    def test_accepts_mappings(self):
        readings = [
            {"timestamp": T0, "level": 5000},
            {"timestamp": T0 + timedelta(days=1), "level": 4600},
        ]

        assert estimate(readings).rolling_avg == pytest.approx(400.0)

    @pytest.mark.parametrize("bad", [
        {"timestamp": T0, "level": None},
        {"timestamp": T0, "level": "abc"},
        {"timestamp": T0, "level": -1},
        {"timestamp": "2026-03-01", "level": 100},
        {"level": 100},
    ])
    def test_validate_reading_rejects(self, bad):
        with pytest.raises(InvalidMeasurement):
            validate_reading(bad)
