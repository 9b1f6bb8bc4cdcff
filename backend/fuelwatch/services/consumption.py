from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple
import logging
import math

import numpy as np

from fuelwatch.errors import InvalidMeasurement
from fuelwatch.schemas.consumption import ConsumptionEstimate
from fuelwatch.schemas.reading import as_naive_utc

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = timedelta(days=7)
PREV_DAY = timedelta(days=1)
SECONDS_PER_DAY = 86400.0

Point = Tuple[datetime, float]


def _field(reading, name: str):
    if isinstance(reading, Mapping):
        return reading.get(name)
    return getattr(reading, name, None)


def validate_reading(reading) -> Point:
    """
    Extract (timestamp, level) from a reading, or raise InvalidMeasurement
    for missing timestamps and missing, non-numeric, NaN or negative levels.
    """
    ts = _field(reading, 'timestamp')
    if not isinstance(ts, datetime):
        raise InvalidMeasurement(f"Reading has no usable timestamp: {ts!r}")
    ts = as_naive_utc(ts)

    level = _field(reading, 'level')
    if level is None or isinstance(level, bool):
        raise InvalidMeasurement(f"Reading at {ts} has no level")
    try:
        value = float(level)
    except (TypeError, ValueError):
        raise InvalidMeasurement(f"Reading at {ts} has non-numeric level {level!r}")
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidMeasurement(f"Reading at {ts} has invalid level {value}")
    return ts, value


def _clean_points(readings: Iterable, tank_id: Optional[int]) -> List[Point]:
    points = []
    for reading in readings:
        try:
            points.append(validate_reading(reading))
        except InvalidMeasurement as e:
            logger.warning(f"Excluding reading for tank {tank_id}: {e}")
    # Same-instant duplicates sort lowest first so they never count as a drop
    points.sort(key=lambda p: (p[0], p[1]))
    return points


def _drop_total(points: List[Point]) -> Optional[float]:
    """Sum of level drops between consecutive points. Refills count as zero."""
    if len(points) < 2:
        return None
    levels = np.array([level for _, level in points], dtype=float)
    drops = np.clip(levels[:-1] - levels[1:], 0.0, None)
    return float(drops.sum())


def _drop_rate(points: List[Point]) -> Optional[float]:
    """Drop-only consumption per day across the span of `points`."""
    total = _drop_total(points)
    if total is None:
        return None
    span_days = (points[-1][0] - points[0][0]).total_seconds() / SECONDS_PER_DAY
    if span_days <= 0:
        return None
    return total / span_days


def estimate(
    readings: Iterable,
    window: timedelta = DEFAULT_WINDOW,
    current_level: Optional[float] = None,
    min_level: float = 0.0,
    tank_id: Optional[int] = None,
) -> ConsumptionEstimate:
    """
    Forecast usage for one tank from its dip readings.

    The trailing window walks wall-clock time back from the latest valid
    reading, so sparse data just yields fewer intervals. `current_level`
    defaults to the latest valid reading's level.

    Returns an estimate whose `rolling_avg` is None when fewer than two
    readings fall inside the window (insufficient history).
    """
    points = _clean_points(readings, tank_id)
    window_days = window.total_seconds() / SECONDS_PER_DAY

    if not points:
        return ConsumptionEstimate(
            tank_id=tank_id,
            current_level=current_level,
            window_days=window_days,
        )

    latest_ts, latest_level = points[-1]
    window_points = [p for p in points if p[0] >= latest_ts - window]
    day_points = [p for p in points if p[0] >= latest_ts - PREV_DAY]

    rolling_avg = _drop_rate(window_points)
    prev_day_used = _drop_total(day_points)

    level_now = current_level if current_level is not None else latest_level
    days_to_min = None
    if rolling_avg is not None and rolling_avg > 0:
        days_to_min = max(0.0, (level_now - (min_level or 0.0)) / rolling_avg)

    return ConsumptionEstimate(
        tank_id=tank_id,
        rolling_avg=rolling_avg,
        prev_day_used=prev_day_used,
        days_to_min_level=days_to_min,
        current_level=level_now,
        data_points=len(window_points),
        window_days=window_days,
        latest_reading_at=latest_ts,
    )
