from datetime import datetime, timedelta
from typing import FrozenSet, Optional

from fuelwatch.config import settings
from fuelwatch.schemas.alert import AlertCondition, AlertKind
from fuelwatch.schemas.consumption import ConsumptionEstimate
from fuelwatch.schemas.tank import TankRecord
from fuelwatch.services.status import FuelStatus


class AlertEvaluator:
    """
    Derives active alert conditions for a tank. Holds only thresholds, no
    state, and does not deduplicate against earlier results; reconciling
    with stored alerts is the AlertSink's job.
    """

    def __init__(
        self,
        stale_after: Optional[timedelta] = None,
        forecast_breach_days: Optional[float] = None,
    ):
        self.stale_after = stale_after or timedelta(minutes=settings.stale_after_minutes)
        self.forecast_breach_days = (
            settings.forecast_breach_days if forecast_breach_days is None else forecast_breach_days
        )

    def evaluate(
        self,
        tank: TankRecord,
        status: FuelStatus,
        estimate: Optional[ConsumptionEstimate],
        now: Optional[datetime] = None,
    ) -> FrozenSet[AlertCondition]:
        now = now or datetime.utcnow()
        alerts = set()

        if status == FuelStatus.CRITICAL:
            percent = tank.current_level_percent
            alerts.add(AlertCondition(
                tank_id=tank.id,
                kind=AlertKind.CRITICAL_LEVEL,
                message=(
                    f"{tank.location} is at {percent:.1f}% of safe level"
                    if percent is not None else f"{tank.location} is at critical level"
                ),
            ))

        days = estimate.days_to_min_level if estimate else None
        if days is not None and days <= self.forecast_breach_days:
            alerts.add(AlertCondition(
                tank_id=tank.id,
                kind=AlertKind.FORECAST_BREACH,
                message=f"{tank.location} reaches minimum level in {days:.1f} days",
            ))

        last_seen = estimate.latest_reading_at if estimate else None
        if last_seen is None or now - last_seen > self.stale_after:
            alerts.add(AlertCondition(
                tank_id=tank.id,
                kind=AlertKind.STALE_DATA,
                message=(
                    f"No reading for {tank.location} since {last_seen.isoformat()}"
                    if last_seen else f"No readings recorded for {tank.location}"
                ),
            ))

        return frozenset(alerts)
