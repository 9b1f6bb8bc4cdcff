from datetime import datetime, timedelta
from statistics import mean
from typing import Callable, Iterable, List, Optional
import logging
import math

from fuelwatch.config import settings
from fuelwatch.errors import FuelWatchError
from fuelwatch.schemas.monitor import FleetSummary, TankError, TankOutcome
from fuelwatch.schemas.permission import PermissionScope
from fuelwatch.schemas.alert import AlertKind
from fuelwatch.schemas.tank import TankRecord
from fuelwatch.services.alerts import AlertEvaluator
from fuelwatch.services.consumption import estimate
from fuelwatch.services.status import FuelStatus, classify
from fuelwatch.services.visibility import filter_tanks

logger = logging.getLogger(__name__)

ReadingsFor = Callable[[int], Iterable]

STATUS_RANK = {
    FuelStatus.CRITICAL: 0,
    FuelStatus.LOW: 1,
    FuelStatus.NORMAL: 2,
    FuelStatus.UNKNOWN: 3,
}


class TankMonitor:
    """
    Composes the enrichment pipeline (estimate, classify, evaluate) with the
    visibility filter. One tank's failure never aborts the batch.
    """

    def __init__(self, evaluator: Optional[AlertEvaluator] = None, window: Optional[timedelta] = None):
        self.evaluator = evaluator or AlertEvaluator()
        self.window = window or timedelta(days=settings.rolling_window_days)

    def enrich_tank(self, tank: TankRecord, readings: Iterable, now: datetime) -> TankOutcome:
        forecast = estimate(
            readings,
            window=self.window,
            current_level=tank.current_level,
            min_level=tank.min_level,
            tank_id=tank.id,
        )
        status = classify(tank.current_level_percent)
        alerts = self.evaluator.evaluate(tank, status, forecast, now=now)
        return TankOutcome(
            tank=tank,
            status=status,
            estimate=forecast,
            alerts=sorted(alerts, key=lambda a: a.kind.value),
        )

    def enrich(
        self,
        tanks: Iterable[TankRecord],
        readings_for: ReadingsFor,
        now: Optional[datetime] = None,
    ) -> List[TankOutcome]:
        now = now or datetime.utcnow()
        outcomes = []
        for tank in tanks:
            try:
                outcomes.append(self.enrich_tank(tank, readings_for(tank.id), now))
            except FuelWatchError as e:
                logger.warning(f"Tank {tank.id} ({tank.location}): {e}")
                outcomes.append(TankOutcome(tank=tank, error=TankError(kind=e.kind, detail=str(e))))
            except Exception as e:
                logger.error(f"Unexpected failure enriching tank {tank.id}: {e}")
                outcomes.append(TankOutcome(tank=tank, error=TankError(kind="unexpected", detail=str(e))))
        return outcomes

    def visible_tanks(
        self,
        scope: Optional[PermissionScope],
        tanks: Iterable[TankRecord],
        readings_for: ReadingsFor,
        now: Optional[datetime] = None,
    ) -> List[TankOutcome]:
        # Filtering commutes with enrichment (it only reads group/subgroup),
        # so filter first to skip reading fetches for hidden tanks.
        return self.enrich(filter_tanks(tanks, scope), readings_for, now=now)


def sort_by_urgency(outcomes: Iterable[TankOutcome]) -> List[TankOutcome]:
    """Critical first, then sooner depletion; unknown status and errors last."""
    def key(outcome: TankOutcome):
        days = outcome.estimate.days_to_min_level if outcome.estimate else None
        return (
            STATUS_RANK[outcome.status],
            math.inf if days is None else days,
            outcome.tank.location,
        )
    return sorted(outcomes, key=key)


def fleet_summary(outcomes: Iterable[TankOutcome]) -> FleetSummary:
    outcomes = list(outcomes)
    by_status = {status.value: 0 for status in FuelStatus}
    alerts_by_kind = {kind.value: 0 for kind in AlertKind}
    fills = []

    for outcome in outcomes:
        by_status[outcome.status.value] += 1
        for alert in outcome.alerts:
            alerts_by_kind[alert.kind.value] += 1
        if outcome.tank.current_level_percent is not None:
            fills.append(outcome.tank.current_level_percent)

    return FleetSummary(
        total_tanks=len(outcomes),
        by_status=by_status,
        alerts_by_kind=alerts_by_kind,
        average_fill_percent=round(mean(fills), 1) if fills else None,
        tanks_with_errors=sum(1 for o in outcomes if o.error),
        tanks_with_insufficient_history=sum(
            1 for o in outcomes if o.estimate and o.estimate.insufficient_history
        ),
    )
