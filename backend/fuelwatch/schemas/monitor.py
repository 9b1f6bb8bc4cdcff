from pydantic import BaseModel
from typing import Optional, List, Dict

from fuelwatch.schemas.tank import TankRecord
from fuelwatch.schemas.consumption import ConsumptionEstimate
from fuelwatch.schemas.alert import AlertCondition
from fuelwatch.services.status import FuelStatus


class TankError(BaseModel):
    kind: str
    detail: str


class TankOutcome(BaseModel):
    """
    Per-tank result of the enrichment pipeline. Exactly one of
    `estimate` or `error` is set.
    """
    tank: TankRecord
    status: FuelStatus = FuelStatus.UNKNOWN
    estimate: Optional[ConsumptionEstimate] = None
    alerts: List[AlertCondition] = []
    error: Optional[TankError] = None

    @property
    def group_name(self) -> str:
        return self.tank.group_name

    @property
    def subgroup(self) -> Optional[str]:
        return self.tank.subgroup

    @property
    def ok(self) -> bool:
        return self.error is None


class FleetSummary(BaseModel):
    total_tanks: int = 0
    by_status: Dict[str, int] = {}
    alerts_by_kind: Dict[str, int] = {}
    average_fill_percent: Optional[float] = None
    tanks_with_errors: int = 0
    tanks_with_insufficient_history: int = 0


class GroupResponse(BaseModel):
    name: str
    subgroups: List[str] = []
