from fuelwatch.schemas.tank import TankRecord
from fuelwatch.schemas.reading import DipReadingRecord, DipReadingCreate, DipReadingResponse
from fuelwatch.schemas.consumption import ConsumptionEstimate
from fuelwatch.schemas.alert import AlertKind, AlertCondition, TankAlertResponse
from fuelwatch.schemas.permission import (
    Role, AccessibleGroup, PermissionSource, GroupAccess, PermissionScope,
    GroupAccessResponse, PermissionScopeResponse,
)

__all__ = [
    "TankRecord",
    "DipReadingRecord", "DipReadingCreate", "DipReadingResponse",
    "ConsumptionEstimate",
    "AlertKind", "AlertCondition", "TankAlertResponse",
    "Role", "AccessibleGroup", "PermissionSource", "GroupAccess", "PermissionScope",
    "GroupAccessResponse", "PermissionScopeResponse",
]
