from pydantic import BaseModel, ConfigDict, field_serializer
from datetime import datetime
from typing import Optional
import enum


class AlertKind(str, enum.Enum):
    CRITICAL_LEVEL = "critical_level"
    FORECAST_BREACH = "forecast_breach"
    STALE_DATA = "stale_data"


class AlertCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    tank_id: int
    kind: AlertKind
    resolved: bool = False
    message: Optional[str] = None


class TankAlertResponse(BaseModel):
    id: int
    tank_id: int
    kind: AlertKind
    message: Optional[str] = None
    resolved: bool
    created_at: datetime
    resolved_at: Optional[datetime] = None

    @field_serializer('created_at', 'resolved_at')
    def serialize_dt(self, dt: datetime, _info):
        if dt is None: return None
        if dt.tzinfo is None:
            return dt.isoformat() + 'Z'
        return dt

    class Config:
        from_attributes = True
