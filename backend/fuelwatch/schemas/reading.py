from pydantic import BaseModel, field_validator, field_serializer
from datetime import datetime, timezone
from typing import Optional


def as_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; convert offset-aware values to match."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


class DipReadingRecord(BaseModel):
    tank_id: int
    timestamp: datetime
    level: Optional[float] = None

    class Config:
        from_attributes = True


class DipReadingCreate(BaseModel):
    level: float
    timestamp: Optional[datetime] = None
    recorded_by: Optional[str] = None

    @field_validator('level')
    @classmethod
    def must_not_be_negative(cls, v):
        if v < 0:
            raise ValueError('Level cannot be negative')
        return v

    @field_validator('timestamp')
    @classmethod
    def to_utc(cls, v):
        return as_naive_utc(v)


class DipReadingResponse(BaseModel):
    id: int
    tank_id: int
    timestamp: datetime
    level: Optional[float] = None
    recorded_by: Optional[str] = None

    @field_serializer('timestamp')
    def serialize_dt(self, dt: datetime, _info):
        if dt.tzinfo is None:
            return dt.isoformat() + 'Z'
        return dt

    class Config:
        from_attributes = True
