from pydantic import BaseModel, field_validator, model_validator
from typing import Optional


class TankRecord(BaseModel):
    """
    A tank as seen by the monitoring core.

    Optional fields from the data store are resolved here, once:
    `current_level_percent` is always derived from `current_level` and
    `safe_level`, and is None whenever `safe_level` is missing or zero.
    """
    id: int
    group_name: str
    subgroup: Optional[str] = None
    location: str
    product_type: Optional[str] = None
    safe_level: Optional[float] = None
    current_level: Optional[float] = None
    min_level: float = 0.0
    current_level_percent: Optional[float] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @field_validator('subgroup')
    @classmethod
    def blank_subgroup_is_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v

    @field_validator('min_level', mode='before')
    @classmethod
    def default_min_level(cls, v):
        return 0.0 if v is None else v

    @model_validator(mode='after')
    def derive_percent(self):
        if self.safe_level and self.safe_level > 0 and self.current_level is not None:
            self.current_level_percent = self.current_level * 100.0 / self.safe_level
        else:
            self.current_level_percent = None
        return self

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    class Config:
        from_attributes = True
