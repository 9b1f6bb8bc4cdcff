from pydantic import BaseModel, computed_field
from datetime import datetime
from typing import Optional


class ConsumptionEstimate(BaseModel):
    """
    Derived usage forecast for one tank. None means "undefined", never zero.
    """
    tank_id: Optional[int] = None
    rolling_avg: Optional[float] = None  # Liters/day over the trailing window
    prev_day_used: Optional[float] = None  # Liters over the 24h ending at the latest reading
    days_to_min_level: Optional[float] = None
    current_level: Optional[float] = None
    data_points: int = 0
    window_days: float = 7.0
    latest_reading_at: Optional[datetime] = None

    @computed_field
    @property
    def insufficient_history(self) -> bool:
        return self.rolling_avg is None
