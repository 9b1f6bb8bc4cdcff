import enum
import math
from numbers import Real
from typing import Optional

# Percent-full thresholds. Boundary values belong to the lower tier.
CRITICAL_THRESHOLD = 20.0
LOW_THRESHOLD = 40.0


class FuelStatus(str, enum.Enum):
    CRITICAL = "critical"
    LOW = "low"
    NORMAL = "normal"
    UNKNOWN = "unknown"


def classify(percent: Optional[float]) -> FuelStatus:
    """
    Map a fill percentage to a status tier.

    Out-of-range values are classified as they are (-5 is critical, 130 is
    normal). Missing, NaN or non-numeric input is UNKNOWN rather than normal.
    """
    if percent is None or isinstance(percent, bool) or not isinstance(percent, Real):
        return FuelStatus.UNKNOWN
    if math.isnan(percent):
        return FuelStatus.UNKNOWN
    if percent <= CRITICAL_THRESHOLD:
        return FuelStatus.CRITICAL
    if percent <= LOW_THRESHOLD:
        return FuelStatus.LOW
    return FuelStatus.NORMAL
