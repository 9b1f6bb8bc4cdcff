"""
Failure types for the tank monitoring core.

Nothing here is process-fatal: per-tank failures are captured into a
TankOutcome, and permission failures collapse to a zero-access scope.
Insufficient reading history is not an error at all; it is reported on the
ConsumptionEstimate itself.
"""


class FuelWatchError(Exception):
    """Base class for all fuelwatch errors."""

    kind = "error"


class DataUnavailable(FuelWatchError):
    """A collaborator returned nothing or failed (e.g. database unreachable)."""

    kind = "data_unavailable"


class PermissionUnresolved(FuelWatchError):
    """The caller's role or group scope could not be determined."""

    kind = "permission_unresolved"


class InvalidMeasurement(FuelWatchError):
    """A dip reading level that is missing, non-numeric or negative."""

    kind = "invalid_measurement"
