from fuelwatch.models.tank_group import TankGroup, TankSubgroup
from fuelwatch.models.fuel_tank import FuelTank
from fuelwatch.models.dip_reading import DipReading
from fuelwatch.models.user_permission import UserRole, UserGroupPermission, UserSubgroupPermission
from fuelwatch.models.tank_alert import TankAlert

__all__ = [
    "TankGroup",
    "TankSubgroup",
    "FuelTank",
    "DipReading",
    "UserRole",
    "UserGroupPermission",
    "UserSubgroupPermission",
    "TankAlert",
]
