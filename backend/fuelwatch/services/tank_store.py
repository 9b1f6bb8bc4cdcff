from typing import Callable, List, Optional, Dict, Tuple
from datetime import datetime
import logging

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from fuelwatch.errors import DataUnavailable
from fuelwatch.models import (
    FuelTank,
    DipReading,
    TankGroup,
    UserRole,
    UserGroupPermission,
    UserSubgroupPermission,
)
from fuelwatch.schemas.permission import AccessibleGroup, PermissionSource
from fuelwatch.schemas.reading import DipReadingRecord, as_naive_utc
from fuelwatch.schemas.tank import TankRecord

logger = logging.getLogger(__name__)


class TankReadingStore:
    """
    Data-access boundary for tanks, dip readings and permissions.

    Loosely populated rows are turned into typed records here and nowhere
    else. Database failures surface as DataUnavailable.
    """

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def to_record(tank: FuelTank) -> TankRecord:
        return TankRecord(
            id=tank.id,
            group_name=tank.group.name,
            subgroup=tank.subgroup,
            location=tank.location,
            product_type=tank.product_type,
            safe_level=tank.safe_level,
            current_level=tank.current_level,
            min_level=tank.min_level,
            latitude=tank.latitude,
            longitude=tank.longitude,
        )

    def list_tanks(self, group_name: Optional[str] = None, subgroup: Optional[str] = None) -> List[TankRecord]:
        try:
            query = self.db.query(FuelTank).join(TankGroup).options(joinedload(FuelTank.group))
            if group_name:
                query = query.filter(TankGroup.name == group_name)
            if subgroup:
                query = query.filter(FuelTank.subgroup == subgroup)
            tanks = query.order_by(TankGroup.name, FuelTank.location, FuelTank.id).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load tanks: {e}")
            raise DataUnavailable("Tank source unavailable") from e
        return [self.to_record(t) for t in tanks]

    def get_tank(self, tank_id: int) -> Optional[TankRecord]:
        try:
            tank = self.db.query(FuelTank).options(joinedload(FuelTank.group)).filter(
                FuelTank.id == tank_id
            ).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load tank {tank_id}: {e}")
            raise DataUnavailable(f"Tank {tank_id} unavailable") from e
        return self.to_record(tank) if tank else None

    def get_readings(self, tank_id: int, since: Optional[datetime] = None) -> List[DipReadingRecord]:
        try:
            query = self.db.query(DipReading).filter(DipReading.tank_id == tank_id)
            if since:
                query = query.filter(DipReading.timestamp >= since)
            readings = query.order_by(DipReading.timestamp).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load readings for tank {tank_id}: {e}")
            raise DataUnavailable(f"Readings for tank {tank_id} unavailable") from e
        return [DipReadingRecord.model_validate(r) for r in readings]

    def readings_loader(self, since: Optional[datetime] = None) -> Callable[[int], List[DipReadingRecord]]:
        """Per-tank reading fetcher for TankMonitor.enrich."""
        return lambda tank_id: self.get_readings(tank_id, since=since)

    def add_reading(
        self,
        tank_id: int,
        level: float,
        timestamp: datetime,
        recorded_by: Optional[str] = None,
    ) -> DipReading:
        """
        Append a dip reading. A reading at an existing timestamp is returned
        as-is (readings are immutable). The tank's current level follows the
        newest reading.
        """
        tank = self.db.query(FuelTank).filter(FuelTank.id == tank_id).first()
        if not tank:
            raise HTTPException(status_code=404, detail="Tank not found")
        timestamp = as_naive_utc(timestamp)

        existing = self.db.query(DipReading).filter(
            DipReading.tank_id == tank_id,
            DipReading.timestamp == timestamp
        ).first()
        if existing:
            return existing

        newest = self.db.query(DipReading).filter(
            DipReading.tank_id == tank_id
        ).order_by(DipReading.timestamp.desc()).first()

        reading = DipReading(
            tank_id=tank_id,
            timestamp=timestamp,
            level=level,
            recorded_by=recorded_by
        )
        self.db.add(reading)

        if newest is None or timestamp > newest.timestamp:
            tank.current_level = level
            if tank.safe_level and tank.safe_level > 0:
                tank.current_level_percent = level * 100.0 / tank.safe_level

        self.db.commit()
        self.db.refresh(reading)
        return reading

    def list_groups(self) -> List[Tuple[str, List[str]]]:
        """
        Groups with their subgroups in configured order. Subgroup names seen
        on tanks but not configured are appended alphabetically.
        """
        try:
            groups = self.db.query(TankGroup).options(joinedload(TankGroup.subgroups)).order_by(TankGroup.name).all()
            observed = self.db.query(FuelTank.group_id, FuelTank.subgroup).filter(
                FuelTank.subgroup.isnot(None)
            ).distinct().all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load groups: {e}")
            raise DataUnavailable("Group source unavailable") from e

        seen_by_group: Dict[int, set] = {}
        for group_id, name in observed:
            seen_by_group.setdefault(group_id, set()).add(name)

        result = []
        for group in groups:
            configured = [s.name for s in group.subgroups]
            extra = sorted(seen_by_group.get(group.id, set()) - set(configured))
            result.append((group.name, configured + extra))
        return result

    def get_permission_source(self, user_id: str) -> PermissionSource:
        """
        Build the raw permission payload for a user. A granted group with no
        subgroup rows is unrestricted; with rows it is limited to them. A user
        without a role row gets role=None, which resolves to no access.
        """
        try:
            role_row = self.db.query(UserRole).filter(UserRole.user_id == user_id).first()
            if not role_row:
                logger.warning(f"No role found for user {user_id}")
                return PermissionSource(role=None)

            grants = self.db.query(UserGroupPermission).options(
                joinedload(UserGroupPermission.group)
            ).filter(UserGroupPermission.user_id == user_id).all()

            restrictions = self.db.query(UserSubgroupPermission).filter(
                UserSubgroupPermission.user_id == user_id
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to load permissions for user {user_id}: {e}")
            raise DataUnavailable(f"Permissions for user {user_id} unavailable") from e

        subgroups_by_group: Dict[int, List[str]] = {}
        for r in restrictions:
            subgroups_by_group.setdefault(r.group_id, []).append(r.subgroup_name)

        accessible = [
            AccessibleGroup(
                name=grant.group.name,
                subgroups=subgroups_by_group.get(grant.group_id)
            )
            for grant in grants
            if grant.group is not None
        ]

        return PermissionSource(
            role=role_row.role,
            is_admin=role_row.role == "admin",
            display_name=role_row.display_name,
            accessible_groups=accessible,
        )
