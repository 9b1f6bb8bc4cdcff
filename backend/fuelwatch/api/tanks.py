from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import List, Optional

from fuelwatch.api.deps import get_scope, get_session_context
from fuelwatch.config import settings
from fuelwatch.database import get_db
from fuelwatch.errors import DataUnavailable
from fuelwatch.schemas.monitor import FleetSummary, TankOutcome
from fuelwatch.schemas.permission import PermissionScope
from fuelwatch.schemas.reading import DipReadingCreate, DipReadingRecord, DipReadingResponse
from fuelwatch.schemas.tank import TankRecord
from fuelwatch.services.session import SessionContext
from fuelwatch.services.tank_monitor import TankMonitor, fleet_summary, sort_by_urgency
from fuelwatch.services.tank_store import TankReadingStore
from fuelwatch.services.visibility import can_view

router = APIRouter()


def _visible_outcomes(
    store: TankReadingStore,
    scope: PermissionScope,
    group: Optional[str] = None,
    subgroup: Optional[str] = None,
) -> List[TankOutcome]:
    now = datetime.utcnow()
    since = now - timedelta(days=settings.reading_lookback_days)
    try:
        tanks = store.list_tanks(group_name=group, subgroup=subgroup)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return TankMonitor().visible_tanks(scope, tanks, store.readings_loader(since), now=now)


def _get_visible_tank(store: TankReadingStore, tank_id: int, scope: PermissionScope) -> TankRecord:
    try:
        tank = store.get_tank(tank_id)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    # Hidden tanks look exactly like missing ones
    if not tank or not can_view(tank, scope):
        raise HTTPException(status_code=404, detail="Tank not found")
    return tank


@router.get("", response_model=List[TankOutcome])
async def list_tanks(
    group: Optional[str] = Query(None, description="Restrict to one group"),
    subgroup: Optional[str] = Query(None, description="Restrict to one subgroup"),
    sort: str = Query("location", enum=["location", "urgency"]),
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Tanks visible to the caller with status, forecast and active alert conditions."""
    outcomes = _visible_outcomes(TankReadingStore(db), scope, group, subgroup)
    if sort == "urgency":
        outcomes = sort_by_urgency(outcomes)
    return outcomes


@router.get("/summary", response_model=FleetSummary)
async def get_fleet_summary(
    group: Optional[str] = Query(None),
    subgroup: Optional[str] = Query(None),
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Status and alert counts across the caller's visible tanks."""
    return fleet_summary(_visible_outcomes(TankReadingStore(db), scope, group, subgroup))


@router.get("/{tank_id}", response_model=TankOutcome)
async def get_tank(
    tank_id: int,
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    store = TankReadingStore(db)
    tank = _get_visible_tank(store, tank_id, scope)
    now = datetime.utcnow()
    since = now - timedelta(days=settings.reading_lookback_days)
    return TankMonitor().enrich([tank], store.readings_loader(since), now=now)[0]


@router.get("/{tank_id}/readings", response_model=List[DipReadingRecord])
async def get_tank_readings(
    tank_id: int,
    days: int = Query(30, description="Number of days to fetch"),
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    store = TankReadingStore(db)
    _get_visible_tank(store, tank_id, scope)
    start_date = datetime.utcnow() - timedelta(days=days)
    try:
        return store.get_readings(tank_id, since=start_date)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/{tank_id}/readings", response_model=DipReadingResponse)
async def add_tank_reading(
    tank_id: int,
    reading: DipReadingCreate,
    context: Optional[SessionContext] = Depends(get_session_context),
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Record a dip reading. Duplicate timestamps return the existing reading."""
    store = TankReadingStore(db)
    _get_visible_tank(store, tank_id, scope)
    return store.add_reading(
        tank_id,
        reading.level,
        reading.timestamp or datetime.utcnow(),
        recorded_by=reading.recorded_by or (context.user_id if context else None)
    )
