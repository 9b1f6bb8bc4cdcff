from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from fuelwatch.api.deps import get_scope
from fuelwatch.database import get_db
from fuelwatch.errors import DataUnavailable
from fuelwatch.schemas.alert import TankAlertResponse
from fuelwatch.schemas.permission import PermissionScope
from fuelwatch.services.alert_sink import AlertSink
from fuelwatch.services.tank_store import TankReadingStore
from fuelwatch.services.visibility import filter_tanks
from fuelwatch.tasks.alert_update import evaluate_alerts

router = APIRouter()


@router.get("", response_model=List[TankAlertResponse])
async def list_active_alerts(
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Unresolved stored alerts for tanks the caller may see."""
    try:
        tanks = filter_tanks(TankReadingStore(db).list_tanks(), scope)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
    return AlertSink(db).active_alerts([t.id for t in tanks])


@router.post("/evaluate")
async def run_alert_evaluation(
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Re-evaluate and reconcile alerts for every tank. Admin only."""
    if not scope.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    try:
        return evaluate_alerts(db)
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))
