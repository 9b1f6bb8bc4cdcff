from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from fuelwatch.api.deps import get_scope
from fuelwatch.database import get_db
from fuelwatch.errors import DataUnavailable
from fuelwatch.schemas.monitor import GroupResponse
from fuelwatch.schemas.permission import PermissionScope
from fuelwatch.services.tank_store import TankReadingStore
from fuelwatch.services.visibility import visible_subgroups

router = APIRouter()


@router.get("", response_model=List[GroupResponse])
async def list_groups(
    scope: PermissionScope = Depends(get_scope),
    db: Session = Depends(get_db)
):
    """Groups visible to the caller, each with the subgroups the caller may see."""
    store = TankReadingStore(db)
    try:
        groups = store.list_groups()
    except DataUnavailable as e:
        raise HTTPException(status_code=503, detail=str(e))

    result = []
    for name, subgroups in groups:
        if not scope.is_admin and scope.access_for(name) is None:
            continue
        result.append(GroupResponse(name=name, subgroups=visible_subgroups(scope, name, subgroups)))
    return result
