from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from fuelwatch.database import get_db
from fuelwatch.schemas.permission import PermissionScope
from fuelwatch.services.permissions import ScopeCache
from fuelwatch.services.session import SessionContext, SessionLifecycle
from fuelwatch.services.tank_store import TankReadingStore

# Process-wide session owner; the scope cache listens for refresh/sign-out
session_lifecycle = SessionLifecycle()
scope_cache = ScopeCache()
session_lifecycle.subscribe(scope_cache.handle_session_event)


def get_session_context(x_user_id: Optional[str] = Header(None)) -> Optional[SessionContext]:
    if not x_user_id or not x_user_id.strip():
        return None
    return SessionContext(user_id=x_user_id.strip())


def require_session_context(context: Optional[SessionContext] = Depends(get_session_context)) -> SessionContext:
    if context is None:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return context


def get_scope(
    context: Optional[SessionContext] = Depends(get_session_context),
    db: Session = Depends(get_db)
) -> PermissionScope:
    """Resolved scope for the caller. Anonymous callers see nothing."""
    store = TankReadingStore(db)
    return scope_cache.get_or_resolve(context, store.get_permission_source)
