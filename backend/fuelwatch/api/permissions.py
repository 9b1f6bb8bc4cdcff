from fastapi import APIRouter, Depends

from fuelwatch.api.deps import get_scope, require_session_context, session_lifecycle
from fuelwatch.schemas.permission import GroupAccessResponse, PermissionScope, PermissionScopeResponse
from fuelwatch.services.session import SessionContext

router = APIRouter()


def _to_response(context: SessionContext, scope: PermissionScope) -> PermissionScopeResponse:
    return PermissionScopeResponse(
        user_id=context.user_id,
        role=scope.role,
        is_admin=scope.is_admin,
        groups=[
            GroupAccessResponse(
                name=access.name,
                unrestricted=access.unrestricted,
                subgroups=sorted(access.subgroups or [])
            )
            for access in sorted(scope.groups.values(), key=lambda a: a.name)
        ]
    )


@router.get("/me", response_model=PermissionScopeResponse)
async def get_my_permissions(
    context: SessionContext = Depends(require_session_context),
    scope: PermissionScope = Depends(get_scope)
):
    """Resolved group/subgroup scope for the calling user."""
    return _to_response(context, scope)


@router.post("/me/refresh")
async def refresh_my_permissions(context: SessionContext = Depends(require_session_context)):
    """Drop the cached scope so the next request re-reads the permission source."""
    session_lifecycle.refresh(context)
    return {"message": "Permissions will be reloaded"}


@router.post("/me/sign-out")
async def sign_out(context: SessionContext = Depends(require_session_context)):
    session_lifecycle.end(context)
    return {"message": "Session ended"}
