# hostel_authz/api/endpoints/authz.py

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_authz.api.deps import get_current_user, get_db_session
from hostel_authz.core.authz.catalog import CAP_AUTHZ_UPDATE, CAP_AUTHZ_VIEW, get_catalog
from hostel_authz.core.authz.validate import errors_as_dicts
from hostel_authz.core.rbac import AllowRoles, require_any_capability, require_role_route_access
from hostel_authz.models.user import UserRole
from hostel_authz.schemas.authz import OverrideResetRequest, OverrideUpdateRequest
from hostel_authz.schemas.session import SessionUser
from hostel_authz.services import authz_service
from hostel_authz.services.audit_service import list_authz_changes

router = APIRouter(prefix="/api/authz", tags=["AuthZ"])

AUTHZ_ROUTE_KEY_BY_ROLE = {
    UserRole.Admin: "route.admin.authz",
    UserRole.SuperAdmin: "route.superAdmin.authz",
}

authz_admins = [
    Depends(AllowRoles(UserRole.Admin, UserRole.SuperAdmin)),
    Depends(require_role_route_access(AUTHZ_ROUTE_KEY_BY_ROLE)),
]
can_view = Depends(require_any_capability([CAP_AUTHZ_VIEW]))
can_update = Depends(require_any_capability([CAP_AUTHZ_UPDATE]))


def _not_found():
    return HTTPException(status.HTTP_404_NOT_FOUND, "User not found")


# -------------------------------------------------------------------
# CATALOG (any signed-in user; the UI needs labels for its own menus)
# -------------------------------------------------------------------
@router.get("/catalog")
async def authz_catalog(_: SessionUser = Depends(get_current_user)):
    return {
        "success": True,
        "data": {
            "catalog": get_catalog(),
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
    }


# -------------------------------------------------------------------
# MY EFFECTIVE AUTHZ (always read from the user record, not the cache)
# -------------------------------------------------------------------
@router.get("/me")
async def my_authz(
    user: SessionUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        data = await authz_service.get_user_authz(session, user.id)
    except authz_service.UserNotFound:
        raise _not_found()
    return {"success": True, "data": data}


# -------------------------------------------------------------------
# USERS BY ROLE (Admin / Super Admin)
# -------------------------------------------------------------------
@router.get("/users", dependencies=[*authz_admins, can_view])
async def users_by_role(
    role: Optional[UserRole] = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    session: AsyncSession = Depends(get_db_session),
):
    data = await authz_service.list_users_by_role(session, role=role, page=page, limit=limit)
    return {"success": True, **data}


@router.get("/user/{user_id}", dependencies=[*authz_admins, can_view])
async def user_authz(user_id: UUID, session: AsyncSession = Depends(get_db_session)):
    try:
        data = await authz_service.get_user_authz(session, user_id)
    except authz_service.UserNotFound:
        raise _not_found()
    return {"success": True, "data": data}


@router.get("/user/{user_id}/audit", dependencies=[*authz_admins, can_view])
async def user_authz_audit(
    user_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    session: AsyncSession = Depends(get_db_session),
):
    entries = await list_authz_changes(session, user_id, limit=limit)
    return {"success": True, "data": [entry.model_dump(mode="json") for entry in entries]}


# -------------------------------------------------------------------
# UPDATE / RESET OVERRIDE
# -------------------------------------------------------------------
@router.put("/user/{user_id}", dependencies=[*authz_admins, can_update])
async def update_user_authz(
    user_id: UUID,
    payload: OverrideUpdateRequest,
    actor: SessionUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        data = await authz_service.update_user_override(
            session, user_id, payload.override, actor_id=UUID(actor.id), reason=payload.reason
        )
    except authz_service.InvalidOverride as exc:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": str(exc),
                "errors": errors_as_dicts(exc.validation),
            },
        )
    except authz_service.UserNotFound:
        raise _not_found()

    return {"success": True, "message": "AuthZ override updated successfully", "data": data}


@router.post("/user/{user_id}/reset", dependencies=[*authz_admins, can_update])
async def reset_user_authz(
    user_id: UUID,
    payload: Optional[OverrideResetRequest] = None,
    actor: SessionUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db_session),
):
    try:
        data = await authz_service.reset_user_override(
            session, user_id, actor_id=UUID(actor.id), reason=payload.reason if payload else None
        )
    except authz_service.UserNotFound:
        raise _not_found()

    return {"success": True, "message": "AuthZ override reset successfully", "data": data}
