# hostel_authz/api/endpoints/users.py

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from uuid import UUID
from sqlalchemy import delete
from sqlmodel import select

from hostel_authz.api.deps import get_db_session
from hostel_authz.core.rbac import require_capability, require_route_access
from hostel_authz.schemas.user import UserCreate, UserRead
from hostel_authz.services.auth_service import get_user_by_email, create_user
from hostel_authz.models.user import User
from hostel_authz.models.user_session import UserSession

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(require_route_access("route.admin.administrators"))],
)


# -------------------------------------------------------------------
# Create ANY user
# -------------------------------------------------------------------
@router.post(
    "/",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability("cap.users.create"))],
)
async def create_new_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_db_session),
):
    existing = await get_user_by_email(session, data.email)
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )

    try:
        user = await create_user(
            session,
            data.name,
            data.email,
            data.password,
            role=data.role,
            sub_role=data.sub_role,
            hostel=data.hostel,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    return user


# -------------------------------------------------------------------
# List all users
# -------------------------------------------------------------------
@router.get(
    "/",
    response_model=List[UserRead],
    dependencies=[Depends(require_capability("cap.users.view"))],
)
async def list_users(session: AsyncSession = Depends(get_db_session)):
    result = await session.execute(select(User).order_by(User.name))
    return result.scalars().all()


# -------------------------------------------------------------------
# Delete a user
# -------------------------------------------------------------------
@router.delete("/{user_id}", dependencies=[Depends(require_capability("cap.users.delete"))])
async def delete_user(
    user_id: UUID,
    session: AsyncSession = Depends(get_db_session),
):
    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    try:
        # open sessions cache the user, drop them with it
        await session.execute(delete(UserSession).where(UserSession.user_id == user.id))
        await session.delete(user)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=409, detail="User has audit history and cannot be deleted")

    return {"success": True, "message": "User deleted successfully"}
