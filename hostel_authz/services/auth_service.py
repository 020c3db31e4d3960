# hostel_authz/services/auth_service.py

from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
import uuid
from typing import Optional

from hostel_authz.models.user import User, UserRole
from hostel_authz.core.security import hash_password, verify_password


def parse_user_id(user_id) -> Optional[uuid.UUID]:
    if isinstance(user_id, uuid.UUID):
        return user_id
    try:
        return uuid.UUID(str(user_id))
    except (TypeError, ValueError):
        return None


# ============================================================================
# FETCH USER BY EMAIL
# ============================================================================
async def get_user_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(User.email == email.strip().lower()))
    return result.scalar_one_or_none()


# ============================================================================
# FETCH USER BY ID
# ============================================================================
async def get_user_by_id(session: AsyncSession, user_id) -> User | None:
    parsed = parse_user_id(user_id)
    if parsed is None:
        return None
    return await session.get(User, parsed)


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    name: str,
    email: str,
    password: str,
    role: UserRole,
    sub_role: str | None = None,
    hostel: str | None = None,
    permissions: dict | None = None,
) -> User:

    # Hostel staff and students belong to a hostel; admins and gate staff may not
    if role == UserRole.Student and not hostel:
        raise ValueError("Student accounts must be assigned to a hostel")

    user = User(
        id=uuid.uuid4(),
        name=name,
        email=email.strip().lower(),
        password_hash=hash_password(password),
        role=role,
        sub_role=sub_role,
        hostel=hostel,
        permissions=permissions,
    )

    session.add(user)

    try:
        await session.commit()
        await session.refresh(user)
        return user

    except IntegrityError:
        await session.rollback()
        raise ValueError("User with this email already exists")


# ============================================================================
# AUTHENTICATE
# ============================================================================
async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(session, email)
    if not user:
        return None

    if not verify_password(password, user.password_hash):
        return None

    return user
