# hostel_authz/services/session_service.py

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from hostel_authz.core.authz.merge import EffectiveAuthz, build_effective_authz_for_user
from hostel_authz.core.authz.session_cache import (
    SessionDataState,
    classify_session_data,
    should_persist_rebuild,
)
from hostel_authz.core.config import settings
from hostel_authz.core.security import create_access_token, new_session_id
from hostel_authz.models.user import User, UserRole
from hostel_authz.models.user_session import UserSession
from hostel_authz.schemas.session import SessionUser
from hostel_authz.services.auth_service import get_user_by_id, parse_user_id


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _role_name(role) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


# ============================================================================
# USER DATA
# ============================================================================
def build_session_user(user: User, effective: Optional[EffectiveAuthz] = None) -> SessionUser:
    return SessionUser(
        id=str(user.id),
        email=user.email,
        role=_role_name(user.role),
        sub_role=user.sub_role,
        hostel=user.hostel,
        pinned_tabs=list(user.pinned_tabs or []),
        effective=effective or build_effective_authz_for_user(user),
    )


# ============================================================================
# LOGIN / LOGOUT
# ============================================================================
async def open_session(
    session: AsyncSession,
    user: User,
    user_agent: Optional[str] = None,
    ip: Optional[str] = None,
) -> Tuple[UserSession, SessionUser, str]:
    now = _utcnow()
    purged = await purge_expired_sessions(session, user.id, now=now)
    if purged:
        logger.info(f"Removed {purged} expired session(s) for user {user.id}")

    session_user = build_session_user(user)
    ttl = timedelta(minutes=settings.SESSION_TTL_MINUTES)
    record = UserSession(
        id=new_session_id(),
        user_id=user.id,
        user_data=session_user.to_session(),
        user_agent=user_agent or "Unknown",
        ip=ip,
        expires_at=now + ttl,
    )
    session.add(record)
    await session.commit()

    # token and session row expire together
    token = create_access_token(
        subject=str(user.id),
        session_id=record.id,
        expires_delta=ttl,
        data={"role": session_user.role},
    )
    logger.info(f"Session opened for user {user.id} ({session_user.role})")
    return record, session_user, token


async def close_session(session: AsyncSession, session_id: str) -> bool:
    record = await session.get(UserSession, session_id)
    if record is None:
        return False

    await session.delete(record)
    await session.commit()
    return True


# ============================================================================
# RESOLVE (per request)
# ============================================================================
async def load_active_session(session: AsyncSession, session_id: str, user_id) -> Optional[UserSession]:
    if not session_id:
        return None

    record = await session.get(UserSession, session_id)
    if record is None:
        return None

    if parse_user_id(user_id) != record.user_id:
        return None

    if _as_utc(record.expires_at) <= _utcnow():
        await session.delete(record)
        await session.commit()
        return None

    return record


async def resolve_session_user(session: AsyncSession, record: UserSession) -> Optional[SessionUser]:
    """
    User data for the request.

    Current cached data is used without touching the users table. Anything
    else is rebuilt from the user record and written back, except legacy
    Student sessions which are rebuilt for this request only.
    """
    state = classify_session_data(record.user_data)

    if state is SessionDataState.CURRENT:
        session_user = SessionUser.from_session(record.user_data)
    else:
        user = await get_user_by_id(session, record.user_id)
        if user is None:
            return None

        session_user = build_session_user(user)
        if should_persist_rebuild(state, user.role):
            record.user_data = session_user.to_session()
            logger.info(f"Session {record.id[:8]} user data rebuilt ({state.value})")

    record.last_active = _utcnow()
    session.add(record)
    await session.commit()
    return session_user


async def refresh_session(session: AsyncSession, record: UserSession) -> Optional[SessionUser]:
    """Rebuild and store the cached user data regardless of its state."""
    user = await get_user_by_id(session, record.user_id)
    if user is None:
        return None

    session_user = build_session_user(user)
    record.user_data = session_user.to_session()
    record.last_active = _utcnow()
    session.add(record)
    await session.commit()
    return session_user


# ============================================================================
# KEEP ACTIVE SESSIONS IN SYNC AFTER AN OVERRIDE CHANGE
# ============================================================================
async def purge_expired_sessions(session: AsyncSession, user_id, now: Optional[datetime] = None) -> int:
    """Delete the user's sessions whose `expires_at` has passed and commit."""
    result = await session.execute(
        delete(UserSession).where(
            UserSession.user_id == parse_user_id(user_id),
            UserSession.expires_at <= (now or _utcnow()),
        )
    )
    await session.commit()
    return result.rowcount or 0


async def list_user_sessions(session: AsyncSession, user_id, active_only: bool = True) -> List[UserSession]:
    statement = select(UserSession).where(UserSession.user_id == parse_user_id(user_id))
    if active_only:
        statement = statement.where(UserSession.expires_at > _utcnow())
    result = await session.execute(statement)
    return list(result.scalars().all())


async def sync_user_authz_across_sessions(session: AsyncSession, user: User) -> int:
    """
    Write the user's fresh effective authz into every unexpired session.
    Caller commits.
    """
    records = await list_user_sessions(session, user.id)
    fresh = build_session_user(user).to_session()

    for record in records:
        data = dict(record.user_data or {})
        data.pop("permissions", None)
        data.update(fresh)
        # reassign: JSON columns do not track in-place mutation
        record.user_data = data
        session.add(record)

    return len(records)
