# hostel_authz/services/authz_service.py

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from hostel_authz.core.authz.merge import build_effective_authz
from hostel_authz.core.authz.override import (
    AuthzOverride,
    empty_override,
    extract_override,
    override_meta,
)
from hostel_authz.core.authz.validate import OverrideValidation, validate_override
from hostel_authz.models.user import User, UserRole
from hostel_authz.services.audit_service import record_authz_change
from hostel_authz.services.auth_service import get_user_by_id
from hostel_authz.services.session_service import sync_user_authz_across_sessions


class UserNotFound(Exception):
    pass


class InvalidOverride(Exception):
    def __init__(self, validation: OverrideValidation):
        super().__init__("Invalid authz override payload")
        self.validation = validation


def _role_name(role) -> str:
    return role.value if isinstance(role, UserRole) else str(role)


def user_summary(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "name": user.name,
        "email": user.email,
        "role": _role_name(user.role),
        "sub_role": user.sub_role,
    }


def describe_user_authz(user: User, override: Optional[AuthzOverride] = None) -> Dict[str, Any]:
    override = override if override is not None else extract_override(user)
    return {
        "override": override.to_document(),
        "effective": build_effective_authz(user.role, override).to_session(),
        "meta": override_meta(user.authz),
    }


# ============================================================================
# READ
# ============================================================================
async def get_user_authz(session: AsyncSession, user_id) -> Dict[str, Any]:
    user = await get_user_by_id(session, user_id)
    if not user:
        raise UserNotFound(str(user_id))

    return {"user": user_summary(user), "authz": describe_user_authz(user)}


async def list_users_by_role(
    session: AsyncSession,
    role: Optional[UserRole] = None,
    page: int = 1,
    limit: int = 20,
) -> Dict[str, Any]:
    page = max(page, 1)
    limit = min(max(limit, 1), 100)

    query = select(User)
    count_query = select(func.count()).select_from(User)
    if role is not None:
        query = query.where(User.role == role)
        count_query = count_query.where(User.role == role)

    result = await session.execute(
        query.order_by(User.role, User.name).offset((page - 1) * limit).limit(limit)
    )
    users = result.scalars().all()
    total = (await session.execute(count_query)).scalar_one()

    return {
        "data": [
            {**user_summary(u), "authz": {"override": extract_override(u).to_document()}}
            for u in users
        ],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit) if total else 0,
        },
    }


# ============================================================================
# WRITE
# ============================================================================
async def _store_override(
    session: AsyncSession,
    user: User,
    override: AuthzOverride,
    action: str,
    actor_id: UUID,
    reason: Optional[str],
) -> Dict[str, Any]:
    before = extract_override(user)
    previous = dict(user.authz or {})
    version = (override_meta(previous) or {}).get("version") or 1

    # keep any other keys stored under user.authz
    user.authz = {
        **previous,
        "override": override.to_document(),
        "meta": {
            "version": version + 1,
            "updated_by": str(actor_id),
            "updated_at": datetime.now(timezone.utc).isoformat(),
        },
    }
    session.add(user)

    record_authz_change(
        session,
        action=action,
        target_user_id=user.id,
        target_role=_role_name(user.role),
        changed_by=actor_id,
        before_override=before.to_document(),
        after_override=override.to_document(),
        reason=reason,
    )
    synced = await sync_user_authz_across_sessions(session, user)

    await session.commit()
    await session.refresh(user)

    logger.info(
        f"AuthZ override {action} for user {user.id} by {actor_id} "
        f"(version {version + 1}, {synced} session(s) synced)"
    )
    return {"user_id": str(user.id), "authz": describe_user_authz(user, override)}


async def update_user_override(
    session: AsyncSession,
    user_id,
    override_input: Any,
    actor_id: UUID,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Replace the stored override with a validated one.
    Concurrent edits are last-write-wins.
    """
    validation = validate_override(override_input)
    if not validation.is_valid:
        raise InvalidOverride(validation)

    user = await get_user_by_id(session, user_id)
    if not user:
        raise UserNotFound(str(user_id))

    return await _store_override(session, user, validation.normalized, "update", actor_id, reason)


async def reset_user_override(
    session: AsyncSession,
    user_id,
    actor_id: UUID,
    reason: Optional[str] = None,
) -> Dict[str, Any]:
    user = await get_user_by_id(session, user_id)
    if not user:
        raise UserNotFound(str(user_id))

    return await _store_override(session, user, empty_override(), "reset", actor_id, reason)
