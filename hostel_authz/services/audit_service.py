# hostel_authz/services/audit_service.py

from uuid import UUID
from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from hostel_authz.models.authz_audit import AuthzAudit


def record_authz_change(
    session: AsyncSession,
    action: str,
    target_user_id: UUID,
    target_role: str,
    changed_by: UUID,
    before_override: Optional[Dict[str, Any]],
    after_override: Optional[Dict[str, Any]],
    reason: Optional[str] = None,
) -> AuthzAudit:
    """
    Stages an audit row in the caller's session so it commits (or rolls
    back) together with the override it describes.
    """
    entry = AuthzAudit(
        target_user_id=target_user_id,
        target_role=target_role,
        action=action,
        changed_by=changed_by,
        reason=(reason or None) and reason[:500],
        before_override=before_override,
        after_override=after_override,
    )
    session.add(entry)
    return entry


async def list_authz_changes(session: AsyncSession, target_user_id: UUID, limit: int = 50):
    result = await session.execute(
        select(AuthzAudit)
        .where(AuthzAudit.target_user_id == target_user_id)
        .order_by(AuthzAudit.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
