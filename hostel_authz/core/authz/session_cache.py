# hostel_authz/core/authz/session_cache.py

"""
Freshness rules for the user data cached on a login session.
"""

from enum import Enum
from typing import Any, Mapping, Optional

from hostel_authz.core.authz.constants import AUTHZ_CATALOG_VERSION
from hostel_authz.models.user import UserRole

LEGACY_PERMISSIONS_FIELD = "permissions"


class SessionDataState(str, Enum):
    MISSING = "missing"
    CURRENT = "current"
    LEGACY = "legacy"
    STALE = "stale"


def classify_session_data(user_data: Optional[Mapping[str, Any]]) -> SessionDataState:
    if not isinstance(user_data, Mapping) or not user_data:
        return SessionDataState.MISSING

    if LEGACY_PERMISSIONS_FIELD in user_data:
        return SessionDataState.LEGACY

    authz = user_data.get("authz")
    effective = authz.get("effective") if isinstance(authz, Mapping) else None
    if not isinstance(effective, Mapping):
        return SessionDataState.STALE
    if effective.get("catalog_version") != AUTHZ_CATALOG_VERSION:
        return SessionDataState.STALE
    if "id" not in user_data or "role" not in user_data:
        return SessionDataState.STALE

    return SessionDataState.CURRENT


def should_persist_rebuild(state: SessionDataState, role) -> bool:
    """
    Whether rebuilt user data is written back to the session record.
    Student sessions still carrying the legacy field are rebuilt per request
    but left as they are in the store.
    """
    if state is SessionDataState.CURRENT:
        return False
    if state is SessionDataState.LEGACY:
        role_name = role.value if isinstance(role, UserRole) else str(role)
        return role_name != UserRole.Student.value
    return True
