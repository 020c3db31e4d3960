# hostel_authz/core/rbac.py

"""
Access-check dependencies.

Layer 1 (`AllowRoles`) gates on the caller's role. Layer 3
(`require_route_access`, `require_capability`, ...) gates on route and
capability keys in the caller's effective authz, subject to the rollout
mode: a failed check only blocks when the mode says so, otherwise it is
logged (if enabled) and the request goes through.
"""

from typing import Dict, Iterable, Optional

from fastapi import Depends, HTTPException, Request, status
from loguru import logger

from hostel_authz.api.deps import AUTH_REQUIRED, get_enforcement, get_optional_user
from hostel_authz.core.authz.access import AccessCheck, AccessDecision, check_access
from hostel_authz.core.authz.constants import KeyKind
from hostel_authz.core.authz.enforcement import EnforcementController
from hostel_authz.models.user import UserRole
from hostel_authz.schemas.session import SessionUser

ROUTE_DENIED = "You do not have access to this route"
ACTION_DENIED = "You do not have permission to perform this action"


def _role_name(role) -> str:
    if isinstance(role, UserRole):
        return role.value
    return str(role).strip()


def log_observe_deny(request: Request, user: SessionUser, check: AccessCheck) -> None:
    method = request.method or "UNKNOWN"
    path = request.url.path or "unknown"
    keys = ", ".join(k for k in check.keys if k)

    logger.bind(
        authz_method=method,
        authz_path=path,
        authz_user=user.id,
        authz_role=user.role,
        authz_type=check.check_type,
        authz_keys=list(check.keys),
    ).warning(
        f"[authz][observe][deny-preview] {method} {path} "
        f"user={user.id or 'unknown'} role={user.role or 'unknown'} "
        f"type={check.check_type} keys={keys}"
    )


def enforce(
    request: Request,
    user: Optional[SessionUser],
    check: AccessCheck,
    enforcement: EnforcementController,
) -> SessionUser:
    """Raise for a blocking decision, log an observed one, return the user otherwise."""
    decision = check_access(user, check, enforcement)

    if decision is AccessDecision.UNAUTHENTICATED:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, AUTH_REQUIRED)

    if decision is AccessDecision.DENY:
        message = ROUTE_DENIED if check.kind is KeyKind.ROUTE else ACTION_DENIED
        raise HTTPException(status.HTTP_403_FORBIDDEN, message)

    if decision is AccessDecision.OBSERVE_ALLOW and enforcement.logs_denies:
        log_observe_deny(request, user, check)

    return user


def _dependency(check: AccessCheck):
    async def checker(
        request: Request,
        user: Optional[SessionUser] = Depends(get_optional_user),
        enforcement: EnforcementController = Depends(get_enforcement),
    ) -> SessionUser:
        return enforce(request, user, check, enforcement)

    return checker


def require_route_access(route_key: str):
    return _dependency(AccessCheck.route(route_key))


def require_capability(capability_key: str):
    return _dependency(AccessCheck.capability(capability_key))


def require_any_capability(capability_keys: Optional[Iterable[str]] = None):
    """An empty key list places no restriction."""
    return _dependency(AccessCheck.any_capability(capability_keys))


def require_all_capabilities(capability_keys: Optional[Iterable[str]] = None):
    """An empty key list places no restriction."""
    return _dependency(AccessCheck.all_capabilities(capability_keys))


def require_role_route_access(route_key_by_role: Dict[UserRole, str]):
    """
    Route check whose key depends on the caller's role, for endpoints shared
    by several role areas. Roles without a key are denied outright.
    """
    keys = {_role_name(role): key for role, key in route_key_by_role.items()}

    async def checker(
        request: Request,
        user: Optional[SessionUser] = Depends(get_optional_user),
        enforcement: EnforcementController = Depends(get_enforcement),
    ) -> SessionUser:
        if user is None:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, AUTH_REQUIRED)

        route_key = keys.get(user.role)
        if not route_key:
            raise HTTPException(status.HTTP_403_FORBIDDEN, ROUTE_DENIED)

        return enforce(request, user, AccessCheck.route(route_key), enforcement)

    return checker


def AllowRoles(*allowed_roles):
    """
    Role gate.
    - Accepts UserRole values or raw strings
    - No roles means any authenticated user
    """
    allowed = {_role_name(r) for r in allowed_roles}

    async def role_checker(user: Optional[SessionUser] = Depends(get_optional_user)) -> SessionUser:
        if user is None:
            raise HTTPException(status.HTTP_401_UNAUTHORIZED, AUTH_REQUIRED)

        if allowed and user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied for your role",
            )

        return user

    return role_checker
