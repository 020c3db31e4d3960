# hostel_authz/api/deps.py

from typing import AsyncGenerator, Optional
import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_authz.core.authz.enforcement import EnforcementController
from hostel_authz.core.config import settings
from hostel_authz.core.security import decode_token
from hostel_authz.core.database import get_session
from hostel_authz.models.user_session import UserSession
from hostel_authz.schemas.session import SessionUser
from hostel_authz.services.session_service import load_active_session, resolve_session_user


AUTH_REQUIRED = "Authentication required"

# ------------------------------------------------------------
# HTTP Bearer Authentication
# auto_error=False: missing credentials must be a 401, not FastAPI's 403
# ------------------------------------------------------------
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Enforcement mode (read once at process start)
# Tests swap it with app.dependency_overrides
# ------------------------------------------------------------
_enforcement = EnforcementController.from_settings(settings)


def get_enforcement() -> EnforcementController:
    return _enforcement


# ------------------------------------------------------------
# Principal from the bearer token and the session cache
# ------------------------------------------------------------
async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> Optional[SessionUser]:
    """
    The authenticated user, or None when there is no usable session.
    Resolved once per request; every access check shares the result.
    """
    if credentials is None or not credentials.credentials:
        return None

    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        return None

    record = await load_active_session(session, payload.get("sid"), payload.get("sub"))
    if record is None:
        return None

    user = await resolve_session_user(session, record)
    if user is None:
        return None

    request.state.session_record = record
    request.state.user = user
    return user


async def get_current_user(
    user: Optional[SessionUser] = Depends(get_optional_user),
) -> SessionUser:
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, AUTH_REQUIRED)
    return user


async def get_session_record(
    request: Request,
    _: SessionUser = Depends(get_current_user),
) -> UserSession:
    return request.state.session_record
