# hostel_authz/api/endpoints/auth.py

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_authz.api.deps import get_current_user, get_db_session, get_session_record
from hostel_authz.core.config import settings
from hostel_authz.core.rate_limiter import limiter
from hostel_authz.models.user_session import UserSession
from hostel_authz.schemas.auth import LoginRequest, SessionUserResponse, TokenWithUser
from hostel_authz.schemas.session import SessionUser, SessionUserRead
from hostel_authz.services.auth_service import authenticate_user
from hostel_authz.services.session_service import close_session, open_session, refresh_session

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# -------------------------------------------------------------------
# LOGIN
# -------------------------------------------------------------------
@router.post("/login", response_model=TokenWithUser)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    session: AsyncSession = Depends(get_db_session)
):
    user = await authenticate_user(session, payload.email, payload.password)

    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    user_agent = request.headers.get("user-agent")
    ip = request.client.host if request.client else None
    _, session_user, token = await open_session(session, user, user_agent=user_agent, ip=ip)

    return TokenWithUser(
        message="Login successful",
        access_token=token,
        expires_in=settings.SESSION_TTL_MINUTES * 60,
        user=SessionUserRead.from_session_user(session_user),
    )


# -------------------------------------------------------------------
# LOGOUT (destroys the server-side session)
# -------------------------------------------------------------------
@router.post("/logout")
async def logout(
    record: UserSession = Depends(get_session_record),
    session: AsyncSession = Depends(get_db_session),
):
    await close_session(session, record.id)
    return {"success": True, "message": "Logged out successfully"}


# -------------------------------------------------------------------
# CURRENT USER (served from the session cache)
# -------------------------------------------------------------------
@router.get("/user", response_model=SessionUserResponse)
async def current_user(user: SessionUser = Depends(get_current_user)):
    return SessionUserResponse(user=SessionUserRead.from_session_user(user))


# -------------------------------------------------------------------
# REFRESH SESSION USER DATA
# -------------------------------------------------------------------
@router.post("/refresh", response_model=SessionUserResponse)
async def refresh_user_data(
    record: UserSession = Depends(get_session_record),
    session: AsyncSession = Depends(get_db_session),
):
    user = await refresh_session(session, record)
    if user is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "User not found")

    return SessionUserResponse(
        message="Session refreshed",
        user=SessionUserRead.from_session_user(user),
    )
