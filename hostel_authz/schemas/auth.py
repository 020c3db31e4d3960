from pydantic import BaseModel, EmailStr
from typing import Optional

from hostel_authz.schemas.session import SessionUserRead


# -------------------------------------------------------------------
# LOGIN REQUEST
# -------------------------------------------------------------------
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# -------------------------------------------------------------------
# TOKEN + SESSION USER (login / refresh response)
# -------------------------------------------------------------------
class TokenWithUser(BaseModel):
    success: bool = True
    message: Optional[str] = None
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    user: SessionUserRead


class SessionUserResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: SessionUserRead
