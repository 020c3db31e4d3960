from typing import List, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr
from hostel_authz.models.user import UserRole


# ---------------------------------------------------------
# BASE
# ---------------------------------------------------------
class UserBase(BaseModel):
    name: str
    email: EmailStr


# ---------------------------------------------------------
# CREATE USER (Admin creates any user)
# ---------------------------------------------------------
class UserCreate(UserBase):
    password: str
    role: UserRole
    sub_role: Optional[str] = None
    hostel: Optional[str] = None   # required for Students

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "name": "Warden User",
                    "email": "warden@example.com",
                    "password": "password123",
                    "role": "Warden",
                    "hostel": "H1"
                },
                {
                    "name": "Student User",
                    "email": "student@example.com",
                    "password": "password123",
                    "role": "Student",
                    "hostel": "H1"
                }
            ]
        }
    )


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(UserBase):
    id: UUID
    role: UserRole | str
    sub_role: Optional[str] = None
    hostel: Optional[str] = None
    pinned_tabs: List[str] = []

    model_config = ConfigDict(from_attributes=True)
