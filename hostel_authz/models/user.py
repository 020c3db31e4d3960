# hostel_authz/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, JSON, String
from sqlalchemy import Enum as SAEnum
from datetime import datetime
import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

class UserRole(str, Enum):
    Admin = "Admin"
    SuperAdmin = "Super Admin"
    Warden = "Warden"
    AssociateWarden = "Associate Warden"
    HostelSupervisor = "Hostel Supervisor"
    Security = "Security"
    HostelGate = "Hostel Gate"
    MaintenanceStaff = "Maintenance Staff"
    Student = "Student"
    Gymkhana = "Gymkhana"

class User(SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    name: str = Field(nullable=False)
    email: str = Field(nullable=False, index=True, unique=True)
    password_hash: str = Field(nullable=False)

    # role is fixed for the lifetime of a session; a change needs a new login
    role: UserRole = Field(
        sa_column=Column(SAEnum(UserRole, name="user_role"), nullable=False)
    )
    sub_role: Optional[str] = Field(
        default=None,
        sa_column=Column(String, nullable=True)
    )

    # hostel the staff member or student is attached to (opaque id from the hostel service)
    hostel: Optional[str] = Field(
        default=None,
        sa_column=Column(String, nullable=True)
    )

    pinned_tabs: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, default=list)
    )

    # Old resource/action map ({"complaints": {"edit": true}}), read only for migration
    permissions: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True)
    )

    # {"override": {...}, "meta": {...}}
    authz: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
