#hostel_authz/models/authz_audit.py

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional, Dict, Any
from uuid import UUID, uuid4
from datetime import datetime

class AuthzAudit(SQLModel, table=True):
    """Immutable record of one override update or reset."""
    __tablename__ = "authz_audits"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    target_user_id: UUID = Field(foreign_key="users.id", index=True)
    target_role: str = Field(index=True)

    # "update" | "reset"
    action: str = Field(index=True)
    changed_by: UUID = Field(foreign_key="users.id", index=True)
    reason: Optional[str] = Field(default=None, max_length=500)

    before_override: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    after_override: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
