# hostel_authz/models/user_session.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, JSON, ForeignKey, Uuid
from datetime import datetime
import uuid
from typing import Any, Dict, Optional


class UserSession(SQLModel, table=True):
    """
    Server-side login session.
    The bearer token only carries the session id; everything the request
    pipeline needs about the user is cached in `user_data`.
    """
    __tablename__ = "user_sessions"

    id: str = Field(primary_key=True)

    user_id: uuid.UUID = Field(
        sa_column=Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    )

    # {"id", "email", "role", "sub_role", "hostel", "pinned_tabs", "authz": {"effective": ...}}
    user_data: Optional[Dict[str, Any]] = Field(
        default=None,
        sa_column=Column(JSON, nullable=True)
    )

    user_agent: Optional[str] = None
    ip: Optional[str] = None

    created_at: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    last_active: datetime = Field(
        default_factory=datetime.utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
