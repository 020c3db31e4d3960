from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from hostel_authz.core.authz.merge import EffectiveAuthz


# ---------------------------------------------------------
# USER DATA CACHED ON THE SESSION RECORD
# ---------------------------------------------------------
class SessionUser(BaseModel):
    id: str
    email: str
    role: str
    sub_role: Optional[str] = None
    hostel: Optional[str] = None
    pinned_tabs: List[str] = Field(default_factory=list)
    effective: EffectiveAuthz = Field(default_factory=EffectiveAuthz)

    def to_session(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "sub_role": self.sub_role,
            "hostel": self.hostel,
            "pinned_tabs": list(self.pinned_tabs),
            "authz": {"effective": self.effective.to_session()},
        }

    @classmethod
    def from_session(cls, data: Dict[str, Any]) -> "SessionUser":
        return cls(
            id=str(data["id"]),
            email=data.get("email") or "",
            role=data.get("role") or "",
            sub_role=data.get("sub_role"),
            hostel=data.get("hostel"),
            pinned_tabs=list(data.get("pinned_tabs") or []),
            effective=EffectiveAuthz.from_session(data["authz"]["effective"]),
        )


class SessionUserRead(BaseModel):
    id: str
    email: str
    role: str
    sub_role: Optional[str] = None
    hostel: Optional[str] = None
    pinned_tabs: List[str] = Field(default_factory=list)
    authz: Dict[str, Any]

    @classmethod
    def from_session_user(cls, user: SessionUser) -> "SessionUserRead":
        data = user.to_session()
        return cls(**data)
