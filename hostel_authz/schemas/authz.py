from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


# -------------------------------------------------------------------
# OVERRIDE UPDATE (PUT /api/authz/user/{id})
# -------------------------------------------------------------------
class OverrideUpdateRequest(BaseModel):
    # raw document; shape is checked by core.authz.validate
    override: Dict[str, Any] = Field(default_factory=dict)
    reason: Optional[str] = Field(default=None, max_length=500)

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "override": {
                        "grants": ["cap.students_info.edit"],
                        "revokes": ["route.warden.events"],
                        "constraints": [
                            {"key": "constraint.complaints.scope.hostelIds", "value": ["H1"]}
                        ]
                    },
                    "reason": "Covering for the hostel office"
                }
            ]
        }
    )


# -------------------------------------------------------------------
# OVERRIDE RESET
# -------------------------------------------------------------------
class OverrideResetRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=500)
