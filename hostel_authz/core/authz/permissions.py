# hostel_authz/core/authz/permissions.py

"""
Resource/action permission table per role.

This is the shape the admin UI used before capability keys existed. Each
True flag is also exposed as the capability `cap.<resource>.<action>`
(see catalog.py), so the table stays the single place where role defaults
are written down.
"""

import copy
from typing import Dict

from hostel_authz.models.user import UserRole

PermissionMap = Dict[str, Dict[str, bool]]

ACTIONS = ("view", "edit", "create", "delete", "react")


def _flags(view=False, edit=False, create=False, delete=False, react=False) -> Dict[str, bool]:
    return {"view": view, "edit": edit, "create": create, "delete": delete, "react": react}


_FULL = dict(view=True, edit=True, create=True, delete=True, react=True)

_ADMIN_PERMISSIONS: PermissionMap = {
    resource: _flags(**_FULL)
    for resource in (
        "students_info",
        "student_inventory",
        "lost_and_found",
        "events",
        "visitors",
        "complaints",
        "feedback",
        "rooms",
        "hostels",
        "users",
    )
}

_WARDEN_STAFF_PERMISSIONS: PermissionMap = {
    "students_info": _flags(view=True, react=True),
    "student_inventory": _flags(**_FULL),
    "lost_and_found": _flags(**_FULL),
    "events": _flags(view=True),
    "visitors": _flags(view=True, edit=True, react=True),
    "complaints": _flags(view=True, create=True, react=True),
    "feedback": _flags(view=True, react=True),
}

DEFAULT_PERMISSIONS: Dict[str, PermissionMap] = {
    UserRole.SuperAdmin.value: _ADMIN_PERMISSIONS,
    UserRole.Admin.value: _ADMIN_PERMISSIONS,
    UserRole.Warden.value: {
        "students_info": _flags(view=True, react=True),
        "student_inventory": _flags(**_FULL),
        "lost_and_found": _flags(view=True),
        "events": _flags(view=True),
        "visitors": _flags(view=True),
        "complaints": _flags(view=True, create=True),
        "feedback": _flags(view=True, react=True),
    },
    UserRole.AssociateWarden.value: _WARDEN_STAFF_PERMISSIONS,
    UserRole.HostelSupervisor.value: _WARDEN_STAFF_PERMISSIONS,
    UserRole.Security.value: {
        "students_info": _flags(view=True),
        "student_inventory": _flags(),
        "lost_and_found": _flags(view=True, edit=True, create=True, react=True),
        "events": _flags(view=True),
        "visitors": _flags(view=True, edit=True, create=True, react=True),
    },
    UserRole.HostelGate.value: {
        "students_info": _flags(view=True),
        "visitors": _flags(view=True, edit=True, create=True, react=True),
    },
    UserRole.MaintenanceStaff.value: {
        "complaints": _flags(view=True, edit=True, react=True),
    },
    UserRole.Student.value: {
        "events": _flags(view=True, react=True),
        "lost_and_found": _flags(view=True, create=True, react=True),
        "complaints": _flags(view=True, create=True),
        "feedback": _flags(view=True, create=True),
        "student_inventory": _flags(view=True, create=True),
    },
    UserRole.Gymkhana.value: {
        "events": _flags(view=True, edit=True, create=True, react=True),
        "activity_calendar": _flags(view=True, edit=True, create=True, react=True),
        "event_proposals": _flags(view=True, edit=True, create=True, react=True),
        "event_expenses": _flags(view=True, edit=True, create=True, react=True),
    },
}

# every resource any role knows about, in first-seen order
RESOURCES = tuple(
    dict.fromkeys(resource for table in DEFAULT_PERMISSIONS.values() for resource in table)
)


def role_value(role) -> str:
    if isinstance(role, UserRole):
        return role.value
    return str(role) if role is not None else ""


def get_default_permissions(role) -> PermissionMap:
    """
    Default permission map for a role.
    Unknown roles get an empty map rather than an error.
    """
    return copy.deepcopy(DEFAULT_PERMISSIONS.get(role_value(role), {}))
