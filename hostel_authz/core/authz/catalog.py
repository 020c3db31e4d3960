# hostel_authz/core/authz/catalog.py

"""
Route, capability and constraint catalog.

Central source of truth for every key the authz layer understands, and for
which of them each role gets by default. Route handlers only declare the key
they require; they never map roles to keys themselves.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from hostel_authz.core.authz.constants import (
    AUTHZ_CATALOG_VERSION,
    WILDCARD,
    ConstraintType,
)
from hostel_authz.core.authz.permissions import (
    ACTIONS,
    DEFAULT_PERMISSIONS,
    RESOURCES,
    role_value,
)
from hostel_authz.models.user import UserRole


@dataclass(frozen=True)
class RouteDefinition:
    key: str
    label: str
    paths: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CapabilityDefinition:
    key: str
    label: str
    description: str = ""


@dataclass(frozen=True)
class ConstraintDefinition:
    key: str
    label: str
    value_type: ConstraintType
    default_value: Any = field(default=None)


def _route(key: str, label: str, *paths: str) -> RouteDefinition:
    return RouteDefinition(key=key, label=label, paths=tuple(paths))


# ==========================================================
# ROUTES
# ==========================================================
ROUTE_DEFINITIONS: Tuple[RouteDefinition, ...] = (
    # --- Admin ---
    _route("route.admin.dashboard", "Admin Dashboard", "/admin"),
    _route("route.admin.liveCheckInOut", "Live Check In/Out", "/admin/live-checkinout", "/admin/lc"),
    _route("route.admin.faceScanners", "Face Scanners", "/admin/face-scanners", "/admin/fs"),
    _route("route.admin.hostels", "Hostels", "/admin/hostels", "/admin/hostels/:hostelName", "/admin/hostels/:hostelName/units/:unitNumber"),
    _route("route.admin.administrators", "Administrators", "/admin/administrators"),
    _route("route.admin.wardens", "Wardens", "/admin/wardens"),
    _route("route.admin.associateWardens", "Associate Wardens", "/admin/associate-wardens"),
    _route("route.admin.hostelSupervisors", "Hostel Supervisors", "/admin/hostel-supervisors"),
    _route("route.admin.students", "Students", "/admin/students"),
    _route("route.admin.inventory", "Inventory", "/admin/inventory"),
    _route("route.admin.complaints", "Complaints", "/admin/complaints"),
    _route("route.admin.disciplinaryProcess", "Disciplinary Process", "/admin/disciplinary-process"),
    _route("route.admin.appointments", "Appointments", "/admin/appointments", "/admin/jr-appointments"),
    _route("route.admin.leaves", "Leaves", "/admin/leaves"),
    _route("route.admin.security", "Security", "/admin/security"),
    _route("route.admin.visitors", "Visitors", "/admin/visitors"),
    _route("route.admin.lostAndFound", "Lost and Found", "/admin/lost-and-found"),
    _route("route.admin.events", "Events", "/admin/events"),
    _route("route.admin.gymkhanaEvents", "Gymkhana Events", "/admin/gymkhana-events"),
    _route("route.admin.megaEvents", "Mega Events", "/admin/mega-events"),
    _route("route.admin.updatePassword", "Update Password", "/admin/update-password"),
    _route("route.admin.settings", "Settings", "/admin/settings"),
    _route("route.admin.authz", "AuthZ Management", "/admin/authz"),
    _route("route.admin.profile", "Profile", "/admin/profile"),
    _route("route.admin.maintenance", "Maintenance Staff", "/admin/maintenance"),
    _route("route.admin.notifications", "Notifications", "/admin/notifications"),
    _route("route.admin.feedbacks", "Feedbacks", "/admin/feedbacks"),
    _route("route.admin.others", "Others", "/admin/others"),
    _route("route.admin.taskManagement", "Task Management", "/admin/task-management"),
    _route("route.admin.sheet", "Sheet", "/admin/sheet"),

    # --- Super Admin ---
    _route("route.superAdmin.dashboard", "Super Admin Dashboard", "/super-admin"),
    _route("route.superAdmin.admins", "Super Admin Admins", "/super-admin/admins"),
    _route("route.superAdmin.apiKeys", "Super Admin API Keys", "/super-admin/api-keys"),
    _route("route.superAdmin.authz", "Super Admin AuthZ", "/super-admin/authz", "/super-admin/authz/help"),
    _route("route.superAdmin.profile", "Super Admin Profile", "/super-admin/profile"),

    # --- Warden family ---
    _route("route.warden.dashboard", "Warden Dashboard", "/warden"),
    _route("route.warden.hostels", "Warden Hostels", "/warden/hostels/:hostelName", "/warden/hostels/:hostelName/units/:unitNumber"),
    _route("route.warden.students", "Warden Students", "/warden/students"),
    _route("route.warden.studentInventory", "Warden Student Inventory", "/warden/student-inventory"),
    _route("route.warden.visitors", "Warden Visitors", "/warden/visitors"),
    _route("route.warden.complaints", "Warden Complaints", "/warden/complaints"),
    _route("route.warden.events", "Warden Events", "/warden/events"),
    _route("route.warden.lostAndFound", "Warden Lost and Found", "/warden/lost-and-found"),
    _route("route.warden.notifications", "Warden Notifications", "/warden/notifications"),
    _route("route.warden.feedbacks", "Warden Feedbacks", "/warden/feedbacks"),
    _route("route.warden.undertakings", "Warden Undertakings", "/warden/undertakings"),
    _route("route.warden.myTasks", "Warden Tasks", "/warden/my-tasks"),
    _route("route.warden.profile", "Warden Profile", "/warden/profile"),

    _route("route.associateWarden.dashboard", "Associate Warden Dashboard", "/associate-warden"),
    _route("route.associateWarden.hostels", "Associate Warden Hostels", "/associate-warden/hostels/:hostelName", "/associate-warden/hostels/:hostelName/units/:unitNumber"),
    _route("route.associateWarden.students", "Associate Warden Students", "/associate-warden/students"),
    _route("route.associateWarden.studentInventory", "Associate Warden Student Inventory", "/associate-warden/student-inventory"),
    _route("route.associateWarden.visitors", "Associate Warden Visitors", "/associate-warden/visitors"),
    _route("route.associateWarden.complaints", "Associate Warden Complaints", "/associate-warden/complaints"),
    _route("route.associateWarden.events", "Associate Warden Events", "/associate-warden/events"),
    _route("route.associateWarden.lostAndFound", "Associate Warden Lost and Found", "/associate-warden/lost-and-found"),
    _route("route.associateWarden.notifications", "Associate Warden Notifications", "/associate-warden/notifications"),
    _route("route.associateWarden.feedbacks", "Associate Warden Feedbacks", "/associate-warden/feedbacks"),
    _route("route.associateWarden.undertakings", "Associate Warden Undertakings", "/associate-warden/undertakings"),
    _route("route.associateWarden.myTasks", "Associate Warden Tasks", "/associate-warden/my-tasks"),
    _route("route.associateWarden.profile", "Associate Warden Profile", "/associate-warden/profile"),

    _route("route.hostelSupervisor.dashboard", "Hostel Supervisor Dashboard", "/hostel-supervisor"),
    _route("route.hostelSupervisor.hostels", "Hostel Supervisor Hostels", "/hostel-supervisor/hostels/:hostelName", "/hostel-supervisor/hostels/:hostelName/units/:unitNumber"),
    _route("route.hostelSupervisor.students", "Hostel Supervisor Students", "/hostel-supervisor/students"),
    _route("route.hostelSupervisor.studentInventory", "Hostel Supervisor Student Inventory", "/hostel-supervisor/student-inventory"),
    _route("route.hostelSupervisor.visitors", "Hostel Supervisor Visitors", "/hostel-supervisor/visitors"),
    _route("route.hostelSupervisor.complaints", "Hostel Supervisor Complaints", "/hostel-supervisor/complaints"),
    _route("route.hostelSupervisor.events", "Hostel Supervisor Events", "/hostel-supervisor/events"),
    _route("route.hostelSupervisor.lostAndFound", "Hostel Supervisor Lost and Found", "/hostel-supervisor/lost-and-found"),
    _route("route.hostelSupervisor.notifications", "Hostel Supervisor Notifications", "/hostel-supervisor/notifications"),
    _route("route.hostelSupervisor.feedbacks", "Hostel Supervisor Feedbacks", "/hostel-supervisor/feedbacks"),
    _route("route.hostelSupervisor.undertakings", "Hostel Supervisor Undertakings", "/hostel-supervisor/undertakings"),
    _route("route.hostelSupervisor.myTasks", "Hostel Supervisor Tasks", "/hostel-supervisor/my-tasks"),
    _route("route.hostelSupervisor.leaves", "Hostel Supervisor Leaves", "/hostel-supervisor/leaves"),
    _route("route.hostelSupervisor.profile", "Hostel Supervisor Profile", "/hostel-supervisor/profile"),

    # --- Security ---
    _route("route.security.attendance", "Security Attendance", "/guard"),
    _route("route.security.myTasks", "Security Tasks", "/guard/my-tasks"),
    _route("route.security.lostAndFound", "Security Lost and Found", "/guard/lost-and-found"),

    # --- Hostel Gate ---
    _route("route.hostelGate.dashboard", "Hostel Gate Dashboard", "/hostel-gate"),
    _route("route.hostelGate.entries", "Hostel Gate Entries", "/hostel-gate/entries"),
    _route("route.hostelGate.scannerEntries", "Hostel Gate Scanner Entries", "/hostel-gate/scanner-entries"),
    _route("route.hostelGate.faceScannerEntries", "Hostel Gate Face Scanner Entries", "/hostel-gate/face-scanner-entries"),
    _route("route.hostelGate.attendance", "Hostel Gate Attendance", "/hostel-gate/attendance"),
    _route("route.hostelGate.appointments", "Hostel Gate Appointments", "/hostel-gate/appointments", "/hostel-gate/jr-appointments"),
    _route("route.hostelGate.visitors", "Hostel Gate Visitors", "/hostel-gate/visitors"),
    _route("route.hostelGate.myTasks", "Hostel Gate Tasks", "/hostel-gate/my-tasks"),
    _route("route.hostelGate.lostAndFound", "Hostel Gate Lost and Found", "/hostel-gate/lost-and-found"),

    # --- Maintenance ---
    _route("route.maintenance.dashboard", "Maintenance Dashboard", "/maintenance"),
    _route("route.maintenance.attendance", "Maintenance Attendance", "/maintenance/attendance"),
    _route("route.maintenance.myTasks", "Maintenance Tasks", "/maintenance/my-tasks"),
    _route("route.maintenance.leaves", "Maintenance Leaves", "/maintenance/leaves"),

    # --- Student ---
    _route("route.student.dashboard", "Student Dashboard", "/student"),
    _route("route.student.complaints", "Student Complaints", "/student/complaints"),
    _route("route.student.lostAndFound", "Student Lost and Found", "/student/lost-and-found"),
    _route("route.student.events", "Student Events", "/student/events"),
    _route("route.student.visitors", "Student Visitors", "/student/visitors"),
    _route("route.student.feedbacks", "Student Feedbacks", "/student/feedbacks"),
    _route("route.student.notifications", "Student Notifications", "/student/notifications"),
    _route("route.student.security", "Student Security", "/student/security"),
    _route("route.student.idCard", "Student ID Card", "/student/id-card"),
    _route("route.student.undertakings", "Student Undertakings", "/student/undertakings"),
    _route("route.student.profile", "Student Profile", "/student/profile"),

    # --- Gymkhana ---
    _route("route.gymkhana.dashboard", "Gymkhana Dashboard", "/gymkhana"),
    _route("route.gymkhana.events", "Gymkhana Events", "/gymkhana/events"),
    _route("route.gymkhana.megaEvents", "Gymkhana Mega Events", "/gymkhana/mega-events"),
    _route("route.gymkhana.profile", "Gymkhana Profile", "/gymkhana/profile"),
)

# route area prefix owned by each role
ROLE_ROUTE_AREAS: Dict[str, str] = {
    UserRole.Admin.value: "route.admin.",
    UserRole.SuperAdmin.value: "route.superAdmin.",
    UserRole.Warden.value: "route.warden.",
    UserRole.AssociateWarden.value: "route.associateWarden.",
    UserRole.HostelSupervisor.value: "route.hostelSupervisor.",
    UserRole.Security.value: "route.security.",
    UserRole.HostelGate.value: "route.hostelGate.",
    UserRole.MaintenanceStaff.value: "route.maintenance.",
    UserRole.Student.value: "route.student.",
    UserRole.Gymkhana.value: "route.gymkhana.",
}


# ==========================================================
# CAPABILITIES
# ==========================================================
CAP_AUTHZ_VIEW = "cap.authz.view"
CAP_AUTHZ_UPDATE = "cap.authz.update"
CAP_STUDENTS_EDIT_PERSONAL = "cap.students.edit.personal"


def capability_key(resource: str, action: str) -> str:
    return f"cap.{resource}.{action}"


def _resource_label(resource: str) -> str:
    return resource.replace("_", " ").title()


CAPABILITY_DEFINITIONS: Tuple[CapabilityDefinition, ...] = tuple(
    CapabilityDefinition(
        key=capability_key(resource, action),
        label=f"{action.title()} {_resource_label(resource)}",
    )
    for resource in RESOURCES
    for action in ACTIONS
) + (
    CapabilityDefinition(CAP_AUTHZ_VIEW, "View AuthZ", "Read user overrides and effective access"),
    CapabilityDefinition(CAP_AUTHZ_UPDATE, "Update AuthZ", "Change or reset user overrides"),
    CapabilityDefinition(CAP_STUDENTS_EDIT_PERSONAL, "Edit Student Personal Details"),
)

_AUTHZ_ADMIN_ROLES = (UserRole.Admin.value, UserRole.SuperAdmin.value)
_PERSONAL_EDIT_DENIED_ROLES = (
    UserRole.Warden.value,
    UserRole.AssociateWarden.value,
    UserRole.HostelSupervisor.value,
)


# ==========================================================
# CONSTRAINTS
# ==========================================================
CONSTRAINT_DEFINITIONS: Tuple[ConstraintDefinition, ...] = (
    ConstraintDefinition(
        key="constraint.complaints.scope.hostelIds",
        label="Allowed Hostels (Complaints Scope)",
        value_type=ConstraintType.STRING_ARRAY,
        default_value=(),
    ),
)


ROUTE_KEYS: Tuple[str, ...] = tuple(d.key for d in ROUTE_DEFINITIONS)
CAPABILITY_KEYS: Tuple[str, ...] = tuple(d.key for d in CAPABILITY_DEFINITIONS)
CONSTRAINT_KEYS: Tuple[str, ...] = tuple(d.key for d in CONSTRAINT_DEFINITIONS)

ROUTE_KEY_SET: FrozenSet[str] = frozenset(ROUTE_KEYS)
CAPABILITY_KEY_SET: FrozenSet[str] = frozenset(CAPABILITY_KEYS)
CONSTRAINT_KEY_SET: FrozenSet[str] = frozenset(CONSTRAINT_KEYS)

_CONSTRAINTS_BY_KEY: Dict[str, ConstraintDefinition] = {d.key: d for d in CONSTRAINT_DEFINITIONS}


def _build_route_defaults() -> Dict[str, FrozenSet[str]]:
    return {
        role: frozenset(key for key in ROUTE_KEYS if key.startswith(prefix))
        for role, prefix in ROLE_ROUTE_AREAS.items()
    }


def _build_capability_defaults() -> Dict[str, FrozenSet[str]]:
    defaults = {}
    for role in ROLE_ROUTE_AREAS:
        keys = {
            capability_key(resource, action)
            for resource, flags in DEFAULT_PERMISSIONS.get(role, {}).items()
            for action, allowed in flags.items()
            if allowed
        }
        if role in _AUTHZ_ADMIN_ROLES:
            keys.update((CAP_AUTHZ_VIEW, CAP_AUTHZ_UPDATE))
        if role not in _PERSONAL_EDIT_DENIED_ROLES:
            keys.add(CAP_STUDENTS_EDIT_PERSONAL)
        defaults[role] = frozenset(keys & CAPABILITY_KEY_SET)
    return defaults


ROUTE_KEYS_BY_ROLE: Dict[str, FrozenSet[str]] = _build_route_defaults()
CAPABILITY_KEYS_BY_ROLE: Dict[str, FrozenSet[str]] = _build_capability_defaults()


def default_route_keys(role) -> FrozenSet[str]:
    return ROUTE_KEYS_BY_ROLE.get(role_value(role), frozenset())


def default_capability_keys(role) -> FrozenSet[str]:
    return CAPABILITY_KEYS_BY_ROLE.get(role_value(role), frozenset())


def default_constraints() -> Dict[str, Any]:
    return {d.key: _plain(d.default_value) for d in CONSTRAINT_DEFINITIONS}


def get_constraint_definition(key: str) -> Optional[ConstraintDefinition]:
    return _CONSTRAINTS_BY_KEY.get(key)


def is_route_key(key: str) -> bool:
    return key in ROUTE_KEY_SET


def is_capability_key(key: str, allow_wildcard: bool = False) -> bool:
    return key in CAPABILITY_KEY_SET or (allow_wildcard and key == WILDCARD)


def is_constraint_key(key: str) -> bool:
    return key in CONSTRAINT_KEY_SET


def _plain(value: Any) -> Any:
    if isinstance(value, tuple):
        return list(value)
    return value


def get_catalog() -> Dict[str, Any]:
    """Serializable catalog document for the admin UI."""
    routes: List[Dict[str, Any]] = [
        {"key": d.key, "label": d.label, "paths": list(d.paths)} for d in ROUTE_DEFINITIONS
    ]
    capabilities = [
        {"key": d.key, "label": d.label, "description": d.description}
        for d in CAPABILITY_DEFINITIONS
    ]
    constraints = [
        {
            "key": d.key,
            "label": d.label,
            "value_type": d.value_type.value,
            "default_value": _plain(d.default_value),
        }
        for d in CONSTRAINT_DEFINITIONS
    ]
    return {
        "version": AUTHZ_CATALOG_VERSION,
        "routes": routes,
        "capabilities": capabilities,
        "constraints": constraints,
        "role_defaults": {
            "route_access": {role: sorted(keys) for role, keys in ROUTE_KEYS_BY_ROLE.items()},
            "capabilities": {role: sorted(keys) for role, keys in CAPABILITY_KEYS_BY_ROLE.items()},
        },
    }
