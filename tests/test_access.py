from unittest.mock import patch

import pytest

from hostel_authz.core.authz.access import AccessCheck, AccessDecision, Match, check_access
from hostel_authz.core.authz.enforcement import EnforcementController
from hostel_authz.core.authz.merge import build_effective_authz
from hostel_authz.models.user import UserRole
from hostel_authz.schemas.session import SessionUser

MODES = ["off", "observe", "enforce"]


def _principal(role: UserRole, override=None) -> SessionUser:
    return SessionUser(
        id="u-1",
        email="someone@hostel.edu",
        role=role.value,
        effective=build_effective_authz(role, override),
    )


def test_check_types():
    assert AccessCheck.route("route.admin.sheet").check_type == "route"
    assert AccessCheck.capability("cap.users.view").check_type == "capability"
    assert AccessCheck.any_capability(["cap.users.view"]).check_type == "any-capability"
    assert AccessCheck.all_capabilities(["cap.users.view"]).match is Match.ALL


@pytest.mark.parametrize("mode", MODES)
def test_missing_principal_is_unauthenticated_without_evaluating(mode):
    enforcement = EnforcementController.create(mode=mode)

    with patch.object(AccessCheck, "allows") as allows:
        decision = check_access(None, AccessCheck.route("route.admin.sheet"), enforcement)

    assert decision is AccessDecision.UNAUTHENTICATED
    allows.assert_not_called()


@pytest.mark.parametrize("mode", MODES)
def test_granted_keys_allow_in_every_mode(mode):
    enforcement = EnforcementController.create(mode=mode)
    warden = _principal(UserRole.Warden)

    assert check_access(warden, AccessCheck.route("route.warden.dashboard"), enforcement) is AccessDecision.ALLOW
    assert check_access(warden, AccessCheck.capability("cap.students_info.view"), enforcement) is AccessDecision.ALLOW


@pytest.mark.parametrize("mode", MODES)
@pytest.mark.parametrize("keys", [None, [], ["", "  "]])
def test_empty_capability_lists_place_no_restriction(mode, keys):
    enforcement = EnforcementController.create(mode=mode, capability_keys=["*"])
    student = _principal(UserRole.Student, {"revokes": ["*"]})

    assert check_access(student, AccessCheck.any_capability(keys), enforcement) is AccessDecision.ALLOW
    assert check_access(student, AccessCheck.all_capabilities(keys), enforcement) is AccessDecision.ALLOW


def test_blank_route_key_never_matches():
    admin = _principal(UserRole.Admin)
    enforcement = EnforcementController.create(mode="enforce")

    assert check_access(admin, AccessCheck.route("   "), enforcement) is AccessDecision.DENY


def test_observe_mode_blocks_only_listed_routes():
    enforcement = EnforcementController.create(mode="observe", route_keys=["route.admin.settings"])
    admin = _principal(UserRole.Admin, {"revokes": ["route.admin.settings", "route.admin.dashboard"]})

    assert check_access(admin, AccessCheck.route("route.admin.settings"), enforcement) is AccessDecision.DENY
    assert check_access(admin, AccessCheck.route("route.admin.dashboard"), enforcement) is AccessDecision.OBSERVE_ALLOW


def test_off_mode_lets_failed_checks_through():
    enforcement = EnforcementController.create(mode="off")
    student = _principal(UserRole.Student)

    decision = check_access(student, AccessCheck.capability("cap.users.delete"), enforcement)

    assert decision is AccessDecision.OBSERVE_ALLOW


def test_any_and_all_matching_in_enforce_mode():
    enforcement = EnforcementController.create(mode="enforce")
    student = _principal(UserRole.Student)

    assert check_access(
        student, AccessCheck.any_capability(["cap.users.view", "cap.events.view"]), enforcement
    ) is AccessDecision.ALLOW
    assert check_access(
        student, AccessCheck.all_capabilities(["cap.users.view", "cap.events.view"]), enforcement
    ) is AccessDecision.DENY


def test_multi_key_check_in_observe_mode_follows_allow_list():
    enforcement = EnforcementController.create(mode="observe", capability_keys=["cap.users.delete"])
    student = _principal(UserRole.Student)

    listed = AccessCheck.any_capability(["cap.users.view", "cap.users.delete"])
    unlisted = AccessCheck.all_capabilities(["cap.users.view", "cap.users.edit"])

    assert check_access(student, listed, enforcement) is AccessDecision.DENY
    assert check_access(student, unlisted, enforcement) is AccessDecision.OBSERVE_ALLOW
