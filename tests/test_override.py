import pytest

from hostel_authz.core.authz.override import (
    AuthzOverride,
    extract_override,
    migrate_legacy_permissions,
    override_meta,
    parse_override,
    unique_keys,
)
from hostel_authz.core.database import AsyncSessionLocal
from hostel_authz.models.user import User, UserRole

HOSTEL_SCOPE = "constraint.complaints.scope.hostelIds"


@pytest.mark.parametrize("raw", [None, "grants", 42, [], {"grants": "cap.users.view"}])
def test_garbage_parses_to_empty_override(raw):
    override = parse_override(raw)

    assert override.is_empty
    assert override == AuthzOverride()


def test_unique_keys_trims_and_dedupes():
    assert unique_keys([" a ", "a", "", "  ", 7, None, "b"]) == ["a", "b"]
    assert unique_keys("a,b") == []


def test_current_shape_is_normalized():
    override = parse_override({
        "grants": [" cap.users.view ", "cap.users.view", "route.admin.sheet", ""],
        "revokes": ["*"],
        "constraints": [
            {"key": HOSTEL_SCOPE, "value": ["H1"]},
            {"key": HOSTEL_SCOPE, "value": ["H2"]},
            {"value": "no key"},
            "junk",
        ],
    })

    assert override.grants == {"cap.users.view", "route.admin.sheet"}
    assert override.granted_routes == {"route.admin.sheet"}
    assert override.granted_capabilities == {"cap.users.view"}
    assert override.revoked_capabilities == {"*"}
    assert [(c.key, c.value) for c in override.constraints] == [(HOSTEL_SCOPE, ["H2"])]


def test_bucket_shape_is_migrated():
    override = parse_override({
        "allowRoutes": ["route.admin.sheet"],
        "denyRoutes": ["route.warden.events"],
        "allowCapabilities": ["cap.users.view"],
        "denyCapabilities": ["cap.events.view", "cap.events.view"],
        "constraints": [{"key": HOSTEL_SCOPE, "value": []}],
    })

    assert override.grants == {"route.admin.sheet", "cap.users.view"}
    assert override.revokes == {"route.warden.events", "cap.events.view"}
    assert override.constraints[0].key == HOSTEL_SCOPE


def test_current_fields_win_over_buckets():
    override = parse_override({"grants": ["cap.users.view"], "allowRoutes": ["route.admin.sheet"]})

    assert override.grants == {"cap.users.view"}


def test_document_is_sorted():
    document = parse_override({"grants": ["cap.z", "cap.a", "route.b"]}).to_document()

    assert document == {"grants": ["cap.a", "cap.z", "route.b"], "revokes": [], "constraints": []}


def test_legacy_permissions_become_a_diff_against_role_defaults():
    override = migrate_legacy_permissions(
        UserRole.Warden,
        {
            "students_info": {"view": True, "edit": True},
            "complaints": {"create": False},
            "events": {"view": "yes"},
            "spaceships": {"view": True},
            "visitors": "all",
        },
    )

    # unchanged flags say nothing; only departures from the role defaults remain
    assert override.grants == {"cap.students_info.edit"}
    assert override.revokes == {"cap.complaints.create", "cap.events.view"}


def test_legacy_permissions_for_unknown_role():
    override = migrate_legacy_permissions("Visitor", {"events": {"view": True, "edit": False}})

    assert override.grants == {"cap.events.view"}
    assert override.revokes == frozenset()


def test_extract_prefers_stored_override():
    record = {
        "role": "Warden",
        "authz": {"override": {"revokes": ["route.warden.events"]}},
        "permissions": {"students_info": {"edit": True}},
    }

    assert extract_override(record).revokes == {"route.warden.events"}
    assert extract_override(record).grants == frozenset()


def test_extract_falls_back_to_legacy_permissions():
    record = {"role": "Warden", "authz": {"meta": {}}, "permissions": {"students_info": {"edit": True}}}

    assert extract_override(record).grants == {"cap.students_info.edit"}


def test_extract_from_empty_records():
    assert extract_override(None).is_empty
    assert extract_override({"role": "Admin"}).is_empty
    assert extract_override(User(name="x", email="x@y.z", password_hash="-", role=UserRole.Admin)).is_empty


def test_override_meta():
    assert override_meta(None) is None
    assert override_meta({"override": {}}) is None
    assert override_meta({"meta": {"version": 2}}) == {"version": 2}


@pytest.mark.asyncio
async def test_override_survives_storage(make_user):
    user = await make_user(UserRole.Warden)
    stored = parse_override({
        "grants": ["cap.students_info.edit"],
        "revokes": ["route.warden.events"],
        "constraints": [{"key": HOSTEL_SCOPE, "value": ["H1"]}],
    })

    async with AsyncSessionLocal() as session:
        record = await session.get(User, user.id)
        record.authz = {"override": stored.to_document()}
        session.add(record)
        await session.commit()

    async with AsyncSessionLocal() as session:
        record = await session.get(User, user.id)
        assert extract_override(record) == stored
