from hostel_authz.core.authz.validate import errors_as_dicts, validate_override

HOSTEL_SCOPE = "constraint.complaints.scope.hostelIds"


def test_known_keys_are_valid():
    validation = validate_override({
        "grants": ["route.admin.sheet", "cap.users.view", "*"],
        "revokes": ["cap.events.view"],
        "constraints": [{"key": HOSTEL_SCOPE, "value": ["H1", "H2"]}],
    })

    assert validation.is_valid
    assert validation.errors == []
    assert validation.normalized.grants == {"route.admin.sheet", "cap.users.view", "*"}


def test_empty_payload_is_valid():
    assert validate_override({}).is_valid
    assert validate_override(None).is_valid


def test_unknown_keys_are_reported_per_field():
    validation = validate_override({
        "grants": ["route.admin.nope", "cap.custom.x", "banana"],
        "revokes": ["route.*"],
    })

    assert not validation.is_valid
    assert errors_as_dicts(validation) == [
        {"field": "grants", "key": "banana", "message": "Unknown grants key: banana"},
        {"field": "grants", "key": "cap.custom.x", "message": "Unknown grants key: cap.custom.x"},
        {"field": "grants", "key": "route.admin.nope", "message": "Unknown grants key: route.admin.nope"},
        {"field": "revokes", "key": "route.*", "message": "Unknown revokes key: route.*"},
    ]


def test_constraint_errors():
    validation = validate_override({
        "constraints": [
            {"key": HOSTEL_SCOPE, "value": ["H1", 2]},
            {"key": "constraint.unknown", "value": True},
        ],
    })

    errors = errors_as_dicts(validation)
    assert [e["key"] for e in errors] == [HOSTEL_SCOPE, "constraint.unknown"]
    assert errors[0]["message"] == f"Invalid value type for {HOSTEL_SCOPE}. Expected string[]"
    assert errors[1]["message"] == "Unknown constraint key: constraint.unknown"


def test_bucket_payload_is_checked_per_bucket():
    validation = validate_override({
        "allowRoutes": ["route.admin.sheet", "cap.users.view"],
        "denyRoutes": ["route.admin.settings"],
        "allowCapabilities": ["*", "route.admin.dashboard"],
        "denyCapabilities": ["cap.events.view"],
    })

    assert not validation.is_valid
    assert errors_as_dicts(validation) == [
        {"field": "allowRoutes", "key": "cap.users.view", "message": "Unknown allowRoutes key: cap.users.view"},
        {
            "field": "allowCapabilities",
            "key": "route.admin.dashboard",
            "message": "Unknown allowCapabilities key: route.admin.dashboard",
        },
    ]


def test_well_sorted_bucket_payload_is_valid():
    validation = validate_override({
        "allowRoutes": ["route.admin.sheet"],
        "denyCapabilities": ["cap.events.view", "*"],
    })

    assert validation.is_valid
    assert validation.normalized.grants == {"route.admin.sheet"}
    assert validation.normalized.revokes == {"cap.events.view", "*"}
