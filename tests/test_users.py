import pytest
from loguru import logger

from hostel_authz.models.user import UserRole

NEW_WARDEN = {
    "name": "New Warden",
    "email": "new.warden@hostel.edu",
    "password": "password123",
    "role": "Warden",
    "hostel": "H2",
}


@pytest.fixture
def captured_warnings():
    captured = []
    handler_id = logger.add(lambda message: captured.append(message.record), level="WARNING")
    yield captured
    logger.remove(handler_id)


@pytest.mark.asyncio
async def test_list_users_requires_login(client, set_enforcement):
    set_enforcement(mode="enforce")

    res = await client.get("/api/users/")

    assert res.status_code == 401
    assert res.json()["message"] == "Authentication required"


@pytest.mark.asyncio
async def test_admin_manages_users(client, make_user, login, set_enforcement):
    set_enforcement(mode="enforce")
    headers = await login(await make_user(UserRole.Admin))

    res = await client.post("/api/users/", json=NEW_WARDEN, headers=headers)
    assert res.status_code == 201, res.text
    created = res.json()
    assert created["role"] == "Warden"
    assert "password_hash" not in created

    res = await client.get("/api/users/", headers=headers)
    assert {u["email"] for u in res.json()} >= {"new.warden@hostel.edu"}

    res = await client.post("/api/users/", json=NEW_WARDEN, headers=headers)
    assert res.status_code == 400

    res = await client.delete(f"/api/users/{created['id']}", headers=headers)
    assert res.status_code == 200
    assert res.json()["success"] is True


@pytest.mark.asyncio
async def test_student_needs_a_hostel(client, make_user, login):
    headers = await login(await make_user(UserRole.Admin))

    res = await client.post(
        "/api/users/",
        json={**NEW_WARDEN, "role": "Student", "hostel": None},
        headers=headers,
    )

    assert res.status_code == 400
    assert res.json()["message"] == "Student accounts must be assigned to a hostel"


@pytest.mark.asyncio
async def test_deleting_a_user_ends_their_sessions(client, make_user, login):
    admin_headers = await login(await make_user(UserRole.Admin))
    warden = await make_user(UserRole.Warden)
    warden_headers = await login(warden)

    res = await client.delete(f"/api/users/{warden.id}", headers=admin_headers)

    assert res.status_code == 200
    assert (await client.get("/api/auth/user", headers=warden_headers)).status_code == 401


@pytest.mark.asyncio
async def test_enforce_mode_blocks_other_roles(client, make_user, login, set_enforcement):
    set_enforcement(mode="enforce")
    headers = await login(await make_user(UserRole.Warden))

    res = await client.get("/api/users/", headers=headers)

    assert res.status_code == 403
    assert res.json() == {"success": False, "message": "You do not have access to this route"}


@pytest.mark.asyncio
async def test_capability_denied_after_route_granted(client, make_user, login, set_enforcement):
    set_enforcement(mode="enforce")
    warden = await make_user(UserRole.Warden, authz={"override": {"grants": ["route.admin.administrators"]}})
    headers = await login(warden)

    res = await client.get("/api/users/", headers=headers)

    assert res.status_code == 403
    assert res.json()["message"] == "You do not have permission to perform this action"


@pytest.mark.asyncio
async def test_off_mode_lets_everyone_through(client, make_user, login, set_enforcement, captured_warnings):
    set_enforcement(mode="off", route_keys=["*"], log_observe_denies=True)
    headers = await login(await make_user(UserRole.Student))

    res = await client.get("/api/users/", headers=headers)

    assert res.status_code == 200
    assert not [w for w in captured_warnings if "[authz]" in w["message"]]


@pytest.mark.asyncio
async def test_observe_mode_blocks_listed_keys_only(client, make_user, login, set_enforcement):
    set_enforcement(mode="observe", capability_keys=["cap.users.delete"])
    student = await make_user(UserRole.Student)
    headers = await login(student)

    assert (await client.get("/api/users/", headers=headers)).status_code == 200

    res = await client.delete(f"/api/users/{student.id}", headers=headers)
    assert res.status_code == 403


@pytest.mark.asyncio
async def test_observe_mode_logs_deny_preview(client, make_user, login, set_enforcement, captured_warnings):
    set_enforcement(mode="observe", log_observe_denies=True)
    student = await make_user(UserRole.Student)
    headers = await login(student)

    res = await client.get("/api/users/", headers=headers)

    assert res.status_code == 200
    previews = [w for w in captured_warnings if w["message"].startswith("[authz][observe][deny-preview]")]
    assert [p["extra"]["authz_type"] for p in previews] == ["route", "capability"]
    assert previews[0]["message"] == (
        f"[authz][observe][deny-preview] GET /api/users/ "
        f"user={student.id} role=Student type=route keys=route.admin.administrators"
    )
    assert previews[1]["extra"]["authz_keys"] == ["cap.users.view"]


@pytest.mark.asyncio
async def test_observe_mode_is_quiet_unless_asked(client, make_user, login, set_enforcement, captured_warnings):
    set_enforcement(mode="observe")
    headers = await login(await make_user(UserRole.Student))

    res = await client.get("/api/users/", headers=headers)

    assert res.status_code == 200
    assert not [w for w in captured_warnings if "[authz]" in w["message"]]
