import pytest
import pytest_asyncio
from fastapi import Depends, FastAPI
from httpx import AsyncClient, ASGITransport

from hostel_authz.api.deps import get_enforcement, get_optional_user
from hostel_authz.core.authz.enforcement import EnforcementController
from hostel_authz.core.authz.merge import build_effective_authz
from hostel_authz.core.rbac import (
    AllowRoles,
    require_all_capabilities,
    require_any_capability,
    require_role_route_access,
)
from hostel_authz.models.user import UserRole
from hostel_authz.schemas.session import SessionUser

app = FastAPI()


@app.get("/both", dependencies=[Depends(require_all_capabilities(["cap.events.view", "cap.events.edit"]))])
async def both():
    return {"ok": True}


@app.get("/open", dependencies=[Depends(require_any_capability([])), Depends(require_all_capabilities())])
async def open_to_all():
    return {"ok": True}


@app.get("/signed-in", dependencies=[Depends(AllowRoles())])
async def signed_in():
    return {"ok": True}


@app.get(
    "/area",
    dependencies=[Depends(require_role_route_access({
        UserRole.Warden: "route.warden.complaints",
        "Associate Warden": "route.associateWarden.complaints",
    }))],
)
async def area():
    return {"ok": True}


def _as(role, override=None, mode="enforce"):
    principal = None
    if role is not None:
        principal = SessionUser(
            id="u-1",
            email="u@hostel.edu",
            role=role.value,
            effective=build_effective_authz(role, override),
        )
    app.dependency_overrides[get_optional_user] = lambda: principal
    app.dependency_overrides[get_enforcement] = lambda: EnforcementController.create(mode=mode)


@pytest_asyncio.fixture
async def rbac_client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_all_capabilities_must_be_held(rbac_client):
    _as(UserRole.Gymkhana)
    assert (await rbac_client.get("/both")).status_code == 200

    _as(UserRole.Student)
    res = await rbac_client.get("/both")
    assert res.status_code == 403
    assert res.json()["detail"] == "You do not have permission to perform this action"


@pytest.mark.asyncio
async def test_empty_lists_still_need_a_principal(rbac_client):
    _as(UserRole.Student, {"revokes": ["*"]})
    assert (await rbac_client.get("/open")).status_code == 200

    _as(None)
    assert (await rbac_client.get("/open")).status_code == 401


@pytest.mark.asyncio
async def test_allow_roles_without_roles(rbac_client):
    _as(UserRole.HostelGate)
    assert (await rbac_client.get("/signed-in")).status_code == 200

    _as(None)
    assert (await rbac_client.get("/signed-in")).status_code == 401


@pytest.mark.asyncio
async def test_role_route_access_picks_key_by_role(rbac_client):
    _as(UserRole.Warden)
    assert (await rbac_client.get("/area")).status_code == 200

    _as(UserRole.AssociateWarden)
    assert (await rbac_client.get("/area")).status_code == 200

    _as(UserRole.Warden, {"revokes": ["route.warden.complaints"]})
    assert (await rbac_client.get("/area")).status_code == 403

    _as(UserRole.Warden, {"revokes": ["route.warden.complaints"]}, mode="observe")
    assert (await rbac_client.get("/area")).status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize("mode", ["off", "observe", "enforce"])
async def test_role_without_route_key_is_denied_in_every_mode(rbac_client, mode):
    _as(UserRole.Admin, mode=mode)

    res = await rbac_client.get("/area")

    assert res.status_code == 403
    assert res.json()["detail"] == "You do not have access to this route"
