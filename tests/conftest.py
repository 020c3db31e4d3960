import os
import tempfile

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# ------------------------------------------------------------------
# TEST SETTINGS
# Must be set BEFORE importing hostel_authz: settings, the engine and
# the enforcement controller are built at import time.
# ------------------------------------------------------------------
_DB_PATH = os.path.join(tempfile.gettempdir(), f"hostel_authz_test_{os.getpid()}.db")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["AUTHZ_MODE"] = "observe"
os.environ["AUTHZ_ENFORCE_ROUTE_KEYS"] = ""
os.environ["AUTHZ_ENFORCE_CAPABILITY_KEYS"] = ""
os.environ["AUTHZ_OBSERVE_LOG_DENIES"] = "false"
os.environ.pop("REDIS_URL", None)

from hostel_authz.main import app  # noqa: E402
from hostel_authz.api.deps import get_enforcement  # noqa: E402
from hostel_authz.core.authz.enforcement import EnforcementController  # noqa: E402
from hostel_authz.core.database import AsyncSessionLocal, drop_db, init_db  # noqa: E402
from hostel_authz.models.user import UserRole  # noqa: E402
from hostel_authz.services.auth_service import create_user  # noqa: E402

PASSWORD = "password123"


@pytest_asyncio.fixture
async def database():
    """Fresh schema for every test that touches the database."""
    await drop_db()
    await init_db()
    yield
    await drop_db()


@pytest_asyncio.fixture
async def db_session(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
def set_enforcement():
    """Install an EnforcementController for the app; undone after the test."""
    def _set(**kwargs) -> EnforcementController:
        controller = EnforcementController.create(**kwargs)
        app.dependency_overrides[get_enforcement] = lambda: controller
        return controller

    yield _set
    app.dependency_overrides.pop(get_enforcement, None)


@pytest_asyncio.fixture
async def client(database):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest_asyncio.fixture
async def make_user(db_session):
    counter = {"n": 0}

    async def _make(role: UserRole, email: str | None = None, authz: dict | None = None, **kwargs):
        counter["n"] += 1
        if role == UserRole.Student:
            kwargs.setdefault("hostel", "H1")
        user = await create_user(
            db_session,
            name=kwargs.pop("name", f"{role.value} {counter['n']}"),
            email=email or f"user{counter['n']}@hostel.edu",
            password=kwargs.pop("password", PASSWORD),
            role=role,
            **kwargs,
        )
        if authz is not None:
            user.authz = authz
            db_session.add(user)
            await db_session.commit()
            await db_session.refresh(user)
        return user

    return _make


@pytest_asyncio.fixture
async def login(client):
    async def _login(user, password: str = PASSWORD) -> dict:
        res = await client.post("/api/auth/login", json={"email": user.email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['access_token']}"}

    return _login
