import os
import uuid
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

# IMPORTANT:
# Set env vars BEFORE importing app.settings/app.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_watchtracker.db")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("TMDB_TOKEN", "test-tmdb-token")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.main import app as fastapi_app  # noqa: E402
from app.db.base_class import Base  # noqa: E402
import app.db.base  # noqa: F401,E402  (register models)
from app.db.session import engine, AsyncSessionLocal  # noqa: E402
from app.services import tmdb as tmdb_service  # noqa: E402
from app.services.titles import TitleMetadata  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def _schema(anyio_backend):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _clear_tmdb_cache():
    tmdb_service.clear_cache()
    yield
    tmdb_service.clear_cache()


@pytest.fixture
async def db_session(_schema):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client(_schema):
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


# --- Small helpers ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        email: str | None = None,
        username: str | None = None,
        display_name: str | None = None,
        password: str = "SuperSecret123",
    ):
        email = email or f"{unique_str('user')}@example.com"
        username = username or unique_str("user")
        display_name = display_name or username
        r = await client.post(
            "/auth/register",
            json={
                "email": email,
                "username": username,
                "display_name": display_name,
                "password": password,
            },
        )
        assert r.status_code in (200, 201), r.text
        data = r.json()
        assert "id" in data
        return {
            "id": data["id"],
            "default_list_id": data["default_list_id"],
            "email": email,
            "username": username,
            "display_name": display_name,
            "password": password,
        }

    return _create


@pytest.fixture
def login_helper():
    async def _login(client: AsyncClient, *, email: str, password: str):
        client.cookies.clear()
        r = await client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = client.cookies.get("access_token")
        assert token, "Login did not set access_token cookie"
        return token

    return _login


@pytest.fixture
def authed_user(user_factory, login_helper):
    async def _create(client: AsyncClient, **kwargs):
        user = await user_factory(client, **kwargs)
        token = await login_helper(client, email=user["email"], password=user["password"])
        user["token"] = token
        return user

    return _create


@pytest.fixture
def set_auth_cookie():
    def _set(client: AsyncClient, token: str | None):
        client.cookies.clear()
        if token:
            client.cookies.set("access_token", token)

    return _set


# --- Catalog fakes ---

CATALOG = {
    (438631, "movie"): TitleMetadata(
        name="Dune",
        original_name="Dune",
        release_date=date(2021, 9, 15),
        poster_path="/dune.jpg",
        overview="Paul Atreides travels to Arrakis.",
    ),
    (603, "movie"): TitleMetadata(
        name="The Matrix",
        original_name="The Matrix",
        release_date=date(1999, 3, 30),
        poster_path="/matrix.jpg",
        overview="A hacker learns the truth.",
    ),
    (1399, "series"): TitleMetadata(
        name="Game of Thrones",
        original_name="Game of Thrones",
        release_date=date(2011, 4, 17),
        poster_path="/got.jpg",
        overview="Noble families fight for the Iron Throne.",
    ),
}


@pytest.fixture
def fake_catalog(monkeypatch):
    """Replace TMDB detail lookups with the in-memory CATALOG. Returns the list of calls made."""
    calls: list[tuple[int, str]] = []

    async def _fetch(*, tmdb_id: int, media_kind: str):
        calls.append((tmdb_id, media_kind))
        return CATALOG.get((tmdb_id, media_kind))

    monkeypatch.setattr(tmdb_service, "fetch_tmdb_title_details", _fetch)
    return calls


@pytest.fixture
def make_user(db_session, unique_str):
    """Insert a user straight into the database, for ledger-level tests."""
    from app.core.security import hash_password
    from app.models.user import User

    async def _create(username: str | None = None):
        username = username or unique_str("u")
        user = User(
            email=f"{username}@example.com",
            username=username,
            display_name=username,
            password_hash=hash_password("SuperSecret123"),
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _create
