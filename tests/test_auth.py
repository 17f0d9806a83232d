import pytest
from jose import jwt

from app.core.config import settings
from app.core.security import create_access_token

pytestmark = pytest.mark.anyio


async def test_register_login_me(client, user_factory, login_helper):
    user = await user_factory(client, display_name="A")
    await login_helper(client, email=user["email"], password=user["password"])

    r = await client.get("/me")
    assert r.status_code == 200
    data = r.json()
    assert data["email"] == user["email"]
    assert data["username"] == user["username"]
    assert data["display_name"] == "A"
    assert data["default_list_id"] == user["default_list_id"]


async def test_register_creates_private_default_list(client, authed_user):
    user = await authed_user(client)

    r = await client.get("/lists")
    assert r.status_code == 200
    lists = r.json()["lists"]
    assert len(lists) == 1
    assert lists[0]["id"] == user["default_list_id"]
    assert lists[0]["name"] == "Watchlist"
    assert lists[0]["visibility"] == "private"
    assert lists[0]["is_default"] is True
    assert lists[0]["item_count"] == 0


async def test_register_rejects_duplicate_email(client, user_factory):
    user = await user_factory(client)
    r = await client.post(
        "/auth/register",
        json={
            "email": user["email"].upper(),
            "username": "someone_else",
            "display_name": "Other",
            "password": "SuperSecret123",
        },
    )
    assert r.status_code == 409
    assert r.json() == {"error": "Email or username already in use"}


async def test_register_validation_error_uses_error_body(client):
    r = await client.post(
        "/auth/register",
        json={"email": "not-an-email", "username": "ok_name", "display_name": "X", "password": "SuperSecret123"},
    )
    assert r.status_code == 400
    assert set(r.json()) == {"error"}


async def test_login_with_wrong_password(client, user_factory):
    user = await user_factory(client)
    r = await client.post("/auth/login", json={"email": user["email"], "password": "wrong-password"})
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid credentials"}


async def test_me_requires_auth(client):
    r = await client.get("/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Not authenticated"}


async def test_me_rejects_garbage_token(client, set_auth_cookie):
    set_auth_cookie(client, "not-a-jwt")
    r = await client.get("/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid token"}


async def test_logout_revokes_auth_cookie(client, user_factory, login_helper):
    user = await user_factory(client, display_name="A")
    await login_helper(client, email=user["email"], password=user["password"])

    me_before = await client.get("/me")
    assert me_before.status_code == 200

    logout = await client.post("/auth/logout")
    assert logout.status_code == 200
    assert logout.json() == {"ok": True}

    me_after = await client.get("/me")
    assert me_after.status_code == 401


async def test_health(client):
    r = await client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


async def test_unknown_route_uses_error_body(client):
    r = await client.get("/no-such-route")
    assert r.status_code == 404
    assert r.json() == {"error": "Not Found"}


def test_access_token_lifetime_comes_from_settings():
    token = create_access_token("user-123")
    claims = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    assert claims["sub"] == "user-123"
    assert claims["exp"] - claims["iat"] == settings.access_token_expire_minutes * 60
