"""
Admin user management contract tests.

Endpoints:
    GET /api/admin/users?role=&search=
    GET /api/admin/users/{id}
    PUT /api/admin/users/{id}
"""
from __future__ import annotations

import httpx
import pytest
from httpx import ASGITransport

from backend.web import main

pytestmark = pytest.mark.anyio("asyncio")


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ASGITransport(app=main.app), base_url="http://test")


def _login(client: httpx.AsyncClient, role: str = "admin") -> None:
    rec = main.SESSION_STORE.create(sub=f"{role}-1", role=role)
    client.cookies.set(main.SESSION_COOKIE_NAME, rec.session_id)


def _seed(repo) -> None:
    repo.add_user(
        id="u1",
        email="admin@phenofarm.example",
        name="Admin User",
        role="admin",
        created_at="2025-01-01T00:00:00+00:00",
    )
    repo.add_user(
        id="u2",
        email="john@greenvalley.example",
        name="John Green",
        role="grower",
        created_at="2025-02-01T00:00:00+00:00",
    )
    repo.add_user(
        id="u3",
        email="jane@harbor.example",
        name="Jane Harbor",
        role="dispensary",
        created_at="2025-03-01T00:00:00+00:00",
    )
    repo.add_grower(id="g1", business_name="Green Valley Farms", user_id="u2")
    repo.add_dispensary(id="d1", business_name="Harbor Wellness", is_verified=True, user_id="u3")


@pytest.mark.anyio
async def test_list_users_newest_first_with_profiles(repo):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.get("/api/admin/users")
    assert resp.status_code == 200
    assert resp.headers.get("Cache-Control") == "private, no-store"
    users = resp.json()["users"]
    assert [u["id"] for u in users] == ["u3", "u2", "u1"]
    assert users[0]["dispensary"]["businessName"] == "Harbor Wellness"
    assert users[1]["grower"]["isVerified"] is False
    assert users[2]["grower"] is None and users[2]["dispensary"] is None


@pytest.mark.parametrize(
    "query, expected",
    [
        ("role=GROWER", ["u2"]),
        ("role=ALL", ["u3", "u2", "u1"]),
        ("search=harbor", ["u3"]),
        ("search=EXAMPLE&role=admin", ["u1"]),
        ("search=%25", []),
    ],
)
@pytest.mark.anyio
async def test_list_users_filters(repo, query: str, expected: list[str]):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.get(f"/api/admin/users?{query}")
    assert [u["id"] for u in resp.json()["users"]] == expected


@pytest.mark.parametrize("method, path", [("GET", "/api/admin/users"), ("GET", "/api/admin/users/u1"), ("PUT", "/api/admin/users/u1")])
@pytest.mark.anyio
async def test_user_endpoints_require_admin(repo, method: str, path: str):
    _seed(repo)
    async with _client() as client:
        _login(client, role="grower")
        resp = await client.request(method, path, json={"role": "admin"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "unauthorized"}
    assert repo.users["u1"].role == "admin"


@pytest.mark.anyio
async def test_get_user_and_unknown_id(repo):
    _seed(repo)
    async with _client() as client:
        _login(client)
        ok = await client.get("/api/admin/users/u2")
        missing = await client.get("/api/admin/users/nope")
    assert ok.status_code == 200
    assert ok.json()["user"]["email"] == "john@greenvalley.example"
    assert ok.json()["user"]["grower"]["id"] == "g1"
    assert missing.status_code == 404
    assert missing.json() == {"error": "User not found"}


@pytest.mark.anyio
async def test_put_updates_fields_and_normalizes_role(repo):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.put("/api/admin/users/u2", json={"name": "John G.", "role": "DISPENSARY"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "User updated successfully"
    assert body["user"]["name"] == "John G."
    assert body["user"]["role"] == "dispensary"
    assert repo.users["u2"].email == "john@greenvalley.example"


@pytest.mark.parametrize(
    "payload, error",
    [
        ({"role": "owner"}, "role must be one of admin, dispensary, grower"),
        ({"email": "not-an-email"}, "email must be a valid address"),
        ({"name": "  "}, "name must not be empty"),
        ({"role": 1}, "name, email and role must be strings"),
        ([], "name, email and role must be strings"),
    ],
)
@pytest.mark.anyio
async def test_put_rejects_invalid_changes(repo, payload, error: str):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.put("/api/admin/users/u2", json=payload)
    assert resp.status_code == 400
    assert resp.json() == {"error": error}
    assert repo.users["u2"].role == "grower"
    assert repo.users["u2"].name == "John Green"


@pytest.mark.anyio
async def test_put_non_json_body_is_400(repo):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.put(
            "/api/admin/users/u2", content=b"role=admin", headers={"Content-Type": "text/plain"}
        )
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_put_unknown_user_is_404(repo):
    async with _client() as client:
        _login(client)
        resp = await client.put("/api/admin/users/nope", json={"name": "Someone"})
    assert resp.status_code == 404
    assert resp.json() == {"error": "User not found"}


@pytest.mark.anyio
async def test_put_email_taken_is_409(repo):
    _seed(repo)
    async with _client() as client:
        _login(client)
        resp = await client.put("/api/admin/users/u2", json={"email": "jane@harbor.example"})
    assert resp.status_code == 409
    assert resp.json() == {"error": "Email already in use"}


@pytest.mark.anyio
async def test_storage_failure_is_500(repo, monkeypatch: pytest.MonkeyPatch):
    def _boom(**_):
        raise RuntimeError("connection refused")

    monkeypatch.setattr(repo, "list_users", _boom)
    async with _client() as client:
        _login(client)
        resp = await client.get("/api/admin/users")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to fetch users"}
