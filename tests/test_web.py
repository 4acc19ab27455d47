#!/usr/bin/env python3
"""HTTP tests for the WebServer routes."""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from aiohttp.test_utils import TestClient, TestServer
from pymongo.errors import AutoReconnect

sys.path.insert(0, str(Path(__file__).parent.parent / "tools"))

from pathhero.web import TOKEN_COOKIE, WebServer

SECRET = "test-secret-that-is-long-enough-for-hs256"


@pytest.fixture
def server(user_store, hunt_store):
    return WebServer({"auth": {"jwt_secret": SECRET}}, user_store, hunt_store)


def _client(server):
    return TestClient(TestServer(server.build_app()))


async def _signup(client, username="alice", password="secret"):
    resp = await client.post("/signup", json={"username": username, "password": password})
    assert resp.status == 200
    return resp


class TestConfig:
    def test_defaults(self, user_store, hunt_store):
        web = WebServer({}, user_store, hunt_store)
        assert web.host == "localhost"
        assert web.port == 3000
        assert web.secure_cookies is False
        assert web.token_expiry_hours == 24

    def test_requires_stores(self):
        with pytest.raises(ValueError):
            WebServer({}, None, MagicMock())


class TestAuthRoutes:
    @pytest.mark.asyncio
    async def test_signup_sets_session(self, server):
        async with _client(server) as client:
            resp = await _signup(client)
            assert await resp.json() == {"id": "alice"}
            assert TOKEN_COOKIE in resp.cookies

            resp = await client.get("/api/hunts")
            assert resp.status == 200
            assert await resp.json() == []

    @pytest.mark.asyncio
    async def test_signup_with_other_password_for_existing_user(self, server):
        async with _client(server) as client:
            await _signup(client, password="secret")
            resp = await client.post(
                "/signup", json={"username": "alice", "password": "other"}
            )
            assert resp.status == 401
            assert await resp.json() == {"error": "Incorrect user name or password"}

    @pytest.mark.asyncio
    async def test_signup_requires_fields(self, server):
        async with _client(server) as client:
            resp = await client.post("/signup", json={"username": "alice"})
            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_login(self, server, user_store):
        await user_store.find_or_create_user("alice", "secret")
        async with _client(server) as client:
            resp = await client.post("/login", json={"username": "alice", "password": "secret"})
            assert resp.status == 200
            assert await resp.json() == {"id": "alice"}

    @pytest.mark.asyncio
    async def test_login_with_form_body(self, server, user_store):
        await user_store.find_or_create_user("alice", "secret")
        async with _client(server) as client:
            resp = await client.post("/login", data={"username": "alice", "password": "secret"})
            assert resp.status == 200

    @pytest.mark.asyncio
    async def test_null_password_is_treated_as_empty(self, server, user_store):
        await user_store.find_or_create_user("alice", "None")
        async with _client(server) as client:
            resp = await client.post("/login", json={"username": "alice", "password": None})
            assert resp.status == 401

            resp = await client.post("/signup", json={"username": "bob", "password": None})
            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_long_password_login_failure_is_unauthorized(self, server):
        async with _client(server) as client:
            resp = await client.post(
                "/login", json={"username": "nobody", "password": "x" * 100}
            )
            assert resp.status == 401

    @pytest.mark.asyncio
    async def test_login_failure(self, server):
        async with _client(server) as client:
            resp = await client.post("/login", json={"username": "nobody", "password": "x"})
            assert resp.status == 401
            assert await resp.json() == {"error": "Incorrect user name or password"}
            assert TOKEN_COOKIE not in resp.cookies

    @pytest.mark.asyncio
    async def test_malformed_json(self, server):
        async with _client(server) as client:
            resp = await client.post(
                "/login", data="{not json", headers={"Content-Type": "application/json"}
            )
            assert resp.status == 400

    @pytest.mark.asyncio
    async def test_logout_clears_cookie(self, server):
        async with _client(server) as client:
            await _signup(client)
            resp = await client.get("/logout")
            assert resp.status == 200
            assert resp.cookies[TOKEN_COOKIE].value == ""

    @pytest.mark.asyncio
    async def test_forged_cookie_is_rejected(self, server):
        async with _client(server) as client:
            client.session.cookie_jar.update_cookies({TOKEN_COOKIE: "forged"})
            resp = await client.get("/api/hunts")
            assert resp.status == 401


class TestHuntRoutes:
    @pytest.mark.asyncio
    async def test_hunt_lifecycle(self, server, park_quest):
        async with _client(server) as client:
            await _signup(client)

            park_quest["creatorId"] = "someone-else"
            resp = await client.post("/api/hunts", json=park_quest)
            assert resp.status == 201
            url = (await resp.json())["url"]
            assert url.startswith("http://play.pathhero.test/")
            hunt_id = url.rsplit("/", 1)[1]

            resp = await client.get("/api/hunts")
            hunts = await resp.json()
            assert [h["_id"] for h in hunts] == [hunt_id]
            assert hunts[0]["creatorId"] == "alice"

            resp = await client.get(f"/api/hunts/{hunt_id}")
            assert resp.status == 200
            assert (await resp.json())["huntName"] == "Park Quest"

            resp = await client.put(
                f"/api/hunts/{hunt_id}", json={**park_quest, "huntName": "Park Quest II"}
            )
            assert resp.status == 200
            updated = await resp.json()
            assert updated["_id"] == hunt_id
            assert updated["url"] == url
            assert updated["huntName"] == "Park Quest II"

            resp = await client.delete(f"/api/hunts/{hunt_id}")
            assert resp.status == 200
            assert (await resp.json())["_id"] == hunt_id

            resp = await client.get(f"/api/hunts/{hunt_id}")
            assert resp.status == 404

    @pytest.mark.asyncio
    async def test_all_hunts_is_public(self, server, hunt_store, park_quest):
        await hunt_store.add_hunt(park_quest)
        async with _client(server) as client:
            resp = await client.get("/api/hunts/all")
            assert resp.status == 200
            assert len(await resp.json()) == 1

    @pytest.mark.asyncio
    async def test_malformed_id_is_not_found(self, server):
        async with _client(server) as client:
            await _signup(client)
            assert (await client.get("/api/hunts/not-a-valid-id")).status == 404
            assert (await client.delete("/api/hunts/not-a-valid-id")).status == 404
            resp = await client.put("/api/hunts/not-a-valid-id", json={"huntName": "x"})
            assert resp.status == 404

    @pytest.mark.asyncio
    async def test_writes_require_login(self, server, park_quest):
        async with _client(server) as client:
            assert (await client.get("/api/hunts")).status == 401
            assert (await client.post("/api/hunts", json=park_quest)).status == 401
            assert (await client.delete("/api/hunts/abc")).status == 401

    @pytest.mark.asyncio
    async def test_invalid_hunt_is_bad_request(self, server):
        async with _client(server) as client:
            await _signup(client)
            resp = await client.post("/api/hunts", json={"pins": "none"})
            assert resp.status == 400
            assert "error" in await resp.json()

    @pytest.mark.asyncio
    async def test_store_failure_is_server_error(self, server, fake_db):
        fake_db["Hunts"].fail_with = AutoReconnect("connection reset")
        async with _client(server) as client:
            resp = await client.get("/api/hunts/all")
            assert resp.status == 500
            assert await resp.json() == {"error": "Internal server error"}
