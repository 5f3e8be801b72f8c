"""Integration tests for SessionMiddleware."""

from datetime import timedelta

import fakeredis.aioredis
import jwt
from httpx import AsyncClient

from tests.factories import make_auth_headers


class TestPublicPaths:
    """Public paths are served without a session."""

    async def test_health_check(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["data"] == {"status": "healthy"}

    async def test_root(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/")
        assert resp.status_code == 200
        assert resp.json()["data"]["app"] == "chathub"

    async def test_docs(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/docs")
        assert resp.status_code == 200


class TestProtectedPaths:
    """Protected paths need a live session."""

    async def test_without_token(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/v1/chats")
        assert resp.status_code == 401
        assert resp.json() == {
            "status": 401,
            "message": "You need to sign in to continue.",
            "code": "unauthorized:chat",
        }

    async def test_with_garbage_token(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/v1/chats", headers={"Authorization": "Bearer not.a.token"}
        )
        assert resp.status_code == 401
        assert resp.json()["code"] == "unauthorized:chat"

    async def test_with_expired_token(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/v1/chats", headers=make_auth_headers(expires_in=timedelta(seconds=-10))
        )
        assert resp.status_code == 401

    async def test_with_revoked_token(
        self, async_client: AsyncClient, fake_redis: fakeredis.aioredis.FakeRedis
    ) -> None:
        headers = make_auth_headers("user-1")
        token = headers["Authorization"].removeprefix("Bearer ")
        jti = jwt.decode(token, options={"verify_signature": False})["jti"]
        await fake_redis.set(f"session_revoked:{jti}", "1")

        resp = await async_client.get("/api/v1/chats", headers=headers)
        assert resp.status_code == 401

    async def test_with_valid_token(self, async_client: AsyncClient) -> None:
        resp = await async_client.get("/api/v1/chats", headers=make_auth_headers("user-1"))
        assert resp.status_code == 200
        assert resp.json()["data"] == {"chats": []}

    async def test_anonymous_sessions_are_callers_too(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(
            "/api/v1/chats", headers=make_auth_headers("guest-1", is_anonymous=True)
        )
        assert resp.status_code == 200
