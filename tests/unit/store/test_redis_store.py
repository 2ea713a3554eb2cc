"""Tests for the Redis session store against a mocked client."""

from unittest.mock import AsyncMock

import pytest

from clipbridge.core.modules.session.models import Session
from clipbridge.core.store import RedisSessionStore


@pytest.fixture
def client():
    return AsyncMock()


@pytest.fixture
def redis_store(client):
    return RedisSessionStore(client)


@pytest.fixture
def session():
    return Session(code="654321", secret_key="a" * 64, content="ciphertext")


@pytest.mark.anyio
class TestRedisSessionStore:
    """Tests for key naming, TTL and put-if-absent semantics."""

    async def test_exists(self, redis_store, client):
        client.exists.return_value = 1
        assert await redis_store.exists("654321")
        client.exists.assert_awaited_once_with("device:654321")

        client.exists.return_value = 0
        assert not await redis_store.exists("654321")

    async def test_get_missing(self, redis_store, client):
        client.get.return_value = None
        assert await redis_store.get("654321") is None

    async def test_get_parses_stored_json(self, redis_store, client, session):
        client.get.return_value = session.to_store()
        assert await redis_store.get("654321") == session
        client.get.assert_awaited_once_with("device:654321")

    async def test_put_sets_ttl(self, redis_store, client, session):
        await redis_store.put(session, 86400)
        client.set.assert_awaited_once_with("device:654321", session.to_store(), ex=86400)

    async def test_create_uses_nx(self, redis_store, client, session):
        client.set.return_value = True
        assert await redis_store.create(session, 86400)
        client.set.assert_awaited_once_with("device:654321", session.to_store(), ex=86400, nx=True)

    async def test_create_collision(self, redis_store, client, session):
        client.set.return_value = None
        assert not await redis_store.create(session, 86400)

    async def test_close(self, redis_store, client):
        await redis_store.close()
        client.aclose.assert_awaited_once()


class TestPersistedShape:
    """Tests for the JSON record written to Redis."""

    def test_persisted_shape_uses_camel_case(self, session):
        """Test that the stored record keeps the documented field names."""
        stored = session.to_store()
        assert '"secretKey"' in stored
        assert '"lastActiveAt"' in stored
        assert '"content":"ciphertext"' in stored
