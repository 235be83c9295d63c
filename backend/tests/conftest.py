"""
Pytest fixtures for a fake Redis, the wired services, and an HTTP client.

Each test gets a fresh fakeredis server, so no state leaks between tests
and no real Redis is needed. The scheduler is never started in the
background here; tests drive it by calling tick() directly.
"""

import asyncio
from typing import AsyncGenerator

import pytest
import pytest_asyncio
import fakeredis
import fakeredis.aioredis
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport

from waiting_room.core.config import Settings
from waiting_room.infrastructure import keys
from waiting_room.main import create_app
from waiting_room.services.container import WaitingRoom


@pytest.fixture
def settings() -> Settings:
    """Defaults from the service, with the scheduler left to the tests."""
    return Settings(
        QUEUE_BATCH_SIZE=5,
        QUEUE_BATCH_INTERVAL_MS=3000,
        QUEUE_ENTRY_TTL_SEC=3600,
        ADMISSION_TTL_SEC=120,
        RESERVATION_TTL_SEC=120,
        SCHEDULER_ENABLED=False,
        SCHEDULER_LOCK="local",
    )


@pytest.fixture
def fake_server() -> fakeredis.FakeServer:
    return fakeredis.FakeServer()


@pytest_asyncio.fixture
async def redis_client(fake_server) -> AsyncGenerator[fakeredis.aioredis.FakeRedis, None]:
    client = fakeredis.aioredis.FakeRedis(server=fake_server, decode_responses=True)
    yield client
    await client.aclose()


@pytest.fixture
def app(settings: Settings, redis_client) -> FastAPI:
    return create_app(settings, redis_client)


@pytest.fixture
def room(app: FastAPI) -> WaitingRoom:
    """The same services the HTTP client talks to."""
    return app.state.waiting_room


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def expire(redis_client):
    """Let a key's TTL run out instead of deleting it."""

    async def _expire(*names: str) -> None:
        for name in names:
            await redis_client.pexpire(name, 1)
        await asyncio.sleep(0.01)

    return _expire


@pytest.fixture
def expire_token(expire):
    """Expire a queue token's metadata and state, as its entry TTL would."""

    async def _expire_token(queue_token: str) -> None:
        await expire(keys.token_key(queue_token), keys.state_key(queue_token))

    return _expire_token
