"""
Tests for the standalone admission worker's startup and shutdown.
"""

import asyncio

import pytest

from waiting_room import worker
from waiting_room.models.queue import TokenState
from waiting_room.services.container import build_waiting_room


@pytest.fixture
def worker_settings(settings):
    return settings.model_copy(update={"QUEUE_BATCH_INTERVAL_MS": 10})


@pytest.fixture
def closed_clients(monkeypatch):
    """Record close_redis calls; the redis_client fixture closes the client itself."""
    closed = []

    async def record_close(client):
        closed.append(client)

    monkeypatch.setattr(worker, "close_redis", record_close)
    monkeypatch.setattr(worker, "setup_logging", lambda: None)
    return closed


@pytest.mark.asyncio
async def test_worker_admits_until_stopped(worker_settings, redis_client, closed_clients):
    room = build_waiting_room(worker_settings, redis_client)
    tokens = [(await room.ledger.enter("E1", f"u{i}")).queue_token for i in range(7)]

    stop = asyncio.Event()
    task = asyncio.create_task(worker.run_worker(worker_settings, redis_client, stop))

    for _ in range(200):
        if await room.ledger.size("E1") == 0:
            break
        await asyncio.sleep(0.01)

    stop.set()
    await asyncio.wait_for(task, timeout=5)

    states = [await room.tokens.get_state(t) for t in tokens]
    assert states == [TokenState.ADMITTED] * 7
    assert closed_clients == [redis_client]


@pytest.mark.asyncio
async def test_worker_stops_cleanly_with_nothing_queued(worker_settings, redis_client, closed_clients):
    stop = asyncio.Event()
    task = asyncio.create_task(worker.run_worker(worker_settings, redis_client, stop))
    await asyncio.sleep(0.05)

    stop.set()
    await asyncio.wait_for(task, timeout=5)

    assert task.exception() is None
    assert closed_clients == [redis_client]
