"""
Tests for the reservation handoff, including concurrent redemption.
"""

import asyncio

import pytest
from httpx import AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from waiting_room.infrastructure import keys


async def admitted_exchange_token(client: AsyncClient, room, user_id="u1", event_id="E1") -> tuple[str, str]:
    """Enter, run one tick, and return (queue token, exchange token)."""
    response = await client.post("/api/v1/queue/enter", json={"userId": user_id, "eventId": event_id})
    queue_token = response.json()["queueToken"]
    await room.scheduler.tick()
    status = (await client.get("/api/v1/queue/status", params={"token": queue_token})).json()
    assert status["status"] == "ADMITTED"
    return queue_token, status["exchangeToken"]


@pytest.mark.asyncio
async def test_redeem_bad_token_returns_401(client: AsyncClient):
    response = await client.post("/api/v1/reservations/start", json={"exchangeToken": "bad-token"})
    assert response.status_code == 401
    assert response.json()["detail"] == "invalid_or_expired_exchange_token"


@pytest.mark.asyncio
async def test_redeem_missing_token_returns_400(client: AsyncClient):
    response = await client.post("/api/v1/reservations/start", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "exchangeToken is required"


@pytest.mark.asyncio
async def test_redeem_without_body_returns_400(client: AsyncClient):
    response = await client.post("/api/v1/reservations/start")
    assert response.status_code == 400
    assert response.json()["detail"] == "exchangeToken is required"


@pytest.mark.asyncio
async def test_redeem_starts_reservation(client: AsyncClient, room):
    _, exchange_token = await admitted_exchange_token(client, room, user_id="u7", event_id="E3")

    response = await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})
    assert response.status_code == 200
    data = response.json()
    assert data["reservationId"].startswith("r_")
    assert data["expiresInSec"] == 120
    assert data["userId"] == "u7"
    assert data["eventId"] == "E3"


@pytest.mark.asyncio
async def test_second_redeem_fails(client: AsyncClient, room):
    """Exchange tokens work exactly once."""
    _, exchange_token = await admitted_exchange_token(client, room)

    first = await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})
    second = await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})

    assert first.status_code == 200
    assert second.status_code == 401


@pytest.mark.asyncio
async def test_concurrent_redeems_create_one_reservation(client: AsyncClient, room, redis_client):
    _, exchange_token = await admitted_exchange_token(client, room)

    responses = await asyncio.gather(*(
        client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})
        for _ in range(5)
    ))

    codes = sorted(r.status_code for r in responses)
    assert codes == [200, 401, 401, 401, 401]
    sessions = [key async for key in redis_client.scan_iter(match="reservation:*")]
    assert len(sessions) == 1


@pytest.mark.asyncio
async def test_status_after_redeem_is_consumed(client: AsyncClient, room):
    queue_token, exchange_token = await admitted_exchange_token(client, room)
    await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})

    data = (await client.get("/api/v1/queue/status", params={"token": queue_token})).json()
    assert data["status"] == "CONSUMED"
    assert data["exchangeToken"] is None
    assert data["redeemUrl"] is None
    assert data["position"] is None


@pytest.mark.asyncio
async def test_expired_exchange_token_is_rejected(client: AsyncClient, room, expire):
    _, exchange_token = await admitted_exchange_token(client, room)
    await expire(keys.exchange_key(exchange_token))

    response = await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_reservation(client: AsyncClient, room):
    queue_token, exchange_token = await admitted_exchange_token(client, room, user_id="u2", event_id="E5")
    started = (await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})).json()

    response = await client.get(f"/api/v1/reservations/{started['reservationId']}")
    assert response.status_code == 200
    data = response.json()
    assert data["reservationId"] == started["reservationId"]
    assert data["queueToken"] == queue_token
    assert data["userId"] == "u2"
    assert data["eventId"] == "E5"
    assert 0 < data["expiresInSec"] <= 120


@pytest.mark.asyncio
async def test_expired_reservation_returns_404(client: AsyncClient, room, expire):
    _, exchange_token = await admitted_exchange_token(client, room)
    started = (await client.post("/api/v1/reservations/start", json={"exchangeToken": exchange_token})).json()
    await expire(keys.reservation_key(started["reservationId"]))

    response = await client.get(f"/api/v1/reservations/{started['reservationId']}")
    assert response.status_code == 404
    assert response.json()["detail"] == "reservation_not_found"


@pytest.mark.asyncio
async def test_storage_failure_returns_generic_500(client: AsyncClient, room, monkeypatch):
    async def broken_consume(exchange_token):
        raise RedisConnectionError("Error 111 connecting to redis-primary:6379")

    monkeypatch.setattr(room.tokens, "consume", broken_consume)

    response = await client.post("/api/v1/reservations/start", json={"exchangeToken": "x_anything"})
    assert response.status_code == 500
    assert response.json() == {"detail": "internal_error"}
