"""
Tests for queue entry and status endpoints.
"""

import pytest
from httpx import AsyncClient

from waiting_room.infrastructure import keys


async def enter(client: AsyncClient, user_id="u1", event_id="E1") -> dict:
    response = await client.post("/api/v1/queue/enter", json={"userId": user_id, "eventId": event_id})
    assert response.status_code == 200
    return response.json()


@pytest.mark.asyncio
async def test_enter_returns_waiting_token(client: AsyncClient):
    """First entrant is at the front of the line."""
    data = await enter(client)

    assert data["queueToken"].startswith("q_")
    assert data["status"] == "WAITING"
    assert data["position"] == 1
    assert data["expiresInSec"] == 3600


@pytest.mark.asyncio
async def test_enter_then_status(client: AsyncClient):
    """Freshly entered token is WAITING at position 1 with no wait."""
    token = (await enter(client))["queueToken"]

    response = await client.get("/api/v1/queue/status", params={"token": token})
    assert response.status_code == 200
    data = response.json()
    assert data["queueToken"] == token
    assert data["status"] == "WAITING"
    assert data["position"] == 1
    assert data["estimatedWaitSec"] == 0
    assert 0 < data["expiresInSec"] <= 3600
    assert data["exchangeToken"] is None
    assert data["redeemUrl"] is None


@pytest.mark.asyncio
async def test_positions_follow_join_order(client: AsyncClient):
    tokens = [(await enter(client, user_id=f"u{i}"))["queueToken"] for i in range(3)]

    positions = []
    for token in tokens:
        response = await client.get("/api/v1/queue/status", params={"token": token})
        positions.append(response.json()["position"])
    assert positions == [1, 2, 3]


@pytest.mark.asyncio
@pytest.mark.parametrize("body,field", [
    ({"eventId": "E1"}, "userId"),
    ({"userId": "u1"}, "eventId"),
    ({"userId": "", "eventId": "E1"}, "userId"),
    ({}, "userId"),
])
async def test_enter_missing_field_returns_400(client: AsyncClient, body, field):
    response = await client.post("/api/v1/queue/enter", json=body)
    assert response.status_code == 400
    assert response.json()["detail"] == f"{field} is required"


@pytest.mark.asyncio
async def test_enter_without_body_returns_400(client: AsyncClient):
    response = await client.post("/api/v1/queue/enter")
    assert response.status_code == 400
    assert response.json()["detail"] == "userId is required"


@pytest.mark.asyncio
async def test_status_without_token_returns_400(client: AsyncClient):
    response = await client.get("/api/v1/queue/status")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_status_unknown_token_returns_404(client: AsyncClient):
    response = await client.get("/api/v1/queue/status", params={"token": "q_doesnotexist"})
    assert response.status_code == 404
    assert response.json()["detail"] == "token_not_found"


@pytest.mark.asyncio
async def test_status_expired_token_matches_unknown(client: AsyncClient, expire_token):
    """An expired token is indistinguishable from one that never existed."""
    token = (await enter(client))["queueToken"]
    await expire_token(token)

    expired = await client.get("/api/v1/queue/status", params={"token": token})
    unknown = await client.get("/api/v1/queue/status", params={"token": "q_doesnotexist"})
    assert expired.status_code == unknown.status_code == 404
    assert expired.json() == unknown.json()


@pytest.mark.asyncio
async def test_repeated_status_is_stable_between_ticks(client: AsyncClient):
    for i in range(4):
        await enter(client, user_id=f"u{i}")
    token = (await enter(client, user_id="me"))["queueToken"]

    responses = [
        (await client.get("/api/v1/queue/status", params={"token": token})).json()
        for _ in range(3)
    ]
    views = [(r["status"], r["position"], r["estimatedWaitSec"]) for r in responses]
    assert views == [("WAITING", 5, 3)] * 3


@pytest.mark.asyncio
async def test_twelve_entrants_one_tick(client: AsyncClient, room):
    """Five earliest are admitted; the other seven move up in order."""
    tokens = [(await enter(client, user_id=f"u{i}"))["queueToken"] for i in range(12)]

    await room.scheduler.tick()

    statuses = [
        (await client.get("/api/v1/queue/status", params={"token": t})).json()
        for t in tokens
    ]
    assert [s["status"] for s in statuses[:5]] == ["ADMITTED"] * 5
    assert [s["position"] for s in statuses[:5]] == [None] * 5
    assert [s["estimatedWaitSec"] for s in statuses[:5]] == [None] * 5
    assert [s["status"] for s in statuses[5:]] == ["WAITING"] * 7
    assert [s["position"] for s in statuses[5:]] == [1, 2, 3, 4, 5, 6, 7]


@pytest.mark.asyncio
async def test_admitted_status_carries_exchange_token(client: AsyncClient, room):
    token = (await enter(client))["queueToken"]
    await room.scheduler.tick()

    data = (await client.get("/api/v1/queue/status", params={"token": token})).json()
    assert data["status"] == "ADMITTED"
    assert data["exchangeToken"].startswith("x_")
    assert data["redeemUrl"] == f"/reserve?exchangeToken={data['exchangeToken']}"


@pytest.mark.asyncio
async def test_lapsed_admission_reports_expired(client: AsyncClient, room, expire):
    """Admission window ran out but the queue token itself is still known."""
    token = (await enter(client))["queueToken"]
    await room.scheduler.tick()
    exchange_token = await room.tokens.exchange_for(token)
    await expire(
        keys.state_key(token),
        keys.admission_pointer_key(token),
        keys.exchange_key(exchange_token),
    )

    data = (await client.get("/api/v1/queue/status", params={"token": token})).json()
    assert data["status"] == "EXPIRED"
    assert data["position"] is None
    assert data["exchangeToken"] is None


@pytest.mark.asyncio
async def test_event_stats(client: AsyncClient):
    for i in range(12):
        await enter(client, user_id=f"u{i}", event_id="E9")

    response = await client.get("/api/v1/queue/events/E9")
    assert response.status_code == 200
    assert response.json() == {
        "eventId": "E9",
        "waiting": 12,
        "batchSize": 5,
        "batchIntervalMs": 3000,
        "estimatedDrainSec": 7,
    }


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["scheduler"] == {"enabled": False, "running": False, "lock": "local"}


@pytest.mark.asyncio
async def test_metrics_exposed(client: AsyncClient):
    await enter(client)
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert "waiting_room_queue_entries_total" in response.text
