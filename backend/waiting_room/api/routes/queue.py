"""
Queue endpoints: join an event's waiting line and poll for admission.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from waiting_room.api.dependencies import get_queue_service
from waiting_room.schemas.queue import EnterRequest, EnterResponse, StatusResponse, EventQueueStats
from waiting_room.services.queue_service import QueueService

router = APIRouter(prefix="/queue", tags=["Queue"])


@router.post("/enter", response_model=EnterResponse)
async def enter_queue(
    payload: Optional[EnterRequest] = None,
    queue: QueueService = Depends(get_queue_service),
):
    """
    Join the waiting line for an event.

    Returns a queue token with its current position. The token stays valid
    for QUEUE_ENTRY_TTL_SEC; poll /queue/status with it until admitted.
    """
    payload = payload or EnterRequest()
    return await queue.enter(payload.user_id, payload.event_id)


@router.get("/status", response_model=StatusResponse)
async def queue_status(
    token: Optional[str] = Query(None, max_length=128),
    queue: QueueService = Depends(get_queue_service),
):
    """
    Check a queue token's state.

    WAITING tokens get position and estimated wait. ADMITTED tokens get an
    exchange token and the URL to redeem it. Unknown or expired tokens 404.
    """
    return await queue.status(token)


@router.get("/events/{event_id}", response_model=EventQueueStats)
async def event_queue_stats(
    event_id: str,
    queue: QueueService = Depends(get_queue_service),
):
    """Waiting count and drain estimate for one event."""
    return await queue.event_stats(event_id)
