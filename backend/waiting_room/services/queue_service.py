"""
Queue service handling entry, status polling and per-event stats.
"""

from typing import Optional
from urllib.parse import quote

from waiting_room.core.config import Settings
from waiting_room.core.errors import MissingField, TokenNotFound
from waiting_room.core.logging import get_logger
from waiting_room.core.metrics import queue_entries
from waiting_room.models.queue import TokenState
from waiting_room.schemas.queue import EnterResponse, StatusResponse, EventQueueStats
from waiting_room.services.eta import estimate_wait
from waiting_room.services.queue_ledger import QueueLedger
from waiting_room.services.token_store import TokenStateStore

logger = get_logger(__name__)


class QueueService:
    def __init__(self, ledger: QueueLedger, tokens: TokenStateStore, settings: Settings):
        self.ledger = ledger
        self.tokens = tokens
        self.settings = settings

    async def enter(self, user_id: Optional[str], event_id: Optional[str]) -> EnterResponse:
        """
        Join an event's waiting line.
        Raises 400 if userId or eventId is missing.
        """
        if not user_id:
            raise MissingField("userId")
        if not event_id:
            raise MissingField("eventId")

        token = await self.ledger.enter(event_id, user_id)
        queue_entries.inc()
        position = await self.ledger.rank(event_id, token.queue_token)

        return EnterResponse(
            queue_token=token.queue_token,
            status=TokenState.WAITING,
            position=position,
            expires_in_sec=self.settings.QUEUE_ENTRY_TTL_SEC,
        )

    async def status(self, queue_token: Optional[str]) -> StatusResponse:
        """
        Current state of a queue token.

        Position and ETA are only reported while WAITING; the exchange token
        and redeem URL only while ADMITTED. A token whose metadata is gone is
        reported as not found, exactly like one that never existed.
        """
        if not queue_token:
            raise MissingField("token")

        entry = await self.ledger.get_token(queue_token)
        if entry is None:
            raise TokenNotFound()

        # Metadata present but state lapsed: the admission window ran out
        state = await self.tokens.get_state(queue_token) or TokenState.EXPIRED
        expires_in_sec = await self.ledger.remaining_ttl(queue_token)

        position = None
        if state is TokenState.WAITING:
            position = await self.ledger.rank(entry.event_id, queue_token)

        exchange_token = None
        redeem_url = None
        if state is TokenState.ADMITTED:
            exchange_token = await self.tokens.exchange_for(queue_token)
            if exchange_token:
                redeem_url = f"{self.settings.REDEEM_URL_PATH}?exchangeToken={quote(exchange_token)}"

        return StatusResponse(
            queue_token=queue_token,
            status=state,
            position=position,
            estimated_wait_sec=estimate_wait(
                position,
                self.settings.QUEUE_BATCH_SIZE,
                self.settings.QUEUE_BATCH_INTERVAL_MS,
            ),
            expires_in_sec=expires_in_sec,
            exchange_token=exchange_token,
            redeem_url=redeem_url,
        )

    async def event_stats(self, event_id: str) -> EventQueueStats:
        """Queue depth for an event and how long it takes to drain at the current rate."""
        waiting = await self.ledger.size(event_id)
        return EventQueueStats(
            event_id=event_id,
            waiting=waiting,
            batch_size=self.settings.QUEUE_BATCH_SIZE,
            batch_interval_ms=self.settings.QUEUE_BATCH_INTERVAL_MS,
            # The last entrant has `waiting - 1` ahead of them
            estimated_drain_sec=estimate_wait(
                waiting,
                self.settings.QUEUE_BATCH_SIZE,
                self.settings.QUEUE_BATCH_INTERVAL_MS,
            ),
        )
