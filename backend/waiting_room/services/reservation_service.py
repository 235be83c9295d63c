"""
Reservation handoff: turns a one-time exchange token into a reservation session.

CONCURRENCY STRATEGY: Read-and-Delete Before Side Effects
=========================================================

Problem:
  A client double-clicks "continue", or replays the redeem request from
  two tabs. Reading the exchange payload and deleting it as two commands
  lets both requests read it before either deletes it: two sessions for
  one admission.

Solution:
  The payload is fetched with GETDEL. Redis executes it as one command, so
  exactly one caller gets the payload; every other caller, concurrent or
  later, gets nil and sees InvalidOrExpiredExchangeToken. The session is
  only created after the credential is already gone.

  Tradeoff: if Redis fails between GETDEL and writing the session, the
  credential is burned and the client gets a 500. There is no automatic
  retry; the token would have to be re-admitted through the queue.
"""

import secrets
import time
from typing import Callable, Optional

import redis.asyncio as redis

from waiting_room.core.config import Settings
from waiting_room.core.errors import (
    InvalidOrExpiredExchangeToken,
    MissingField,
    ReservationNotFound,
)
from waiting_room.core.logging import get_logger
from waiting_room.core.metrics import record_redemption
from waiting_room.infrastructure import keys
from waiting_room.models.reservation import ReservationSession
from waiting_room.schemas.reservation import ReservationResponse, ReservationDetail
from waiting_room.services.queue_ledger import QueueLedger
from waiting_room.services.token_store import TokenStateStore

logger = get_logger(__name__)


def new_reservation_id() -> str:
    return "r_" + secrets.token_hex(10)


class ReservationService:
    def __init__(
        self,
        client: redis.Redis,
        ledger: QueueLedger,
        tokens: TokenStateStore,
        settings: Settings,
        clock: Callable[[], float] = time.time,
    ):
        self.redis = client
        self.ledger = ledger
        self.tokens = tokens
        self.reservation_ttl_sec = settings.RESERVATION_TTL_SEC
        self.clock = clock

    async def redeem(self, exchange_token: Optional[str]) -> ReservationResponse:
        """
        Consume an exchange token and start a reservation session.
        Raises 401 if the token is unknown, expired or already redeemed.
        """
        if not exchange_token:
            raise MissingField("exchangeToken")

        grant = await self.tokens.consume(exchange_token)
        if grant is None:
            record_redemption(False)
            logger.warning("redeem_rejected", reason="invalid_or_expired")
            raise InvalidOrExpiredExchangeToken()

        session = ReservationSession(
            reservation_id=new_reservation_id(),
            exchange_token=exchange_token,
            queue_token=grant.queue_token,
            user_id=grant.user_id,
            event_id=grant.event_id,
            started_at=self.clock(),
        )
        await self.redis.set(
            keys.reservation_key(session.reservation_id),
            session.to_json(),
            ex=self.reservation_ttl_sec,
        )

        # CONSUMED lives as long as the queue token itself
        remaining = await self.ledger.remaining_ttl(grant.queue_token)
        await self.tokens.mark_consumed(grant.queue_token, remaining or self.reservation_ttl_sec)

        record_redemption(True)
        logger.info(
            "reservation_started",
            reservation_id=session.reservation_id,
            queue_token=grant.queue_token,
            user_id=grant.user_id,
            event_id=grant.event_id,
        )
        return ReservationResponse(
            reservation_id=session.reservation_id,
            expires_in_sec=self.reservation_ttl_sec,
            user_id=session.user_id,
            event_id=session.event_id,
        )

    async def get_reservation(self, reservation_id: str) -> ReservationDetail:
        """Look up a live reservation session for the booking collaborator."""
        key = keys.reservation_key(reservation_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.get(key)
            pipe.ttl(key)
            raw, ttl = await pipe.execute()

        if raw is None:
            raise ReservationNotFound()

        session = ReservationSession.from_json(raw)
        return ReservationDetail(
            reservation_id=session.reservation_id,
            expires_in_sec=ttl if ttl > 0 else 0,
            user_id=session.user_id,
            event_id=session.event_id,
            queue_token=session.queue_token,
            started_at=session.started_at,
        )
