"""
Queue ledger: one ordered waiting line per event.

ORDERING STRATEGY: Per-Event Join Sequence
==========================================

Problem:
  Scoring entrants by wall-clock time lets two entrants in the same
  millisecond tie, and clock skew between API instances can reorder them.

Solution:
  Every enter allocates a sequence number with INCR on queue:seq:{event_id}.
  INCR is atomic in Redis, so each sequence is strictly greater than every
  previously issued one for that event, across all API instances. The
  sequence is the ZSET score, so ZRANK gives the 1-based position in
  O(log n) and ZPOPMIN hands out the lowest outstanding sequences first.

  Metadata, WAITING state, the ledger entry and the event registration are
  written in one MULTI/EXEC transaction, so a reader never sees a ledger
  entry without its metadata (except after the metadata TTL runs out).

Stale entries:
  The ledger has no per-member TTL. When a token's metadata expires its
  ledger entry lingers until it is popped; the scheduler checks metadata
  presence and discards such entries instead of admitting them.
"""

import secrets
import time
from typing import Callable, Optional

import redis.asyncio as redis

from waiting_room.core.logging import get_logger
from waiting_room.infrastructure import keys
from waiting_room.models.queue import QueueToken, TokenState

logger = get_logger(__name__)


def new_queue_token() -> str:
    return "q_" + secrets.token_hex(12)


class QueueLedger:
    def __init__(
        self,
        client: redis.Redis,
        entry_ttl_sec: int,
        clock: Callable[[], float] = time.time,
    ):
        self.redis = client
        self.entry_ttl_sec = entry_ttl_sec
        self.clock = clock

    async def next_sequence(self, event_id: str) -> int:
        """Allocate the next join-sequence for an event."""
        return await self.redis.incr(keys.sequence_key(event_id))

    async def enter(self, event_id: str, user_id: str) -> QueueToken:
        """Place a new token at the back of the event's line."""
        sequence = await self.next_sequence(event_id)
        now = self.clock()
        token = QueueToken(
            queue_token=new_queue_token(),
            user_id=user_id,
            event_id=event_id,
            sequence=sequence,
            joined_at=now,
            expires_at=now + self.entry_ttl_sec,
        )

        ttl = self.entry_ttl_sec
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(keys.token_key(token.queue_token), token.to_json(), ex=ttl)
            pipe.set(keys.state_key(token.queue_token), TokenState.WAITING.value, ex=ttl)
            pipe.zadd(keys.ledger_key(event_id), {token.queue_token: sequence})
            # Ledger outlives every entry it holds
            pipe.expire(keys.ledger_key(event_id), ttl)
            pipe.sadd(keys.EVENTS_KEY, event_id)
            await pipe.execute()

        logger.info(
            "queue_entered",
            queue_token=token.queue_token,
            event_id=event_id,
            user_id=user_id,
            sequence=sequence,
        )
        return token

    async def rank(self, event_id: str, queue_token: str) -> Optional[int]:
        """1-based position among entries currently in the ledger, or None."""
        rank = await self.redis.zrank(keys.ledger_key(event_id), queue_token)
        return None if rank is None else rank + 1

    async def size(self, event_id: str) -> int:
        return await self.redis.zcard(keys.ledger_key(event_id))

    async def pop_oldest(self, event_id: str, count: int) -> list[str]:
        """
        Atomically remove and return up to `count` lowest-sequence tokens.

        ZPOPMIN is a single command, so concurrent callers can never receive
        the same token. Empty or missing ledgers return [].
        """
        popped = await self.redis.zpopmin(keys.ledger_key(event_id), count)
        return [member for member, _score in popped]

    async def events(self) -> list[str]:
        """All event ids that ever had an entrant, in stable order."""
        members = await self.redis.smembers(keys.EVENTS_KEY)
        return sorted(members)

    async def get_token(self, queue_token: str) -> Optional[QueueToken]:
        raw = await self.redis.get(keys.token_key(queue_token))
        if raw is None:
            return None
        return QueueToken.from_json(raw)

    async def remaining_ttl(self, queue_token: str) -> int:
        """Seconds until the token's metadata expires; 0 when gone."""
        ttl = await self.redis.ttl(keys.token_key(queue_token))
        return ttl if ttl > 0 else 0
