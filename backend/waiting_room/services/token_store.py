"""
Token state and exchange credential storage.

Every record written here carries a TTL. A missing key is never an error at
this layer: reads return None and callers decide what absence means (the
status query reports it as EXPIRED or not found).

Writers by role:
  - enter (QueueLedger) writes WAITING
  - the admission scheduler writes ADMITTED through grant()
  - the reservation handoff writes CONSUMED through mark_consumed()
"""

from typing import Optional

import redis.asyncio as redis

from waiting_room.infrastructure import keys
from waiting_room.models.queue import TokenState
from waiting_room.models.reservation import ExchangeGrant


class TokenStateStore:
    def __init__(self, client: redis.Redis):
        self.redis = client

    async def set_state(self, queue_token: str, state: TokenState, ttl_sec: int) -> None:
        await self.redis.set(keys.state_key(queue_token), state.value, ex=ttl_sec)

    async def get_state(self, queue_token: str) -> Optional[TokenState]:
        raw = await self.redis.get(keys.state_key(queue_token))
        if raw is None:
            return None
        return TokenState(raw)

    async def grant(self, grant: ExchangeGrant, ttl_sec: int) -> None:
        """
        Persist an exchange credential and flip the queue token to ADMITTED.

        The payload, the queue->exchange pointer and the state share one TTL
        and are written in one transaction.
        """
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(keys.exchange_key(grant.exchange_token), grant.to_json(), ex=ttl_sec)
            pipe.set(keys.admission_pointer_key(grant.queue_token), grant.exchange_token, ex=ttl_sec)
            pipe.set(keys.state_key(grant.queue_token), TokenState.ADMITTED.value, ex=ttl_sec)
            await pipe.execute()

    async def exchange_for(self, queue_token: str) -> Optional[str]:
        """Exchange token currently issued for a queue token, if any."""
        return await self.redis.get(keys.admission_pointer_key(queue_token))

    async def consume(self, exchange_token: str) -> Optional[ExchangeGrant]:
        """
        Read and delete an exchange credential in one step.

        GETDEL is atomic: of any number of concurrent callers with the same
        token, exactly one gets the payload and the rest get None.
        """
        raw = await self.redis.getdel(keys.exchange_key(exchange_token))
        if raw is None:
            return None
        return ExchangeGrant.from_json(raw)

    async def mark_consumed(self, queue_token: str, ttl_sec: int) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(keys.state_key(queue_token), TokenState.CONSUMED.value, ex=ttl_sec)
            pipe.delete(keys.admission_pointer_key(queue_token))
            await pipe.execute()
