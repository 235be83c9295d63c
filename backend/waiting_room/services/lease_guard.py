"""
Distributed sweep guard backed by a Redis lease.
Implements SweepGuard interface using redis-py's Lock.

Lease Pattern:
  acquire  = SET queue:scheduler:lease <random token> NX PX <lease_ms>
  renew    = reset the expiry, only if the stored token is still ours
  release  = delete, only if the stored token is still ours

  The token checks run as Lua scripts inside redis-py's Lock, so a scheduler
  whose lease already expired can never delete or extend a lease that
  another instance has since taken.

  Tradeoff: if a sweep outlives its lease (GC pause, network stall) a second
  instance may start sweeping. Admission still happens at most once per
  token because the ledger pop is atomic; the lease only keeps two sweeps
  from splitting one tick's batch.
"""

import asyncio

import redis.asyncio as redis
from redis.asyncio.lock import Lock
from redis.exceptions import LockError

from waiting_room.services.interfaces.sweep_guard import SweepGuard
from waiting_room.infrastructure.keys import SCHEDULER_LEASE_KEY
from waiting_room.core.logging import get_logger

logger = get_logger(__name__)


class RedisLeaseGuard(SweepGuard):
    """
    Redis-based mutual exclusion across scheduler instances.

    Each acquire takes a fresh lease token, remembered per asyncio task.
    renew() and release() only touch the lease taken by the calling task,
    so a sweep that outlived its lease cannot extend or drop the lease a
    later tick in this same process has taken.

    Use when:
    - More than one API instance runs with SCHEDULER_ENABLED
    - The standalone worker is scaled beyond one replica
    """

    def __init__(self, client: redis.Redis, lease_ms: int, name: str = SCHEDULER_LEASE_KEY):
        self.client = client
        self.name = name
        self.lease_ms = lease_ms
        self._leases: dict[asyncio.Task, Lock] = {}

    def _new_lock(self) -> Lock:
        return self.client.lock(
            self.name,
            timeout=self.lease_ms / 1000,
            blocking=False,
            thread_local=False,
        )

    async def acquire(self) -> bool:
        lock = self._new_lock()
        if not await lock.acquire():
            return False
        self._leases[asyncio.current_task()] = lock
        return True

    async def renew(self) -> bool:
        lock = self._leases.get(asyncio.current_task())
        if lock is None:
            return False
        try:
            await lock.reacquire()
            return True
        except LockError as e:
            logger.warning("scheduler_lease_lost", lease=self.name, error=str(e))
            return False

    async def release(self) -> None:
        lock = self._leases.pop(asyncio.current_task(), None)
        if lock is None:
            return
        try:
            await lock.release()
        except LockError as e:
            # Lease expired mid-sweep; someone else may hold it now
            logger.warning("scheduler_lease_release_failed", lease=self.name, error=str(e))
