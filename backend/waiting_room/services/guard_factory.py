"""
Sweep guard factory.
Configures which mutual exclusion the admission scheduler uses.
"""

import redis.asyncio as redis

from waiting_room.core.config import Settings
from waiting_room.services.interfaces.sweep_guard import SweepGuard
from waiting_room.services.interfaces.local_guard import LocalSweepGuard
from waiting_room.services.lease_guard import RedisLeaseGuard


def get_sweep_guard(settings: Settings, client: redis.Redis) -> SweepGuard:
    """
    Get configured sweep guard.

    Selection via SCHEDULER_LOCK:
    - redis (default): RedisLeaseGuard, safe with several scheduler instances
    - local: LocalSweepGuard, only when exactly one scheduler runs
    """
    if settings.SCHEDULER_LOCK == "local":
        return LocalSweepGuard()
    return RedisLeaseGuard(client, lease_ms=settings.SCHEDULER_LEASE_MS)
