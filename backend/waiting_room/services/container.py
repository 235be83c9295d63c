"""
Wires the services around one Redis client.

Built once per process: by the API lifespan (or create_app in tests) and by
the standalone worker. Nothing here is a module-level singleton.
"""

import time
from dataclasses import dataclass
from typing import Callable

import redis.asyncio as redis

from waiting_room.core.config import Settings
from waiting_room.services.guard_factory import get_sweep_guard
from waiting_room.services.queue_ledger import QueueLedger
from waiting_room.services.queue_service import QueueService
from waiting_room.services.reservation_service import ReservationService
from waiting_room.services.scheduler import AdmissionScheduler
from waiting_room.services.token_store import TokenStateStore


@dataclass
class WaitingRoom:
    settings: Settings
    redis: redis.Redis
    ledger: QueueLedger
    tokens: TokenStateStore
    queue: QueueService
    reservations: ReservationService
    scheduler: AdmissionScheduler


def build_waiting_room(
    settings: Settings,
    client: redis.Redis,
    clock: Callable[[], float] = time.time,
) -> WaitingRoom:
    ledger = QueueLedger(client, entry_ttl_sec=settings.QUEUE_ENTRY_TTL_SEC, clock=clock)
    tokens = TokenStateStore(client)
    scheduler = AdmissionScheduler(
        ledger,
        tokens,
        get_sweep_guard(settings, client),
        batch_size=settings.QUEUE_BATCH_SIZE,
        batch_interval_ms=settings.QUEUE_BATCH_INTERVAL_MS,
        admission_ttl_sec=settings.ADMISSION_TTL_SEC,
        clock=clock,
    )
    return WaitingRoom(
        settings=settings,
        redis=client,
        ledger=ledger,
        tokens=tokens,
        queue=QueueService(ledger, tokens, settings),
        reservations=ReservationService(client, ledger, tokens, settings, clock=clock),
        scheduler=scheduler,
    )
