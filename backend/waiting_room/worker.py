"""
Standalone admission worker.

Runs only the admission scheduler, so API instances can be scaled behind a
load balancer with SCHEDULER_ENABLED=false while one (or more, with the
redis lease) worker promotes tokens.

    waiting-room-worker
    python -m waiting_room.worker
"""

import asyncio
import signal
from typing import Optional

import redis.asyncio as redis

from waiting_room.core.config import Settings, get_settings
from waiting_room.core.logging import setup_logging, get_logger
from waiting_room.infrastructure import create_redis, close_redis, ping_redis
from waiting_room.services.container import build_waiting_room

logger = get_logger(__name__)


async def run_worker(
    settings: Optional[Settings] = None,
    client: Optional[redis.Redis] = None,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """Run the scheduler until SIGINT/SIGTERM, or until `stop` is set."""
    settings = settings or get_settings()
    setup_logging()

    if client is None:
        client = create_redis(settings)
    room = build_waiting_room(settings, client)

    if not await ping_redis(client):
        logger.warning("redis_unavailable", message="Ticks will fail until Redis is reachable")

    stop = stop or asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = (signal.SIGINT, signal.SIGTERM)
    for sig in signals:
        loop.add_signal_handler(sig, stop.set)

    logger.info("worker_starting", lock=settings.SCHEDULER_LOCK)
    room.scheduler.start()
    try:
        await stop.wait()
    finally:
        for sig in signals:
            loop.remove_signal_handler(sig)
        await room.scheduler.stop()
        await close_redis(client)
        logger.info("worker_shutdown")


def main() -> None:
    asyncio.run(run_worker())


if __name__ == "__main__":
    main()
