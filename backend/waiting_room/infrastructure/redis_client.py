"""
Redis client for the queue ledger, token state and reservation sessions.
Separated from business logic for clean architecture.

The client is created once per process (API lifespan or worker) and handed
to the services through their constructors.
"""

import redis.asyncio as redis

from waiting_room.core.config import Settings
from waiting_room.core.logging import get_logger

logger = get_logger(__name__)


def create_redis(settings: Settings) -> redis.Redis:
    """Create a pooled async client. Connections are opened lazily."""
    return redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
        health_check_interval=30,
    )


async def ping_redis(client: redis.Redis) -> bool:
    """Connectivity check used at startup. Never raises."""
    try:
        await client.ping()
        return True
    except Exception as e:
        logger.error("redis_connection_failed", error=str(e))
        return False


async def close_redis(client: redis.Redis) -> None:
    """Close Redis connection on shutdown."""
    await client.aclose()


async def get_redis_stats(client: redis.Redis) -> dict:
    """Get Redis statistics for the health endpoint."""
    try:
        info = await client.info("stats")
        return {
            "status": "connected",
            "ops_per_sec": info.get("instantaneous_ops_per_sec", 0),
            "expired_keys": info.get("expired_keys", 0),
        }
    except Exception as e:
        return {"status": "error", "error": str(e)}
