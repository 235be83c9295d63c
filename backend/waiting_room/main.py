"""
Virtual Waiting Room API - Main Application Entry Point

A front door for bursty ticket sales demonstrating:
- Per-event FIFO queues with join-sequence ordering in Redis
- Batched admission by a guarded background scheduler
- Exactly-once exchange token redemption into reservation sessions
- Structured logging with request correlation and Prometheus metrics
"""

from contextlib import asynccontextmanager
from typing import Optional

import redis.asyncio as redis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from waiting_room.core.config import Settings, get_settings
from waiting_room.core.logging import setup_logging, get_logger
from waiting_room.core.metrics import metrics_endpoint, redis_errors
from waiting_room.api.router import api_router
from waiting_room.api.middleware import RequestLoggingMiddleware
from waiting_room.infrastructure import create_redis, close_redis, ping_redis, get_redis_stats
from waiting_room.services.container import build_waiting_room

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    settings: Settings = app.state.settings
    setup_logging()

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
    )

    owns_redis = getattr(app.state, "waiting_room", None) is None
    if owns_redis:
        app.state.waiting_room = build_waiting_room(settings, create_redis(settings))
    room = app.state.waiting_room

    if await ping_redis(room.redis):
        logger.info("redis_ready")
    else:
        # The client reconnects on demand; requests 500 until Redis is back
        logger.warning("redis_unavailable", message="Queue operations will fail")

    if settings.SCHEDULER_ENABLED:
        room.scheduler.start()

    yield

    await room.scheduler.stop()
    if owns_redis:
        await close_redis(room.redis)
    logger.info("application_shutdown")


async def storage_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    """Storage faults become a generic 500; details stay in the log."""
    redis_errors.inc()
    logger.error("storage_error", error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(status_code=500, content={"detail": "internal_error"})


def create_app(settings: Optional[Settings] = None, redis_client: Optional[redis.Redis] = None) -> FastAPI:
    """
    Build the application.

    When a Redis client is passed in, the services are wired immediately,
    so the app is usable without running the lifespan (as in tests).
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Virtual waiting room with fair batched admission and single-use handoff",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    if redis_client is not None:
        app.state.waiting_room = build_waiting_room(settings, redis_client)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Restrict in production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(RedisError, storage_error_handler)

    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint for Docker and load balancers."""
        room = request.app.state.waiting_room
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "redis": await get_redis_stats(room.redis),
            "scheduler": {
                "enabled": settings.SCHEDULER_ENABLED,
                "running": room.scheduler.running,
                "lock": settings.SCHEDULER_LOCK,
            },
        }

    @app.get("/metrics", tags=["Health"])
    async def metrics():
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
        }

    return app


app = create_app()
