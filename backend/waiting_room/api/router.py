"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from waiting_room.api.routes import queue, reservations

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(queue.router)
api_router.include_router(reservations.router)
