"""
Request-scoped access to the services built at startup.
"""

from fastapi import Request

from waiting_room.services.container import WaitingRoom
from waiting_room.services.queue_service import QueueService
from waiting_room.services.reservation_service import ReservationService


def get_waiting_room(request: Request) -> WaitingRoom:
    return request.app.state.waiting_room


def get_queue_service(request: Request) -> QueueService:
    return get_waiting_room(request).queue


def get_reservation_service(request: Request) -> ReservationService:
    return get_waiting_room(request).reservations
