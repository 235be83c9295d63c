from waiting_room.schemas.queue import EnterRequest, EnterResponse, StatusResponse, EventQueueStats
from waiting_room.schemas.reservation import RedeemRequest, ReservationResponse, ReservationDetail

__all__ = [
    "EnterRequest", "EnterResponse", "StatusResponse", "EventQueueStats",
    "RedeemRequest", "ReservationResponse", "ReservationDetail",
]
