"""
Pydantic schemas for the reservation handoff.
"""

from typing import Optional
from pydantic import Field

from waiting_room.schemas.queue import CamelModel


class RedeemRequest(CamelModel):
    exchange_token: Optional[str] = Field(None, max_length=128)


class ReservationResponse(CamelModel):
    reservation_id: str
    expires_in_sec: int
    user_id: str
    event_id: str


class ReservationDetail(ReservationResponse):
    queue_token: str
    started_at: float
