"""
Reservation endpoints: the single-use handoff past the admission gate.
"""

from typing import Optional

from fastapi import APIRouter, Depends

from waiting_room.api.dependencies import get_reservation_service
from waiting_room.schemas.reservation import RedeemRequest, ReservationResponse, ReservationDetail
from waiting_room.services.reservation_service import ReservationService

router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.post("/start", response_model=ReservationResponse)
async def start_reservation(
    payload: Optional[RedeemRequest] = None,
    reservations: ReservationService = Depends(get_reservation_service),
):
    """
    Redeem an exchange token for a reservation session.

    Each exchange token works exactly once. Replays, including concurrent
    ones, get 401 invalid_or_expired_exchange_token.
    """
    payload = payload or RedeemRequest()
    return await reservations.redeem(payload.exchange_token)


@router.get("/{reservation_id}", response_model=ReservationDetail)
async def get_reservation(
    reservation_id: str,
    reservations: ReservationService = Depends(get_reservation_service),
):
    """Look up a live reservation session. Expired sessions 404."""
    return await reservations.get_reservation(reservation_id)
