"""
Error taxonomy for the waiting room.

Expected, caller-correctable failures are HTTPException subclasses raised from
the service layer, the same way the booking services raise 404/409s.
Storage faults (redis.exceptions.RedisError) are left to propagate and are
turned into a generic 500 by the handler registered in main.
"""

from fastapi import HTTPException, status


class MissingField(HTTPException):
    """A required request field was absent or empty."""

    def __init__(self, field: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} is required",
        )
        self.field = field


class TokenNotFound(HTTPException):
    # Unknown and expired tokens are indistinguishable
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="token_not_found",
        )


class InvalidOrExpiredExchangeToken(HTTPException):
    """Exchange token unknown, already consumed, or past its TTL."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid_or_expired_exchange_token",
        )


class ReservationNotFound(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="reservation_not_found",
        )
