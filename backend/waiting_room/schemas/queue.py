"""
Pydantic schemas for queue entry and status request/response validation.
Wire format is camelCase; Python attributes stay snake_case.
"""

from typing import Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from waiting_room.models.queue import TokenState


class CamelModel(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}


class EnterRequest(CamelModel):
    # Optional so a missing field is reported as MissingField (400), not 422
    user_id: Optional[str] = Field(None, max_length=128)
    event_id: Optional[str] = Field(None, max_length=128)


class EnterResponse(CamelModel):
    queue_token: str
    status: TokenState = TokenState.WAITING
    position: Optional[int]
    expires_in_sec: int


class StatusResponse(CamelModel):
    queue_token: str
    status: TokenState
    position: Optional[int] = None
    estimated_wait_sec: Optional[int] = None
    expires_in_sec: int
    exchange_token: Optional[str] = None
    redeem_url: Optional[str] = None


class EventQueueStats(CamelModel):
    event_id: str
    waiting: int
    batch_size: int
    batch_interval_ms: int
    estimated_drain_sec: int
