"""
Admission and reservation records handed across the admission gate.

Key design decisions:
- ExchangeGrant is the payload behind a one-time exchange token; it is
  read and deleted in a single GETDEL so it can be redeemed at most once
- ReservationSession has its own TTL, independent of the queue token's
- Neither record is ever updated in place
"""

import json
from dataclasses import dataclass, asdict


@dataclass(frozen=True)
class ExchangeGrant:
    exchange_token: str
    queue_token: str
    user_id: str
    event_id: str
    admitted_at: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "ExchangeGrant":
        return cls(**json.loads(raw))


@dataclass(frozen=True)
class ReservationSession:
    reservation_id: str
    exchange_token: str
    queue_token: str
    user_id: str
    event_id: str
    started_at: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "ReservationSession":
        return cls(**json.loads(raw))
