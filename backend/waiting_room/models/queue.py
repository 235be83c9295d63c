"""
Queue token model: one client's place in one event's waiting line.

Key design decisions:
- Ordering uses a per-event join-sequence, not wall-clock time, so two
  entrants in the same millisecond never tie
- Stored as JSON with a TTL; absence of the record means the token expired
- Immutable once created; state lives in a separate key so the metadata
  never has to be rewritten
"""

import json
from dataclasses import dataclass, asdict
from enum import Enum


class TokenState(str, Enum):
    WAITING = "WAITING"
    ADMITTED = "ADMITTED"
    EXPIRED = "EXPIRED"
    CONSUMED = "CONSUMED"


@dataclass(frozen=True)
class QueueToken:
    queue_token: str
    user_id: str
    event_id: str
    sequence: int
    joined_at: float
    expires_at: float

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "QueueToken":
        return cls(**json.loads(raw))
