"""
Redis key layout.

  queue:events                  SET   event ids that ever had an entrant
  queue:seq:{event_id}          STR   join-sequence counter (no TTL)
  queue:ledger:{event_id}       ZSET  queue token -> join-sequence
  queue:token:{queue_token}     STR   QueueToken JSON (TTL = entry TTL)
  queue:state:{queue_token}     STR   TokenState value
  queue:admission:{queue_token} STR   exchange token issued for this entry
  admission:{exchange_token}    STR   ExchangeGrant JSON (TTL = admission TTL)
  reservation:{reservation_id}  STR   ReservationSession JSON
  queue:scheduler:lease         STR   scheduler lease owner
"""

EVENTS_KEY = "queue:events"
SCHEDULER_LEASE_KEY = "queue:scheduler:lease"


def sequence_key(event_id: str) -> str:
    return f"queue:seq:{event_id}"


def ledger_key(event_id: str) -> str:
    return f"queue:ledger:{event_id}"


def token_key(queue_token: str) -> str:
    return f"queue:token:{queue_token}"


def state_key(queue_token: str) -> str:
    return f"queue:state:{queue_token}"


def admission_pointer_key(queue_token: str) -> str:
    return f"queue:admission:{queue_token}"


def exchange_key(exchange_token: str) -> str:
    return f"admission:{exchange_token}"


def reservation_key(reservation_id: str) -> str:
    return f"reservation:{reservation_id}"
