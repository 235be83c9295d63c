"""
Wait-time estimation from queue position and scheduler throughput.
"""

from typing import Optional


def estimate_wait(position: Optional[int], batch_size: int, batch_interval_ms: int) -> Optional[int]:
    """
    Seconds until a waiting token at `position` should be admitted.

    throughput = batch_size / interval_sec tokens per second, and everyone
    ahead of the caller has to be admitted first:

        eta = ceil(max(position - 1, 0) / throughput)

    Done in integers (ahead * interval_ms / (batch_size * 1000)) so exact
    multiples of the throughput never round up from float error.
    Returns None when the position is unknown.
    """
    if position is None:
        return None
    ahead = max(position - 1, 0)
    return -(-ahead * batch_interval_ms // (batch_size * 1000))
