"""
Local sweep guard - a running flag in this process.
Prevents a slow sweep from overlapping the next tick.
"""

from waiting_room.services.interfaces.sweep_guard import SweepGuard


class LocalSweepGuard(SweepGuard):
    """
    Only protects sweeps started by this process.

    Use when:
    - Exactly one scheduler runs (single API instance or one worker)
    - Local development without a shared Redis lease
    """

    def __init__(self):
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def acquire(self) -> bool:
        # No await between check and set, so this is atomic on the event loop
        if self._running:
            return False
        self._running = True
        return True

    async def renew(self) -> bool:
        return self._running

    async def release(self) -> None:
        self._running = False
