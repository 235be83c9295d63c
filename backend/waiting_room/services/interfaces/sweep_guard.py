"""
Sweep guard interface.
Allows swapping between single-instance and distributed mutual exclusion
for the admission scheduler.
"""

from abc import ABC, abstractmethod


class SweepGuard(ABC):
    """
    Interface for the scheduler's single-run guarantee.

    Implementations:
    - LocalSweepGuard: in-process flag, correct with exactly one scheduler
    - RedisLeaseGuard: Redis lease with expiry, correct with many
    """

    @abstractmethod
    async def acquire(self) -> bool:
        """
        Try to take the guard without waiting.

        Returns:
            True if this caller may run a sweep
            False if a sweep is already running (skip this tick)
        """
        pass

    @abstractmethod
    async def renew(self) -> bool:
        """
        Extend the guard during a long sweep.

        Returns:
            False if the guard was lost and the sweep must stop
        """
        pass

    @abstractmethod
    async def release(self) -> None:
        """Give the guard up after a sweep."""
        pass
