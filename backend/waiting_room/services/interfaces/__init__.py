"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .sweep_guard import SweepGuard
from .local_guard import LocalSweepGuard

__all__ = ['SweepGuard', 'LocalSweepGuard']
