"""
Admission scheduler: promotes waiting tokens in fixed-size batches.

ADMISSION STRATEGY: Guarded Periodic Sweep
==========================================

Every QUEUE_BATCH_INTERVAL_MS a tick fires. A tick:

  1. Takes the sweep guard without waiting. If another sweep holds it
     (a slow sweep in this process, or another instance's lease), the tick
     is skipped rather than queued, so a backlog of ticks can never pile up.
  2. Visits every event in queue:events. The starting event rotates by one
     each tick so no event is always served first.
  3. Pops up to QUEUE_BATCH_SIZE oldest tokens per event with ZPOPMIN and,
     for each one whose metadata still exists, mints a one-time exchange
     token and flips the token to ADMITTED. Tokens whose metadata expired
     are dropped silently.
  4. Releases the guard.

At-most-once admission:
  The pop is destructive and atomic. Once a token leaves the ledger no
  other sweep can see it, even if the guard failed and two sweeps overlap.
  A failure after the pop (e.g. Redis timeout while granting) leaves the
  token unadmitted; its metadata expires and the client sees it as gone.

Fairness:
  FIFO within an event (lowest join-sequence first). Across events each one
  gets up to QUEUE_BATCH_SIZE per tick regardless of queue length; there is
  no weighting by backlog.
"""

import asyncio
import secrets
import time
import uuid
from contextlib import suppress
from dataclasses import dataclass, field
from typing import Callable, Optional

import structlog

from waiting_room.core.logging import get_logger
from waiting_room.core.metrics import (
    queue_depth,
    record_admission,
    record_sweep,
    sweep_latency,
)
from waiting_room.models.reservation import ExchangeGrant
from waiting_room.services.interfaces.sweep_guard import SweepGuard
from waiting_room.services.queue_ledger import QueueLedger
from waiting_room.services.token_store import TokenStateStore

logger = get_logger(__name__)


def new_exchange_token() -> str:
    return "x_" + secrets.token_hex(16)


@dataclass
class SweepResult:
    events: list[str] = field(default_factory=list)  # in visiting order
    admitted: dict[str, list[str]] = field(default_factory=dict)
    stale: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    aborted: bool = False

    @property
    def admitted_count(self) -> int:
        return sum(len(tokens) for tokens in self.admitted.values())


class AdmissionScheduler:
    def __init__(
        self,
        ledger: QueueLedger,
        tokens: TokenStateStore,
        guard: SweepGuard,
        batch_size: int,
        batch_interval_ms: int,
        admission_ttl_sec: int,
        clock: Callable[[], float] = time.time,
    ):
        self.ledger = ledger
        self.tokens = tokens
        self.guard = guard
        self.batch_size = batch_size
        self.batch_interval_ms = batch_interval_ms
        self.admission_ttl_sec = admission_ttl_sec
        self.clock = clock

        self._cursor = 0
        self._task: Optional[asyncio.Task] = None
        self._inflight: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="admission-scheduler")
        logger.info(
            "scheduler_started",
            batch_size=self.batch_size,
            batch_interval_ms=self.batch_interval_ms,
            guard=type(self.guard).__name__,
        )

    async def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        # Let a sweep in progress finish and release its guard
        if self._inflight:
            await asyncio.gather(*self._inflight, return_exceptions=True)
        logger.info("scheduler_stopped")

    async def _run(self) -> None:
        interval = self.batch_interval_ms / 1000
        while True:
            # Fire and forget: a slow sweep makes the next tick skip, not wait
            task = asyncio.create_task(self._run_tick())
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)
            await asyncio.sleep(interval)

    async def _run_tick(self) -> None:
        try:
            await self.tick()
        except Exception as e:
            record_sweep("failed")
            logger.error("tick_failed", error=str(e))

    async def tick(self) -> Optional[SweepResult]:
        """
        Run one guarded sweep.

        Returns the sweep result, or None when the tick was skipped because
        another sweep holds the guard or the sweep itself failed.
        """
        if not await self.guard.acquire():
            record_sweep("skipped")
            logger.debug("sweep_skipped", reason="guard_held")
            return None

        start_time = time.perf_counter()
        with structlog.contextvars.bound_contextvars(sweep_id=uuid.uuid4().hex[:8]):
            try:
                result = await self.sweep()
            except Exception as e:
                record_sweep("failed")
                logger.error("sweep_failed", error=str(e))
                return None
            finally:
                await self.guard.release()
                sweep_latency.observe(time.perf_counter() - start_time)

            record_sweep("completed")
            if result.admitted or result.stale or result.failed:
                logger.info(
                    "sweep_completed",
                    events=len(result.events),
                    admitted=result.admitted_count,
                    stale=len(result.stale),
                    failed=len(result.failed),
                    aborted=result.aborted,
                    duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
            return result

    async def sweep(self) -> SweepResult:
        """Promote one batch per event. Caller must hold the guard."""
        result = SweepResult()
        events = await self.ledger.events()
        if not events:
            return result

        offset = self._cursor % len(events)
        self._cursor += 1
        events = events[offset:] + events[:offset]

        for index, event_id in enumerate(events):
            if index and not await self.guard.renew():
                result.aborted = True
                break
            result.events.append(event_id)
            try:
                await self._sweep_event(event_id, result)
            except Exception as e:
                logger.error("event_sweep_failed", event_id=event_id, error=str(e))
        return result

    async def _sweep_event(self, event_id: str, result: SweepResult) -> None:
        waiting = await self.ledger.size(event_id)
        if waiting == 0:
            queue_depth.labels(event_id=event_id).set(0)
            return

        popped = await self.ledger.pop_oldest(event_id, self.batch_size)
        queue_depth.labels(event_id=event_id).set(max(waiting - len(popped), 0))

        for queue_token in popped:
            await self._admit(event_id, queue_token, result)

    async def _admit(self, event_id: str, queue_token: str, result: SweepResult) -> None:
        # Any failure here stays with this token; the rest of the batch proceeds
        try:
            entry = await self.ledger.get_token(queue_token)
            if entry is None:
                record_admission("stale")
                logger.info("stale_token_discarded", queue_token=queue_token, event_id=event_id)
                result.stale.append(queue_token)
                return

            grant = ExchangeGrant(
                exchange_token=new_exchange_token(),
                queue_token=queue_token,
                user_id=entry.user_id,
                event_id=entry.event_id,
                admitted_at=self.clock(),
            )
            await self.tokens.grant(grant, self.admission_ttl_sec)
        except Exception as e:
            record_admission("error")
            logger.error(
                "token_admission_failed",
                queue_token=queue_token,
                event_id=event_id,
                error=str(e),
            )
            result.failed.append(queue_token)
            return

        record_admission("admitted")
        logger.info(
            "token_admitted",
            queue_token=queue_token,
            event_id=event_id,
            user_id=entry.user_id,
        )
        result.admitted.setdefault(event_id, []).append(queue_token)
