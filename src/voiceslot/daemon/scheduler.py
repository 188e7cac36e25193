"""Admission-control scheduler for outbound calls.

Holds the pending-call queue and the set of calls believed to be running
remotely. Each tick refreshes the remote active count, computes spare
capacity as

    max(0, concurrency_limit - remote_active - len(in_flight))

and releases that many queued jobs to the dispatch gateway. Dispatches
run as independent tasks; the drain loop does not wait for them, so the
capacity snapshot taken at tick start is the only gate for that tick.

Ticks are triggered by a fixed-interval timer, by each accepted
submission, and by each webhook notification. Everything runs on one
event loop: queue and in-flight mutations never suspend, so overlapping
ticks can only interleave while awaiting the oracle or the gateway.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from voiceslot.core.logging import get_logger
from voiceslot.daemon.config import PRIORITY_FLOOR, SchedulerConfig
from voiceslot.daemon.exceptions import DispatchError
from voiceslot.daemon.queue import CallJob, CallQueue, new_job_id
from voiceslot.daemon.task_utils import log_task_exception, spawn_tracked

if TYPE_CHECKING:
    from voiceslot.elevenlabs.types import StartCallResult

_logger = get_logger("daemon.scheduler")


# ─── Protocols for the remote collaborators ────────────────────────


class CapacityOracle(Protocol):
    """Reports how many calls are active remotely (satisfied by ElevenLabsClient)."""

    async def get_active_calls_count(self) -> int: ...


class DispatchGateway(Protocol):
    """Starts a single call remotely (satisfied by ElevenLabsClient)."""

    async def start_call(self, payload: Mapping[str, Any]) -> StartCallResult: ...


# ─── Data models ───────────────────────────────────────────────────


@dataclass
class SchedulerStats:
    """Statistics snapshot from the scheduler."""

    queue_size: int
    in_flight: int
    remote_active: int
    concurrency_limit: int
    available_slots: int
    dead_lettered: int


def compute_available_slots(concurrency_limit: int, remote_active: int, in_flight: int) -> int:
    """Spare capacity, clamped at zero when the remote side is over limit."""
    return max(0, concurrency_limit - remote_active - in_flight)


def decay_priority(priority: int) -> int:
    """Priority for the next attempt of a failed job."""
    return max(PRIORITY_FLOOR, priority - 1)


# ─── Scheduler ─────────────────────────────────────────────────────


class CallScheduler:
    """Releases queued calls into remotely observed spare capacity.

    One instance per process, owned by the HTTP app. Only the tick,
    dispatch and notification paths mutate its state.
    """

    def __init__(
        self,
        config: SchedulerConfig,
        oracle: CapacityOracle,
        gateway: DispatchGateway,
    ) -> None:
        self._config = config
        self._oracle = oracle
        self._gateway = gateway
        self._terminal_statuses = frozenset(config.terminal_statuses)

        self._queue = CallQueue()
        # tracking id -> monotonic time the dispatch succeeded
        self._in_flight: dict[str, float] = {}
        self._latest_remote_active = 0
        self._dead_letters: deque[CallJob] = deque(maxlen=config.dead_letter_capacity)

        self._timer: asyncio.Task[None] | None = None
        self._running = False
        self._tasks: set[asyncio.Task[Any]] = set()

    # ─── Properties ────────────────────────────────────────────────

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def queue_size(self) -> int:
        return self._queue.size()

    @property
    def in_flight(self) -> frozenset[str]:
        """Tracking identifiers currently believed to be running."""
        return frozenset(self._in_flight)

    @property
    def latest_remote_active(self) -> int:
        return self._latest_remote_active

    @property
    def dead_letters(self) -> list[CallJob]:
        """Jobs retired after exhausting ``max_dispatch_attempts``."""
        return list(self._dead_letters)

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def available_slots(self) -> int:
        return compute_available_slots(
            self._config.concurrency_limit,
            self._latest_remote_active,
            len(self._in_flight),
        )

    def stats(self) -> SchedulerStats:
        """Return a snapshot of scheduler state."""
        return SchedulerStats(
            queue_size=self._queue.size(),
            in_flight=len(self._in_flight),
            remote_active=self._latest_remote_active,
            concurrency_limit=self._config.concurrency_limit,
            available_slots=self.available_slots(),
            dead_lettered=len(self._dead_letters),
        )

    def queue_snapshot(self) -> list[CallJob]:
        return self._queue.snapshot()

    # ─── Submission and notifications ──────────────────────────────

    def submit(self, payload: Mapping[str, Any], priority: int = 0) -> CallJob:
        """Queue a new call. The caller is expected to request a tick."""
        job = CallJob(id=new_job_id(), payload=payload, priority=priority)
        self._queue.enqueue(job)
        _logger.info(
            "scheduler.job_enqueued",
            job_id=job.id,
            priority=priority,
            queue_size=self._queue.size(),
        )
        return job

    def handle_notification(self, call_id: str, status: str) -> bool:
        """Apply a remote status change for ``call_id``.

        Terminal statuses release the slot. Unknown identifiers and
        repeated notifications are no-ops.

        Returns:
            True if a tracked call was released.
        """
        normalized = status.lower()
        if normalized not in self._terminal_statuses:
            _logger.debug("scheduler.non_terminal_status", call_id=call_id, status=normalized)
            return False

        released = self._in_flight.pop(call_id, None) is not None
        _logger.info(
            "scheduler.call_finished",
            call_id=call_id,
            status=normalized,
            was_tracked=released,
            in_flight=len(self._in_flight),
        )
        return released

    # ─── Tick ──────────────────────────────────────────────────────

    def request_tick(self) -> asyncio.Task[Any]:
        """Schedule a tick in the background and return its task."""
        return spawn_tracked(self.tick(), self._tasks, _logger, "scheduler.tick_failed")

    async def tick(self) -> int:
        """Refresh capacity and release queued jobs into it.

        Returns:
            Number of jobs handed to the gateway during this tick.
        """
        try:
            self._latest_remote_active = await self._oracle.get_active_calls_count()
        except Exception as e:
            _logger.warning(
                "scheduler.capacity_refresh_failed",
                error=str(e),
                stale_remote_active=self._latest_remote_active,
            )

        self._expire_stale_calls()

        slots = self.available_slots()
        dispatched = 0
        while slots > 0:
            job = self._queue.dequeue()
            if job is None:
                break
            slots -= 1
            dispatched += 1
            spawn_tracked(
                self._dispatch(job),
                self._tasks,
                _logger,
                "scheduler.dispatch_task_failed",
                name=f"dispatch-{job.id}",
            )

        if dispatched:
            _logger.debug(
                "scheduler.tick_drained",
                dispatched=dispatched,
                remote_active=self._latest_remote_active,
                in_flight=len(self._in_flight),
                queue_size=self._queue.size(),
            )
        return dispatched

    async def _dispatch(self, job: CallJob) -> None:
        job_logger = _logger.bind(job_id=job.id, attempt=job.attempts + 1)
        try:
            result = await self._gateway.start_call(job.payload)
            call_id = result.call_id if result is not None else None
            if not call_id:
                raise DispatchError("gateway returned no tracking identifier")
        except Exception as e:
            job_logger.error("scheduler.dispatch_failed", error=str(e))
            self._requeue(job)
            return

        self._in_flight[call_id] = time.monotonic()
        job_logger.info("scheduler.call_started", call_id=call_id, in_flight=len(self._in_flight))

    def _requeue(self, job: CallJob) -> None:
        attempts = job.attempts + 1
        limit = self._config.max_dispatch_attempts
        if limit is not None and attempts >= limit:
            self._dead_letters.append(
                CallJob(
                    id=job.id,
                    payload=job.payload,
                    priority=job.priority,
                    enqueued_at=job.enqueued_at,
                    attempts=attempts,
                )
            )
            _logger.error(
                "scheduler.job_dead_lettered",
                job_id=job.id,
                attempts=attempts,
                dead_lettered=len(self._dead_letters),
            )
            return

        retry = CallJob(
            id=f"{job.id}-retry",
            payload=job.payload,
            priority=decay_priority(job.priority),
            attempts=attempts,
        )
        self._queue.enqueue(retry)
        _logger.info(
            "scheduler.job_requeued",
            job_id=retry.id,
            priority=retry.priority,
            attempts=attempts,
        )

    def _expire_stale_calls(self) -> list[str]:
        ttl = self._config.in_flight_ttl_seconds
        if ttl is None or not self._in_flight:
            return []
        cutoff = time.monotonic() - ttl
        expired = [call_id for call_id, started in self._in_flight.items() if started <= cutoff]
        for call_id in expired:
            del self._in_flight[call_id]
            _logger.warning("scheduler.in_flight_expired", call_id=call_id, ttl_seconds=ttl)
        return expired

    # ─── Lifecycle ─────────────────────────────────────────────────

    async def start(self) -> None:
        """Start the periodic tick loop."""
        if self._timer is not None:
            return
        interval = self._config.polling_interval_seconds
        self._running = True
        self._timer = asyncio.create_task(self._loop(interval), name="scheduler-timer")
        self._timer.add_done_callback(self._on_loop_done)
        _logger.info(
            "scheduler.started",
            interval_seconds=interval,
            concurrency_limit=self._config.concurrency_limit,
        )

    async def stop(self) -> None:
        """Cancel the timer and wait for outstanding ticks and dispatches."""
        self._running = False
        if self._timer is not None:
            self._timer.cancel()
            try:
                await self._timer
            except asyncio.CancelledError:
                pass
            self._timer = None
        await self.wait_idle()
        _logger.info("scheduler.stopped", queue_size=self._queue.size())

    async def wait_idle(self) -> None:
        """Wait until no background tick or dispatch task is pending.

        Tasks spawned while waiting (a tick's dispatches) are awaited too.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _on_loop_done(self, task: asyncio.Task[None]) -> None:
        log_task_exception(task, _logger, "scheduler.timer_died_unexpectedly")

    async def _loop(self, interval: float) -> None:
        while self._running:
            await asyncio.sleep(interval)
            try:
                await self.tick()
            except Exception:
                _logger.exception("scheduler.tick_failed")


__all__ = [
    "CallScheduler",
    "CapacityOracle",
    "DispatchGateway",
    "SchedulerStats",
    "compute_available_slots",
    "decay_priority",
]
