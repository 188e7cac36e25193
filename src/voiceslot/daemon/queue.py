"""In-memory priority queue of pending outbound calls.

Jobs are ordered by priority (higher first), then by enqueue time
(earlier first). A per-queue insertion counter breaks exact timestamp
ties so FIFO holds within a priority level.

The queue knows nothing about capacity or dispatch; every operation is
synchronous and never suspends, which is what lets overlapping ticks on
one event loop share it safely.
"""

from __future__ import annotations

import heapq
import itertools
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def new_job_id() -> str:
    """Return a locally unique id of the form ``<epoch-ms>-<8 hex chars>``."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class CallJob:
    """A pending unit of outbound-call work. Never mutated once queued."""

    id: str
    payload: Mapping[str, Any]
    priority: int = 0
    enqueued_at: float = field(default_factory=time.monotonic)
    attempts: int = 0
    """Failed dispatches so far (0 for a fresh submission)."""


@dataclass(order=True)
class QueueEntry:
    """Heap entry ordered by (-priority, enqueued_at, seq).

    The ``job`` field is excluded from comparison so heap ordering rests
    solely on the numeric keys.
    """

    sort_priority: int
    enqueued_at: float
    seq: int
    job: CallJob = field(compare=False)


class CallQueue:
    """Priority + FIFO queue of :class:`CallJob`."""

    def __init__(self) -> None:
        self._heap: list[QueueEntry] = []
        self._counter = itertools.count()

    def enqueue(self, job: CallJob) -> None:
        heapq.heappush(
            self._heap,
            QueueEntry(
                sort_priority=-job.priority,
                enqueued_at=job.enqueued_at,
                seq=next(self._counter),
                job=job,
            ),
        )

    def dequeue(self) -> CallJob | None:
        """Remove and return the next job, or None when empty."""
        if not self._heap:
            return None
        return heapq.heappop(self._heap).job

    def size(self) -> int:
        return len(self._heap)

    def __len__(self) -> int:
        return len(self._heap)

    def snapshot(self) -> list[CallJob]:
        """Jobs in dispatch order, as a new list detached from the heap."""
        return [entry.job for entry in sorted(self._heap)]


__all__ = ["CallJob", "CallQueue", "QueueEntry", "new_job_id"]
