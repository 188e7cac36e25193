"""Call submission and scheduler introspection endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from voiceslot.daemon.queue import CallJob
from voiceslot.daemon.scheduler import CallScheduler, SchedulerStats
from voiceslot.server.app import get_scheduler

router = APIRouter(tags=["Calls"])


# ============================================================================
# Request / response models
# ============================================================================


class EnqueueCallRequest(BaseModel):
    """Request to queue one outbound call."""
    payload: dict[str, Any] = Field(
        ..., description="Call payload forwarded verbatim to ElevenLabs"
    )
    priority: int | None = Field(None, description="Higher dispatches sooner (default 0)")


class EnqueueCallResponse(BaseModel):
    enqueued: bool = True
    id: str
    queue_size: int


class StatsResponse(BaseModel):
    """Current admission-control state."""
    queue_size: int
    in_flight: int
    remote_active: int
    concurrency_limit: int
    available_slots: int
    dead_lettered: int

    @classmethod
    def from_stats(cls, stats: SchedulerStats) -> StatsResponse:
        return cls(
            queue_size=stats.queue_size,
            in_flight=stats.in_flight,
            remote_active=stats.remote_active,
            concurrency_limit=stats.concurrency_limit,
            available_slots=stats.available_slots,
            dead_lettered=stats.dead_lettered,
        )


class QueuedJobView(BaseModel):
    """A pending job as shown by ``GET /queue`` (payload omitted)."""
    id: str
    priority: int
    attempts: int

    @classmethod
    def from_job(cls, job: CallJob) -> QueuedJobView:
        return cls(id=job.id, priority=job.priority, attempts=job.attempts)


class QueueResponse(BaseModel):
    size: int
    jobs: list[QueuedJobView]


# ============================================================================
# Endpoints
# ============================================================================


@router.post("/enqueue-call", response_model=EnqueueCallResponse, status_code=202)
async def enqueue_call(
    request: EnqueueCallRequest,
    scheduler: CallScheduler = Depends(get_scheduler),
) -> EnqueueCallResponse:
    """Queue an outbound call and trigger a tick.

    Acceptance only means the call is queued; dispatch outcomes are never
    reported back to the submitter.
    """
    job = scheduler.submit(request.payload, priority=request.priority or 0)
    scheduler.request_tick()
    return EnqueueCallResponse(id=job.id, queue_size=scheduler.queue_size)


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    scheduler: CallScheduler = Depends(get_scheduler),
) -> StatsResponse:
    return StatsResponse.from_stats(scheduler.stats())


@router.get("/queue", response_model=QueueResponse)
async def get_queue(
    scheduler: CallScheduler = Depends(get_scheduler),
) -> QueueResponse:
    """List pending jobs in dispatch order."""
    jobs = [QueuedJobView.from_job(job) for job in scheduler.queue_snapshot()]
    return QueueResponse(size=len(jobs), jobs=jobs)
