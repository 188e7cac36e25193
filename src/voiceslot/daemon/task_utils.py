"""Helpers for fire-and-forget asyncio tasks in the daemon.

The scheduler spawns background tasks for ticks and per-call dispatches
without awaiting them. ``spawn_tracked`` keeps a strong reference to each
task in a caller-owned set (the event loop only holds weak references)
and logs anything the task raised once it finishes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


def log_task_exception(
    task: asyncio.Task[Any],
    logger: Any,
    event: str,
    *,
    level: str = "error",
) -> BaseException | None:
    """Log the exception of a finished task, if any.

    Returns:
        The exception, or ``None`` when the task succeeded or was cancelled.
    """
    if task.cancelled():
        return None
    exc = task.exception()
    if exc is not None:
        log_fn = getattr(logger, level, logger.error)
        log_fn(event, error=str(exc), task_name=task.get_name())
    return exc


def spawn_tracked(
    coro: Coroutine[Any, Any, Any],
    registry: set[asyncio.Task[Any]],
    logger: Any,
    event: str,
    *,
    name: str | None = None,
) -> asyncio.Task[Any]:
    """Schedule ``coro`` on the running loop and track it in ``registry``.

    The task removes itself from ``registry`` when done. Unexpected
    exceptions are logged under ``event``.
    """
    task = asyncio.create_task(coro, name=name)
    registry.add(task)

    def _on_done(finished: asyncio.Task[Any]) -> None:
        registry.discard(finished)
        log_task_exception(finished, logger, event)

    task.add_done_callback(_on_done)
    return task


__all__ = ["log_task_exception", "spawn_tracked"]
