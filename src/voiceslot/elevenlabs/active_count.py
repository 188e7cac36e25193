"""Decoding of active-call responses into a single count.

The active-calls endpoint may be a batch-calling list or one of several
simpler shapes depending on how the deployment is wired. Shapes are
checked in a fixed order; the first match wins:

1. a bare number
2. an object with a numeric ``activeCount``
3. an object with a ``batch_calls`` list (status allowlist + strategy)
4. an object with an ``items`` list of calls
5. a bare list of calls
6. anything else counts as zero
"""

from __future__ import annotations

import math
from collections.abc import Collection, Iterable
from typing import Any

from voiceslot.daemon.config import ActiveCountStrategy
from voiceslot.elevenlabs.types import BatchCall

ACTIVE_CALL_STATE = "active"


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _as_count(value: float) -> int:
    if not math.isfinite(value):
        return 0
    return max(0, int(value))


def _dispatched(record: BatchCall) -> float:
    raw = record.get("total_calls_dispatched") or 0
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return value if math.isfinite(value) else 0.0


def count_active_batches(
    batch_calls: Iterable[Any],
    active_statuses: Collection[str],
    strategy: ActiveCountStrategy,
) -> int:
    """Count activity across batch records whose status is allowlisted.

    ``strategy="dispatched"`` sums ``total_calls_dispatched``;
    ``strategy="batches"`` counts matching records.
    """
    total = 0.0
    for record in batch_calls:
        if not isinstance(record, dict):
            continue
        status = str(record.get("status") or "").lower()
        if status not in active_statuses:
            continue
        total += _dispatched(record) if strategy == "dispatched" else 1
    return _as_count(total)


def count_active_items(items: Iterable[Any]) -> int:
    """Count calls whose ``status`` (or ``state``) is ``"active"``."""
    count = 0
    for item in items:
        if not isinstance(item, dict):
            continue
        if (item.get("status") or item.get("state")) == ACTIVE_CALL_STATE:
            count += 1
    return count


def count_active_calls(
    data: Any,
    active_statuses: Collection[str],
    strategy: ActiveCountStrategy,
) -> int:
    """Interpret an active-calls response body as a non-negative count."""
    if _is_number(data):
        return _as_count(data)

    if isinstance(data, dict):
        active_count = data.get("activeCount")
        if _is_number(active_count):
            return _as_count(active_count)

        batch_calls = data.get("batch_calls")
        if isinstance(batch_calls, list):
            return count_active_batches(batch_calls, active_statuses, strategy)

        items = data.get("items")
        if isinstance(items, list):
            return count_active_items(items)

    if isinstance(data, list):
        return count_active_items(data)

    return 0


__all__ = [
    "ACTIVE_CALL_STATE",
    "count_active_batches",
    "count_active_calls",
    "count_active_items",
]
