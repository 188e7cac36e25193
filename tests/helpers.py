"""Shared test doubles for the scheduler's remote collaborators."""

from collections.abc import Mapping
from typing import Any

from voiceslot.daemon.exceptions import DispatchError
from voiceslot.elevenlabs.types import StartCallResult


class FakeOracle:
    """Capacity oracle returning a settable count, or raising ``error``."""

    def __init__(self, active: int = 0) -> None:
        self.active = active
        self.error: Exception | None = None
        self.calls = 0

    async def get_active_calls_count(self) -> int:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.active


class FakeGateway:
    """Dispatch gateway that records payloads.

    Succeeds with ``call-<n>`` identifiers unless ``fail`` is set, in which
    case it raises ``DispatchError``. ``results`` overrides the returned
    value for the next calls, in order.
    """

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.payloads: list[Mapping[str, Any]] = []
        self.results: list[Any] = []

    async def start_call(self, payload: Mapping[str, Any]) -> StartCallResult:
        self.payloads.append(payload)
        if self.fail:
            raise DispatchError("remote rejected the call")
        if self.results:
            return self.results.pop(0)
        return StartCallResult(call_id=f"call-{len(self.payloads)}")
