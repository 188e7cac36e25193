"""Typed shapes exchanged with the ElevenLabs API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict


class OutboundCallRequest(TypedDict, total=False):
    """Wire body for the Twilio outbound-call endpoint."""

    agent_id: str
    agent_phone_number_id: str
    to_number: str
    conversation_initiation_client_data: dict[str, Any]


class BatchCall(TypedDict, total=False):
    """One record of a batch-calling list response."""

    id: str
    status: str
    total_calls_dispatched: int


@dataclass(frozen=True)
class StartCallResult:
    """Identifiers returned for a started call.

    ``call_id`` is the tracking identifier: the conversation id when the
    response carries one, otherwise the first other identifier found.
    """

    call_id: str
    conversation_id: str | None = None
    call_sid: str | None = None


__all__ = ["BatchCall", "OutboundCallRequest", "StartCallResult"]
