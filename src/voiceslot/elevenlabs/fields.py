"""Field aliasing between job payloads / responses and the ElevenLabs wire format.

Job payloads arrive from arbitrary producers, some using snake_case and
some camelCase. Each canonical wire field lists the spellings accepted on
the way in, in precedence order: snake_case first, camelCase fallback.
A spelling wins when its value is not ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from voiceslot.elevenlabs.types import OutboundCallRequest

# canonical wire name -> accepted payload spellings
OUTBOUND_CALL_FIELDS: dict[str, tuple[str, ...]] = {
    "agent_id": ("agent_id", "agentId"),
    "agent_phone_number_id": ("agent_phone_number_id", "agentPhoneNumberId"),
    "to_number": ("to_number", "toNumber"),
    "conversation_initiation_client_data": (
        "conversation_initiation_client_data",
        "conversationInitiationClientData",
    ),
}

REQUIRED_OUTBOUND_FIELDS: tuple[str, ...] = ("agent_id", "agent_phone_number_id", "to_number")

CONVERSATION_ID_FIELDS: tuple[str, ...] = ("conversation_id", "conversationId")
CALL_SID_FIELDS: tuple[str, ...] = ("callSid",)
# Fallbacks after conversation id and call SID, in order
EXTRA_CALL_ID_FIELDS: tuple[str, ...] = ("id", "call_id", "callId")

WEBHOOK_ID_FIELDS: tuple[str, ...] = (
    "callId",
    "conversation_id",
    "conversationId",
    "callSid",
    "id",
)
WEBHOOK_STATUS_FIELDS: tuple[str, ...] = ("status", "type")


def pick(data: Mapping[str, Any], spellings: Sequence[str]) -> Any:
    """Return the first non-None value among ``spellings``."""
    for key in spellings:
        value = data.get(key)
        if value is not None:
            return value
    return None


def pick_truthy(data: Mapping[str, Any], spellings: Sequence[str]) -> Any:
    """Return the first truthy value among ``spellings``."""
    for key in spellings:
        value = data.get(key)
        if value:
            return value
    return None


def to_outbound_call_body(payload: Mapping[str, Any]) -> OutboundCallRequest:
    """Map a job payload onto the outbound-call wire body.

    Fields resolving to ``None`` are omitted.
    """
    body: dict[str, Any] = {}
    for wire_name, spellings in OUTBOUND_CALL_FIELDS.items():
        value = pick(payload, spellings)
        if value is not None:
            body[wire_name] = value
    return body  # type: ignore[return-value]


def missing_required(body: Mapping[str, Any]) -> list[str]:
    """Names of required wire fields that are absent or empty."""
    return [name for name in REQUIRED_OUTBOUND_FIELDS if not body.get(name)]


__all__ = [
    "CALL_SID_FIELDS",
    "CONVERSATION_ID_FIELDS",
    "EXTRA_CALL_ID_FIELDS",
    "OUTBOUND_CALL_FIELDS",
    "REQUIRED_OUTBOUND_FIELDS",
    "WEBHOOK_ID_FIELDS",
    "WEBHOOK_STATUS_FIELDS",
    "missing_required",
    "pick",
    "pick_truthy",
    "to_outbound_call_body",
]
