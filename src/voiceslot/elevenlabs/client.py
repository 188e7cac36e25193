"""ElevenLabs HTTP client using httpx.

Implements both remote collaborators of the scheduler:

- ``get_active_calls_count()``: the capacity oracle, polling the
  configured active-calls endpoint.
- ``start_call()``: the dispatch gateway, starting one Twilio outbound
  call through the Agents Platform.

Example usage:
    client = ElevenLabsClient(config.elevenlabs)
    active = await client.get_active_calls_count()
    result = await client.start_call({
        "agentId": "agent-123",
        "agentPhoneNumberId": "phone-456",
        "toNumber": "+15551234567",
    })
    await client.close()
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx

from voiceslot.core.logging import get_logger
from voiceslot.daemon.config import ElevenLabsConfig
from voiceslot.daemon.exceptions import (
    CapacityQueryError,
    DispatchError,
    MissingCallFieldsError,
)
from voiceslot.elevenlabs.active_count import count_active_calls
from voiceslot.elevenlabs.fields import (
    CALL_SID_FIELDS,
    CONVERSATION_ID_FIELDS,
    EXTRA_CALL_ID_FIELDS,
    missing_required,
    pick_truthy,
    to_outbound_call_body,
)
from voiceslot.elevenlabs.types import StartCallResult

_logger = get_logger("elevenlabs.client")

API_KEY_HEADER = "xi-api-key"


class ElevenLabsClient:
    """Async client for the two ElevenLabs endpoints the scheduler uses.

    The underlying ``httpx.AsyncClient`` is created lazily, reused across
    calls for connection pooling, and released by ``close()``.
    """

    def __init__(
        self,
        config: ElevenLabsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: Endpoints, credential and active-count interpretation.
            transport: Optional httpx transport (tests pass a MockTransport).
        """
        self._config = config
        self._active_statuses = frozenset(config.active_statuses)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> ElevenLabsConfig:
        return self._config

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.request_timeout_seconds),
                headers={
                    API_KEY_HEADER: self._config.api_key,
                    "Content-Type": "application/json",
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the pooled HTTP client, if one was opened."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    # ─── Capacity oracle ───────────────────────────────────────────

    async def get_active_calls_count(self) -> int:
        """Return the number of calls currently active on the remote side.

        Returns 0 without a request when no active-calls URL is configured.

        Raises:
            CapacityQueryError: On transport failure, non-2xx status, or a
                body that is not JSON.
        """
        url = self._config.active_calls_url
        if not url:
            return 0

        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as e:
            raise CapacityQueryError(f"Active calls request failed: {e}") from e

        if not response.is_success:
            raise CapacityQueryError(
                f"Active calls request failed: {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CapacityQueryError("Active calls response is not JSON") from e

        count = count_active_calls(
            data,
            self._active_statuses,
            self._config.active_count_strategy,
        )
        _logger.debug(
            "elevenlabs.active_calls_polled",
            active=count,
            strategy=self._config.active_count_strategy,
        )
        return count

    # ─── Dispatch gateway ──────────────────────────────────────────

    async def start_call(self, payload: Mapping[str, Any]) -> StartCallResult:
        """Start one outbound call and return its tracking identifiers.

        Required payload fields are checked before any network call.

        Raises:
            MissingCallFieldsError: If agent, agent phone number or
                destination number is missing.
            DispatchError: If the start URL is unset, the request fails,
                or the response carries no usable identifier.
        """
        url = self._config.start_call_url
        if not url:
            raise DispatchError("ELEVENLABS_START_CALL_URL is not configured")

        body = to_outbound_call_body(payload)
        missing = missing_required(body)
        if missing:
            raise MissingCallFieldsError(missing)

        try:
            response = await self._get_client().post(url, json=body)
        except httpx.HTTPError as e:
            raise DispatchError(f"Start call request failed: {e}") from e

        if not response.is_success:
            raise DispatchError(f"Start call request failed: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise DispatchError("Start call response is not JSON") from e

        return extract_call_ids(data)


def extract_call_ids(data: Any) -> StartCallResult:
    """Pull the tracking identifiers out of a start-call response.

    Raises:
        DispatchError: If no identifier field is present.
    """
    if not isinstance(data, dict):
        raise DispatchError("Could not determine call id from ElevenLabs response")

    conversation_id = pick_truthy(data, CONVERSATION_ID_FIELDS)
    call_sid = pick_truthy(data, CALL_SID_FIELDS)
    call_id = conversation_id or call_sid or pick_truthy(data, EXTRA_CALL_ID_FIELDS)
    if not call_id:
        raise DispatchError("Could not determine call id from ElevenLabs response")

    return StartCallResult(
        call_id=str(call_id),
        conversation_id=str(conversation_id) if conversation_id else None,
        call_sid=str(call_sid) if call_sid else None,
    )


__all__ = ["API_KEY_HEADER", "ElevenLabsClient", "extract_call_ids"]
