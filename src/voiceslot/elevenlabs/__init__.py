"""ElevenLabs integration: capacity polling and outbound call starts."""

from voiceslot.elevenlabs.active_count import count_active_calls
from voiceslot.elevenlabs.client import ElevenLabsClient
from voiceslot.elevenlabs.types import StartCallResult

__all__ = ["ElevenLabsClient", "StartCallResult", "count_active_calls"]
