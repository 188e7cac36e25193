"""Pytest fixtures for voice slot scheduler tests."""

import logging
from collections.abc import Generator

import pytest
import structlog

from voiceslot.daemon.config import ElevenLabsConfig, SchedulerConfig

_ENV_VARS = (
    "HOST",
    "PORT",
    "POLLING_INTERVAL_MS",
    "ELEVENLABS_CONCURRENCY_LIMIT",
    "ELEVENLABS_API_KEY",
    "ELEVENLABS_ACTIVE_CALLS_URL",
    "ELEVENLABS_START_CALL_URL",
    "ELEVENLABS_ACTIVE_STATUSES",
    "ELEVENLABS_ACTIVE_COUNT_STRATEGY",
    "ELEVENLABS_REQUEST_TIMEOUT_SECONDS",
    "ELEVENLABS_TERMINAL_STATUSES",
    "IN_FLIGHT_TTL_SECONDS",
    "MAX_DISPATCH_ATTEMPTS",
    "LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def reset_logging_state() -> Generator[None, None, None]:
    """Reset structlog and root handlers around each test."""
    structlog.reset_defaults()

    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level
    for handler in original_handlers:
        root_logger.removeHandler(handler)

    yield

    structlog.reset_defaults()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in original_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(original_level)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's shell settings out of config loading."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def scheduler_config() -> SchedulerConfig:
    """Default limits with every ElevenLabs endpoint configured."""
    return SchedulerConfig(
        concurrency_limit=5,
        polling_interval_ms=60_000,
        elevenlabs=ElevenLabsConfig(
            api_key="test-key",
            active_calls_url="https://example.com/active",
            start_call_url="https://example.com/start",
        ),
    )
