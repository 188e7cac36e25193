"""Configuration models for the scheduler daemon.

Defines Pydantic v2 models for the HTTP listener, the concurrency limit,
the ElevenLabs endpoints used for capacity polling and call starts, and
the optional retention policies. ``load_config()`` reads an optional YAML
file and overlays environment variables on top of it.
"""

from __future__ import annotations

import math
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from voiceslot.core.logging import get_logger
from voiceslot.daemon.exceptions import ConfigurationError

_logger = get_logger("daemon.config")

MIN_POLLING_INTERVAL_MS = 500
"""Floor applied to the timer interval to prevent tight polling."""

MAX_PORT = 65535

PRIORITY_FLOOR = -1000
"""Lowest priority a repeatedly failing job can decay to."""

ActiveCountStrategy = Literal["batches", "dispatched"]
ACTIVE_COUNT_STRATEGIES: tuple[str, ...] = ("batches", "dispatched")


def _split_statuses(value: Any) -> Any:
    """Normalise a comma-separated string or list of statuses."""
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list | tuple | set):
        return [str(s).strip().lower() for s in value if str(s).strip()]
    return value


class ElevenLabsConfig(BaseModel):
    """Connection settings for the ElevenLabs Agents Platform.

    Both URLs are optional. An empty active-calls URL disables capacity
    polling (remote active count is treated as 0); an empty start-call
    URL makes every dispatch fail and be requeued.
    """

    api_key: str = Field(
        default="",
        repr=False,
        description="Value sent in the xi-api-key header.",
    )
    active_calls_url: str = Field(
        default="",
        description="GET endpoint reporting currently active calls or batches.",
    )
    start_call_url: str = Field(
        default="",
        description="POST endpoint starting a single outbound call.",
    )
    active_statuses: list[str] = Field(
        default_factory=lambda: ["in_progress"],
        description="Batch statuses (case-insensitive) counted as active.",
    )
    active_count_strategy: ActiveCountStrategy = Field(
        default="dispatched",
        description="'dispatched' sums total_calls_dispatched across active "
        "batches; 'batches' counts the active batches themselves.",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout applied to every ElevenLabs HTTP request.",
    )

    @field_validator("active_statuses", mode="before")
    @classmethod
    def _normalise_statuses(cls, v: Any) -> Any:
        """Accept a comma-separated string; trim, lower-case, drop empties."""
        return _split_statuses(v)


class SchedulerConfig(BaseModel):
    """Top-level configuration for the voice slot scheduler."""

    host: str = Field(default="0.0.0.0", description="Interface the HTTP server binds to.")
    port: int = Field(default=4000, ge=1, le=MAX_PORT, description="HTTP listening port.")
    polling_interval_ms: int = Field(
        default=2000,
        ge=1,
        description="Interval between timer-driven ticks. Values below "
        f"{MIN_POLLING_INTERVAL_MS} ms are raised to that floor.",
    )
    concurrency_limit: int = Field(
        default=5,
        ge=1,
        description="Maximum calls active at once, remote and local combined.",
    )
    terminal_statuses: list[str] = Field(
        default_factory=lambda: ["completed", "failed", "cancelled"],
        description="Webhook statuses that release an in-flight slot.",
    )
    in_flight_ttl_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Drop tracked calls older than this many seconds. "
        "None keeps them until a terminal webhook arrives.",
    )
    max_dispatch_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Retire a job to the dead-letter list after this many "
        "failed dispatches. None requeues forever.",
    )
    dead_letter_capacity: int = Field(
        default=1000,
        ge=1,
        description="Maximum retired jobs kept in memory (oldest evicted).",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Minimum log level for structlog output.",
    )
    log_format: Literal["console", "json", "both"] = Field(
        default="console",
        description="Log renderer. 'both' writes to the console and to log_file.",
    )
    log_file: Path | None = Field(
        default=None,
        description="Optional rotating log file. Under 'console' format it is "
        "written alongside the console output. None logs to the console only.",
    )
    elevenlabs: ElevenLabsConfig = Field(
        default_factory=ElevenLabsConfig,
        description="ElevenLabs endpoints and capacity interpretation.",
    )

    @field_validator("terminal_statuses", mode="before")
    @classmethod
    def _normalise_terminal(cls, v: Any) -> Any:
        return _split_statuses(v)

    @property
    def polling_interval_seconds(self) -> float:
        """Timer interval with the minimum enforced, in seconds."""
        return max(MIN_POLLING_INTERVAL_MS, self.polling_interval_ms) / 1000.0

    @property
    def effective_log_format(self) -> Literal["console", "json", "both"]:
        """Format to hand to ``configure_logging()``.

        A log file under console format means console plus file; ``both``
        without a file degrades to console.
        """
        if self.log_file is None:
            return "json" if self.log_format == "json" else "console"
        if self.log_format == "console":
            return "both"
        return self.log_format


# ─── Environment overlay ───────────────────────────────────────────

# env var -> (path into the config dict, parser)
_ENV_FIELDS: dict[str, tuple[tuple[str, ...], str]] = {
    "HOST": (("host",), "str"),
    "PORT": (("port",), "port"),
    "POLLING_INTERVAL_MS": (("polling_interval_ms",), "int"),
    "ELEVENLABS_CONCURRENCY_LIMIT": (("concurrency_limit",), "int"),
    "ELEVENLABS_API_KEY": (("elevenlabs", "api_key"), "str"),
    "ELEVENLABS_ACTIVE_CALLS_URL": (("elevenlabs", "active_calls_url"), "str"),
    "ELEVENLABS_START_CALL_URL": (("elevenlabs", "start_call_url"), "str"),
    "ELEVENLABS_ACTIVE_STATUSES": (("elevenlabs", "active_statuses"), "list"),
    "ELEVENLABS_ACTIVE_COUNT_STRATEGY": (("elevenlabs", "active_count_strategy"), "strategy"),
    "ELEVENLABS_REQUEST_TIMEOUT_SECONDS": (("elevenlabs", "request_timeout_seconds"), "float"),
    "ELEVENLABS_TERMINAL_STATUSES": (("terminal_statuses",), "list"),
    "IN_FLIGHT_TTL_SECONDS": (("in_flight_ttl_seconds",), "float"),
    "MAX_DISPATCH_ATTEMPTS": (("max_dispatch_attempts",), "int"),
    "LOG_LEVEL": (("log_level",), "lower"),
    "LOG_FORMAT": (("log_format",), "lower"),
    "LOG_FILE": (("log_file",), "str"),
}


def _parse_positive(raw: str) -> float | None:
    """Parse a strictly positive finite number, or None if it is not one."""
    try:
        parsed = float(raw)
    except ValueError:
        return None
    if not math.isfinite(parsed) or parsed <= 0:
        return None
    return parsed


def _parse_env_value(name: str, raw: str, kind: str) -> Any:
    """Convert one environment value; returns None to keep the default."""
    if kind == "str":
        return raw
    if kind == "lower":
        return raw.strip().lower()
    if kind == "list":
        return _split_statuses(raw)
    if kind == "strategy":
        value = raw.strip().lower()
        if value not in ACTIVE_COUNT_STRATEGIES:
            _logger.warning(
                "config.unknown_strategy",
                env=name,
                value=raw,
                allowed=list(ACTIVE_COUNT_STRATEGIES),
            )
            return None
        return value

    parsed = _parse_positive(raw)
    if parsed is not None and kind in ("int", "port"):
        parsed = int(parsed) if parsed >= 1 else None
    if parsed is not None and kind == "port" and parsed > MAX_PORT:
        parsed = None
    if parsed is None:
        _logger.warning("config.invalid_number_ignored", env=name, value=raw)
    return parsed


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    for name, (path, kind) in _ENV_FIELDS.items():
        raw = environ.get(name)
        if raw is None or raw == "":
            continue
        value = _parse_env_value(name, raw, kind)
        if value is None:
            continue
        target = data
        for key in path[:-1]:
            nested = target.get(key)
            if not isinstance(nested, dict):
                nested = {}
                target[key] = nested
            target = nested
        target[path[-1]] = value
    return data


def load_config(
    config_file: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> SchedulerConfig:
    """Build the scheduler configuration.

    Values come from the YAML file (when given and present), then from
    environment variables, which take precedence. Unparsable or
    non-positive numeric environment values fall back to the file value
    or the default.

    Raises:
        ConfigurationError: If the YAML is malformed or a value fails
            validation.
    """
    data: dict[str, Any] = {}
    if config_file is not None and config_file.exists():
        import yaml

        try:
            with open(config_file) as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse {config_file}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"{config_file} must contain a mapping at top level")
        data = loaded

    data = _apply_env(data, os.environ if environ is None else environ)

    try:
        return SchedulerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


def warn_missing_settings(config: SchedulerConfig) -> list[str]:
    """Log one warning per missing credential or endpoint.

    Returns the names of the missing settings. Never raises.
    """
    el = config.elevenlabs
    checks = [
        ("ELEVENLABS_API_KEY", el.api_key, "Outbound requests will fail until configured."),
        ("ELEVENLABS_ACTIVE_CALLS_URL", el.active_calls_url, "Active call polling is disabled."),
        ("ELEVENLABS_START_CALL_URL", el.start_call_url, "Calls cannot be started until configured."),
    ]
    missing: list[str] = []
    for name, value, message in checks:
        if not value:
            missing.append(name)
            _logger.warning("config.setting_missing", setting=name, message=message)
    return missing


__all__ = [
    "ACTIVE_COUNT_STRATEGIES",
    "ActiveCountStrategy",
    "ElevenLabsConfig",
    "MIN_POLLING_INTERVAL_MS",
    "PRIORITY_FLOOR",
    "SchedulerConfig",
    "load_config",
    "warn_missing_settings",
]
