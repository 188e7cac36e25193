"""Rich output formatting for the CLI.

Command modules share the console below and build tables through the
helpers here so every command renders the same way.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console
from rich.table import Table

from voiceslot.daemon.config import SchedulerConfig

console = Console()

REDACTED = "[REDACTED]"


def _slots_style(available: int) -> str:
    return "green" if available > 0 else "yellow"


def create_stats_table(stats: dict[str, Any]) -> Table:
    """Render a ``/stats`` response as a two-column table."""
    table = Table(title="Scheduler Stats", show_header=True, header_style="bold")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    available = int(stats.get("available_slots", 0))
    table.add_row("Queue size", str(stats.get("queue_size", 0)))
    table.add_row("In flight", str(stats.get("in_flight", 0)))
    table.add_row("Remote active", str(stats.get("remote_active", 0)))
    table.add_row("Concurrency limit", str(stats.get("concurrency_limit", 0)))
    table.add_row(
        "Available slots",
        f"[{_slots_style(available)}]{available}[/{_slots_style(available)}]",
    )
    table.add_row("Dead-lettered", str(stats.get("dead_lettered", 0)))
    return table


def create_config_table(config: SchedulerConfig) -> Table:
    """Render the resolved configuration, credentials redacted."""
    table = Table(title="Resolved Configuration", show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    el = config.elevenlabs
    rows: list[tuple[str, Any]] = [
        ("host", config.host),
        ("port", config.port),
        ("polling_interval_ms", config.polling_interval_ms),
        ("effective interval (s)", config.polling_interval_seconds),
        ("concurrency_limit", config.concurrency_limit),
        ("terminal_statuses", ", ".join(config.terminal_statuses)),
        ("in_flight_ttl_seconds", config.in_flight_ttl_seconds),
        ("max_dispatch_attempts", config.max_dispatch_attempts),
        ("log_level", config.log_level),
        ("log_format", config.log_format),
        ("log_file", config.log_file),
        ("elevenlabs.api_key", REDACTED if el.api_key else ""),
        ("elevenlabs.active_calls_url", el.active_calls_url),
        ("elevenlabs.start_call_url", el.start_call_url),
        ("elevenlabs.active_statuses", ", ".join(el.active_statuses)),
        ("elevenlabs.active_count_strategy", el.active_count_strategy),
        ("elevenlabs.request_timeout_seconds", el.request_timeout_seconds),
    ]
    for name, value in rows:
        rendered = "[dim]not set[/dim]" if value in (None, "") else str(value)
        table.add_row(name, rendered)
    return table


__all__ = ["REDACTED", "console", "create_config_table", "create_stats_table"]
