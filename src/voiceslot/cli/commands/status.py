"""Inspection commands: ``voiceslot stats`` and ``voiceslot show-config``."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import typer
from rich.markup import escape

from voiceslot.daemon.exceptions import ConfigurationError

from ..output import console, create_config_table, create_stats_table


def stats(
    url: str = typer.Option(
        "http://127.0.0.1:4000", "--url", "-u", help="Base URL of a running scheduler",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the raw JSON response"),
    timeout: float = typer.Option(5.0, "--timeout", help="Request timeout in seconds"),
) -> None:
    """Show queue, in-flight and capacity figures from a running scheduler."""
    endpoint = f"{url.rstrip('/')}/stats"
    try:
        response = httpx.get(endpoint, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPError as e:
        console.print(f"[red]Could not read {endpoint}:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    if as_json:
        console.print_json(json.dumps(data))
        return
    console.print(create_stats_table(data))


def show_config(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file"),
) -> None:
    """Print the configuration the service would start with."""
    from voiceslot.daemon.config import load_config, warn_missing_settings

    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    console.print(create_config_table(config))
    missing = warn_missing_settings(config)
    if missing:
        console.print(f"[yellow]Missing:[/yellow] {', '.join(missing)}")
