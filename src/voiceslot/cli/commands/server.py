"""``voiceslot serve`` - run the scheduler HTTP service.

``uvicorn`` is imported when the command runs, not at module load, so the
inspection commands work without the server extras on the path.
"""

from __future__ import annotations

from pathlib import Path

import typer
from pydantic import ValidationError
from rich.markup import escape
from rich.panel import Panel

from voiceslot import __version__
from voiceslot.daemon.config import SchedulerConfig, load_config
from voiceslot.daemon.exceptions import ConfigurationError

from ..output import console


def serve(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="YAML config file"),
    host: str | None = typer.Option(None, "--host", help="Override the bind host"),
    port: int | None = typer.Option(None, "--port", "-p", help="Override the listening port"),
    log_level: str | None = typer.Option(None, "--log-level", "-l", help="Override the log level"),
) -> None:
    """Start the scheduler service.

    Settings come from the optional YAML file, then environment variables;
    command-line options override both.

    Examples:
        voiceslot serve
        voiceslot serve --port 8080
        voiceslot serve --config scheduler.yaml --log-level debug
    """
    try:
        import uvicorn
    except ImportError:
        console.print(
            "[red]Error:[/red] uvicorn is required to serve.\n"
            "Install it with: pip install uvicorn"
        )
        raise typer.Exit(1) from None

    from voiceslot.core.logging import configure_logging
    from voiceslot.server import create_app

    try:
        config = load_config(config_file)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(1) from None

    updates: dict[str, object] = {}
    if host is not None:
        updates["host"] = host
    if port is not None:
        updates["port"] = port
    if log_level is not None:
        updates["log_level"] = log_level.lower()
    if updates:
        try:
            config = SchedulerConfig.model_validate({**config.model_dump(), **updates})
        except ValidationError as e:
            console.print(f"[red]Invalid option:[/red] {escape(str(e))}")
            raise typer.Exit(1) from None

    configure_logging(
        level=config.log_level.upper(),  # type: ignore[arg-type]
        format=config.effective_log_format,
        file_path=config.log_file,
    )

    app = create_app(config)

    console.print(
        Panel(
            f"[bold]Voice Slot Scheduler[/bold] v{__version__}\n\n"
            f"API: http://{config.host}:{config.port}\n"
            f"Docs: http://{config.host}:{config.port}/docs\n"
            f"Concurrency limit: {config.concurrency_limit}\n"
            f"Polling every {config.polling_interval_seconds:g}s\n\n"
            f"[dim]Press Ctrl+C to stop[/dim]",
            title="Starting Server",
        )
    )

    try:
        uvicorn.run(
            app,
            host=config.host,
            port=config.port,
            log_level=config.log_level,
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Scheduler stopped.[/yellow]")
