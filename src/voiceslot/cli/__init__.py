"""Voice slot scheduler CLI.

Package structure:
    cli/
    ├── __init__.py       # This file - app assembly
    ├── output.py         # Rich console and table builders
    └── commands/
        ├── server.py     # serve
        └── status.py     # stats, show-config
"""

from __future__ import annotations

import typer

from voiceslot import __version__

from .commands import serve, show_config, stats

app = typer.Typer(
    name="voiceslot",
    help="Admission-control scheduler for outbound ElevenLabs calls.",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"voiceslot {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Voice slot scheduler."""


app.command()(serve)
app.command()(stats)
app.command(name="show-config")(show_config)

__all__ = ["app"]
