"""
Shared CLI state: Typer app, consoles and reusable option types.
"""

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.markup import escape

from .. import __version__
from ..constants import TOOL_NAME

app = typer.Typer(
    name=TOOL_NAME,
    help=(
        "Periodically sends the next message to a tmux session after terminal-idle "
        "timeout, appending Enter and cycling back to the first message."
    ),
    add_completion=False,
    rich_markup_mode="rich",
)

# Console for rich output
console = Console()
err_console = Console(stderr=True)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"{TOOL_NAME} {__version__}")
        raise typer.Exit()


VersionOption = Annotated[
    Optional[bool],
    typer.Option(
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
]


def report_error(message: str) -> None:
    """Print an error line to stderr."""
    err_console.print(f"[red]ERROR:[/red] {escape(message)}", highlight=False)
