"""
CLI interface for typing-bird using Typer.
"""

# Shared state (app, console) must be imported first
from ._shared import app, console  # noqa: F401

# Import submodules to register their commands with the Typer app
from . import run  # noqa: F401


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
