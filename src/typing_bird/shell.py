"""POSIX shell quoting for command lines handed to tmux."""

from typing import Sequence


def shell_quote_single(value: str) -> str:
    """Wrap value in single quotes; embedded quotes become '\\''.

    Unlike shlex.quote every value is quoted, so the rendered command line
    looks the same whatever the arguments contain.
    """
    return "'" + value.replace("'", "'\\''") + "'"


def shell_command_for_exec(executable: str, args: Sequence[str]) -> str:
    """Render executable and args as one shell command line."""
    return " ".join(shell_quote_single(part) for part in [executable, *args])


def build_launch_command(argv: Sequence[str]) -> str:
    """Render the current process's argv so the user can copy it to restart."""
    return " ".join(shell_quote_single(arg) for arg in argv)
