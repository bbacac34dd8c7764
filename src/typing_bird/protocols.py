"""
Protocol definitions for external dependencies.

PaneClient is the whole surface of the terminal multiplexer that the core
uses. The real implementation talks to tmux through libtmux; tests swap in
an in-memory mock. Every call is a blocking round-trip that completes
before the next one is issued.
"""

from typing import List, Optional, Protocol, Sequence, runtime_checkable


@runtime_checkable
class PaneClient(Protocol):
    """Interface for tmux pane operations.

    Failures are reported through the return value (False or None) and the
    text of the most recent failure is kept in ``last_error``.
    """

    last_error: Optional[str]

    def has_session(self, session: str) -> bool:
        """Check if a tmux session exists."""
        ...

    def pane_exists(self, target: str) -> bool:
        """Check if a pane (or any tmux target) still resolves."""
        ...

    def capture_pane(self, target: str) -> Optional[bytes]:
        """Capture the full visible content of a pane.

        Returns:
            Pane content as bytes, or None on failure
        """
        ...

    def list_panes(
        self, session: str, fields: Sequence[str], all_windows: bool = False
    ) -> Optional[List[List[str]]]:
        """List panes of a session as rows of tmux format values.

        Args:
            session: tmux session name
            fields: tmux format strings, one per column (e.g. '#{pane_id}')
            all_windows: List panes of every window, not just the current one

        Returns:
            One row per pane, each holding len(fields) values, or None on failure
        """
        ...

    def display(self, target: str, fmt: str) -> Optional[str]:
        """Expand a tmux format string against a target.

        Returns:
            The expanded value, or None if the target is absent
        """
        ...

    def split_pane(self, target: str, command: str, height: int = 5) -> Optional[str]:
        """Split a detached pane below target running command.

        Returns:
            The new pane's id, or None on failure
        """
        ...

    def set_pane_option(self, target: str, key: str, value: str) -> bool:
        """Set a pane-scoped user option."""
        ...

    def send_literal(self, target: str, text: str) -> bool:
        """Send text verbatim, without key-name interpretation."""
        ...

    def send_key(self, target: str, key: str, delay: float = 0.0) -> bool:
        """Send a named key (e.g. 'Enter', 'C-c') after an optional delay."""
        ...

    def kill_pane(self, target: str) -> bool:
        """Destroy a pane."""
        ...
