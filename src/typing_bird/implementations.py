"""
Real implementations of protocol interfaces.

RealTmux drives tmux through libtmux's command runner; pane captures run
tmux directly to keep its raw output. Each method issues a single tmux
command and waits for it to finish.
"""

import os
import subprocess
import time
from typing import List, Optional, Sequence

import libtmux
from libtmux.exc import LibTmuxException

from .constants import CAPTURE_TIMEOUT, INJECTED_PANE_HEIGHT, TMUX_SOCKET_ENV


def split_window_args(
    target: str,
    shell_command: str,
    height: int = INJECTED_PANE_HEIGHT,
) -> List[str]:
    """Arguments for a detached bottom split of `height` lines under target.

    The new pane's id is printed (-P -F) so the caller can tag it.
    """
    return [
        "split-window",
        "-v",
        "-d",
        "-l",
        str(height),
        "-P",
        "-F",
        "#{pane_id}",
        "-t",
        target,
        shell_command,
    ]


class RealTmux:
    """Production implementation of PaneClient using libtmux."""

    def __init__(self, socket_name: Optional[str] = None):
        """Initialize with optional socket name for test isolation.

        If no socket_name is provided, checks TYPING_BIRD_TMUX_SOCKET env var.
        """
        self._socket_name = socket_name or os.environ.get(TMUX_SOCKET_ENV)
        self._server: Optional[libtmux.Server] = None
        self.last_error: Optional[str] = None

    @property
    def server(self) -> libtmux.Server:
        """Lazy-load the tmux server connection."""
        if self._server is None:
            if self._socket_name:
                self._server = libtmux.Server(socket_name=self._socket_name)
            else:
                self._server = libtmux.Server()
        return self._server

    def _run(self, *args: str) -> Optional[List[str]]:
        """Run one tmux command, returning its stdout lines or None on failure."""
        try:
            result = self.server.cmd(*args)
        except LibTmuxException as e:
            self.last_error = str(e) or type(e).__name__
            return None

        if result.returncode != 0:
            if result.stderr:
                self.last_error = " ".join(result.stderr).strip()
            else:
                self.last_error = f"tmux {args[0]} exited with status {result.returncode}"
            return None
        return list(result.stdout)

    def has_session(self, session: str) -> bool:
        return self._run("has-session", "-t", session) is not None

    def pane_exists(self, target: str) -> bool:
        return self._run("display-message", "-p", "-t", target, "#{pane_id}") is not None

    def tmux_args(self, *args: str) -> List[str]:
        """Full tmux command line for args on this client's socket."""
        command = ["tmux"]
        if self._socket_name:
            command.extend(["-L", self._socket_name])
        command.extend(args)
        return command

    def capture_pane(self, target: str) -> Optional[bytes]:
        # libtmux drops trailing blank lines; keep tmux's raw stdout
        try:
            result = subprocess.run(
                self.tmux_args("capture-pane", "-p", "-t", target),
                capture_output=True,
                timeout=CAPTURE_TIMEOUT,
            )
        except (subprocess.SubprocessError, OSError) as e:
            self.last_error = str(e) or type(e).__name__
            return None

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            self.last_error = stderr or f"tmux capture-pane exited with status {result.returncode}"
            return None
        return result.stdout

    def list_panes(
        self, session: str, fields: Sequence[str], all_windows: bool = False
    ) -> Optional[List[List[str]]]:
        args = ["list-panes"]
        if all_windows:
            args.append("-s")
        args.extend(["-t", session, "-F", "\t".join(fields)])
        lines = self._run(*args)
        if lines is None:
            return None

        rows = []
        for line in lines:
            if not line.strip():
                continue
            rows.append(line.split("\t", len(fields) - 1))
        return rows

    def display(self, target: str, fmt: str) -> Optional[str]:
        lines = self._run("display-message", "-p", "-t", target, fmt)
        if lines is None:
            return None
        return "\n".join(lines).strip()

    def split_pane(self, target: str, command: str, height: int = INJECTED_PANE_HEIGHT) -> Optional[str]:
        lines = self._run(*split_window_args(target, command, height))
        if lines is None:
            return None
        pane_id = "".join(lines).strip()
        if not pane_id:
            self.last_error = "tmux split-window returned empty pane id"
            return None
        return pane_id

    def set_pane_option(self, target: str, key: str, value: str) -> bool:
        return self._run("set-option", "-p", "-t", target, key, value) is not None

    def send_literal(self, target: str, text: str) -> bool:
        return self._run("send-keys", "-t", target, "-l", "--", text) is not None

    def send_key(self, target: str, key: str, delay: float = 0.0) -> bool:
        if delay > 0:
            time.sleep(delay)
        return self._run("send-keys", "-t", target, key) is not None

    def kill_pane(self, target: str) -> bool:
        return self._run("kill-pane", "-t", target) is not None
