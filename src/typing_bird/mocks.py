"""
Mock implementations of protocol interfaces for testing.

MockTmux keeps sessions and panes in memory, records every mutation, and
can be scripted to return a sequence of captures or to fail specific
operations.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple


@dataclass
class MockPane:
    """In-memory stand-in for a tmux pane."""

    pane_id: str
    session: str
    window: int = 0
    active: bool = False
    current_command: str = "bash"
    options: Dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    # Captures returned in order before falling back to `content`
    scripted_captures: List[bytes] = field(default_factory=list)
    capture_failures: int = 0
    start_command: Optional[str] = None


class MockTmux:
    """Mock implementation of PaneClient."""

    def __init__(self):
        self.sessions: Set[str] = set()
        self.panes: Dict[str, MockPane] = {}
        self.last_error: Optional[str] = None
        # (operation, target, value) for every mutating call, in order
        self.calls: List[Tuple[str, str, str]] = []
        # Operations that should fail, e.g. {"send_key", "kill_pane"}
        self.failing: Set[str] = set()
        # Called after every send_literal / send_key with (target, value)
        self.send_hook: Optional[Callable[[str, str], None]] = None
        self._next_pane = 100

    # -- Scripting helpers --

    def new_session(self, session: str) -> bool:
        if session in self.sessions:
            return False
        self.sessions.add(session)
        return True

    def add_pane(
        self,
        session: str,
        pane_id: Optional[str] = None,
        active: bool = False,
        current_command: str = "bash",
        content: bytes = b"",
        options: Optional[Dict[str, str]] = None,
        window: int = 0,
        start_command: Optional[str] = None,
    ) -> str:
        """Add a pane (creating the session if needed) and return its id."""
        self.sessions.add(session)
        if pane_id is None:
            pane_id = self._allocate_id()
        self.panes[pane_id] = MockPane(
            pane_id=pane_id,
            session=session,
            window=window,
            active=active,
            current_command=current_command,
            options=dict(options or {}),
            content=content,
            start_command=start_command,
        )
        return pane_id

    def set_pane_content(self, pane_id: str, content: bytes) -> None:
        self.panes[pane_id].content = content

    def script_captures(self, pane_id: str, captures: Sequence[bytes]) -> None:
        """Queue captures to be returned before the pane's steady content."""
        self.panes[pane_id].scripted_captures.extend(captures)

    def fail_captures(self, pane_id: str, count: int) -> None:
        self.panes[pane_id].capture_failures += count

    def remove_pane(self, pane_id: str) -> None:
        self.panes.pop(pane_id, None)

    def sent(self, target: Optional[str] = None) -> List[Tuple[str, str]]:
        """(kind, value) pairs of literal text and keys sent, optionally for one target."""
        return [
            (op, value) for op, tgt, value in self.calls
            if op in ("send_literal", "send_key") and (target is None or tgt == target)
        ]

    def _allocate_id(self) -> str:
        while f"%{self._next_pane}" in self.panes:
            self._next_pane += 1
        pane_id = f"%{self._next_pane}"
        self._next_pane += 1
        return pane_id

    def _fail(self, operation: str, reason: str) -> bool:
        if operation in self.failing:
            self.last_error = f"{operation} failed: {reason}"
            return True
        return False

    def _missing(self, target: str) -> bool:
        if target not in self.panes:
            self.last_error = f"can't find pane: {target}"
            return True
        return False

    # -- PaneClient --

    def has_session(self, session: str) -> bool:
        return session in self.sessions

    def pane_exists(self, target: str) -> bool:
        return target in self.panes

    def capture_pane(self, target: str) -> Optional[bytes]:
        if self._missing(target):
            return None
        pane = self.panes[target]
        if pane.capture_failures > 0:
            pane.capture_failures -= 1
            self.last_error = "capture-pane failed"
            return None
        if pane.scripted_captures:
            return pane.scripted_captures.pop(0)
        return pane.content

    def list_panes(
        self, session: str, fields: Sequence[str], all_windows: bool = False
    ) -> Optional[List[List[str]]]:
        if self._fail("list_panes", "scripted"):
            return None
        if session not in self.sessions:
            self.last_error = f"can't find session: {session}"
            return None

        panes = [p for p in self.panes.values() if p.session == session]
        if not all_windows and panes:
            current = min(p.window for p in panes)
            panes = [p for p in panes if p.window == current]
        return [[self._format(p, f) for f in fields] for p in panes]

    def display(self, target: str, fmt: str) -> Optional[str]:
        if self._missing(target):
            return None
        return self._format(self.panes[target], fmt)

    def split_pane(self, target: str, command: str, height: int = 5) -> Optional[str]:
        if self._missing(target) or self._fail("split_pane", "scripted"):
            return None
        parent = self.panes[target]
        pane_id = self.add_pane(parent.session, window=parent.window)
        self.panes[pane_id].start_command = command
        self.calls.append(("split_pane", target, command))
        return pane_id

    def set_pane_option(self, target: str, key: str, value: str) -> bool:
        if self._missing(target) or self._fail("set_pane_option", "scripted"):
            return False
        self.panes[target].options[key] = value
        self.calls.append(("set_pane_option", target, f"{key}={value}"))
        return True

    def send_literal(self, target: str, text: str) -> bool:
        if self._missing(target) or self._fail("send_literal", "scripted"):
            return False
        self.calls.append(("send_literal", target, text))
        if self.send_hook:
            self.send_hook(target, text)
        return True

    def send_key(self, target: str, key: str, delay: float = 0.0) -> bool:
        if self._missing(target) or self._fail("send_key", "scripted"):
            return False
        self.calls.append(("send_key", target, key))
        if self.send_hook:
            self.send_hook(target, key)
        return True

    def kill_pane(self, target: str) -> bool:
        if self._missing(target) or self._fail("kill_pane", "scripted"):
            return False
        del self.panes[target]
        self.calls.append(("kill_pane", target, ""))
        return True

    @staticmethod
    def _format(pane: MockPane, fmt: str) -> str:
        if fmt == "#{pane_id}":
            return pane.pane_id
        if fmt == "#{pane_active}":
            return "1" if pane.active else "0"
        if fmt == "#{session_name}":
            return pane.session
        if fmt == "#{pane_current_command}":
            return pane.current_command
        if fmt == "#{pane_start_command}":
            return pane.start_command or ""
        if fmt.startswith("#{@") and fmt.endswith("}"):
            return pane.options.get(fmt[2:-1], "")
        return ""
