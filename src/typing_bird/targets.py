"""
Choosing the pane that receives keystrokes.

Injected typing-bird panes are tagged with a pane-scoped tmux option
(TAG_INJECTED). They are never valid send targets: keystrokes go to the
invoking pane if it qualifies, else the active pane, else the first
ordinary pane in listing order.

The same listing also drives the restart scan, which finds earlier
typing-bird panes by tag, by the command they are running, or by the
command tmux started them with. The last one matters for the console
script, which tmux reports as running "python3".
"""

import os
import shlex
from typing import Iterable, List, Optional, Sequence

from .constants import MODULE_NAME, TAG_INJECTED, TAG_TRUE, TOOL_NAME
from .exceptions import NoEligiblePaneError, TmuxCommandError
from .logging_config import get_logger
from .protocols import PaneClient

logger = get_logger("targets")

# Columns for send-target selection: id, active flag, injected tag
SELECTION_FIELDS = ("#{pane_id}", "#{pane_active}", f"#{{{TAG_INJECTED}}}")

# Columns for the restart scan: id, injected tag, running command, start command
RESTART_SCAN_FIELDS = (
    "#{pane_id}",
    f"#{{{TAG_INJECTED}}}",
    "#{pane_current_command}",
    "#{pane_start_command}",
)


def pick_preferred_send_pane(rows: Iterable[Sequence[str]]) -> Optional[str]:
    """Pick the active non-injected pane, else the first non-injected one.

    Args:
        rows: (pane_id, active, injected) rows in tmux listing order

    Returns:
        A pane id, or None if every pane is injected
    """
    first_non_injected = None
    for row in rows:
        if len(row) < 3:
            continue
        pane_id = row[0].strip()
        active = row[1].strip() == "1"
        injected = row[2].strip() == TAG_TRUE
        if not pane_id or injected:
            continue
        if active:
            return pane_id
        if first_non_injected is None:
            first_non_injected = pane_id
    return first_non_injected


def start_command_argv(start_command: str) -> List[str]:
    """Split a pane start command into words.

    tmux may hand back a single-argument command wrapped in one more layer
    of quotes; such a command is split a second time. Unparseable text
    gives no words.
    """
    try:
        words = shlex.split(start_command)
        if len(words) == 1 and any(ch.isspace() for ch in words[0]):
            words = shlex.split(words[0])
    except ValueError:
        return []
    return words


def start_command_runs_bird(start_command: str, command_names: Iterable[str]) -> bool:
    """Whether a start command launches typing-bird.

    Matches a program whose basename is one of command_names, or a Python
    interpreter running ``-m typing_bird``.
    """
    words = start_command_argv(start_command)
    if not words:
        return False
    program = os.path.basename(words[0])
    if program in {name for name in command_names if name}:
        return True
    if not program.startswith("python"):
        return False
    return any(
        word == "-m" and next_word == MODULE_NAME
        for word, next_word in zip(words[1:], words[2:])
    )


def parse_bird_pane_ids(rows: Iterable[Sequence[str]], command_names: Iterable[str]) -> List[str]:
    """Select panes that are typing-bird instances.

    A pane qualifies if it carries the injected tag, is running one of
    command_names, or was started with a typing-bird command line. Ids are
    deduplicated, first occurrence kept.

    Args:
        rows: (pane_id, injected, current_command[, start_command]) rows
        command_names: Command names that identify typing-bird
    """
    names = {name for name in command_names if name}
    seen = set()
    panes = []
    for row in rows:
        if len(row) < 3:
            continue
        pane_id = row[0].strip()
        injected = row[1].strip() == TAG_TRUE
        current_command = row[2].strip()
        start_command = row[3].strip() if len(row) > 3 else ""
        if not pane_id:
            continue
        if not (
            injected
            or current_command in names
            or start_command_runs_bird(start_command, names)
        ):
            continue
        if pane_id in seen:
            continue
        seen.add(pane_id)
        panes.append(pane_id)
    return panes


class TargetResolver:
    """Resolves the send-target pane for a session."""

    def __init__(self, client: PaneClient, session: str, invoking_pane: Optional[str] = None):
        self.client = client
        self.session = session
        self.invoking_pane = (invoking_pane or "").strip() or None

    def pane_is_injected(self, pane: str) -> Optional[bool]:
        """Whether pane carries the injected tag; None if it can't be queried."""
        value = self.client.display(pane, f"#{{{TAG_INJECTED}}}")
        if value is None:
            return None
        return value.strip() == TAG_TRUE

    def pane_belongs_to_session(self, pane: str) -> Optional[bool]:
        """Whether pane is in this session; None if it can't be queried."""
        value = self.client.display(pane, "#{session_name}")
        if value is None:
            return None
        return value.strip() == self.session

    def preferred_send_pane(self) -> str:
        """Active non-injected pane, else the first non-injected pane.

        Raises:
            TmuxCommandError: If panes can't be listed
            NoEligiblePaneError: If every pane is injected
        """
        rows = self.client.list_panes(self.session, SELECTION_FIELDS)
        if rows is None:
            raise TmuxCommandError("list-panes", self.client.last_error)
        pane = pick_preferred_send_pane(rows)
        if pane is None:
            raise NoEligiblePaneError(self.session)
        return pane

    def resolve(self) -> str:
        """The invoking pane if it is an ordinary pane of this session, else the preferred pane."""
        pane = self.invoking_pane
        if pane is not None:
            if self.pane_belongs_to_session(pane) and self.pane_is_injected(pane) is False:
                return pane
            logger.debug("invoking pane %r is not eligible; falling back", pane)
        return self.preferred_send_pane()


def default_command_names(executable_base: str) -> List[str]:
    """Command names identifying a running typing-bird."""
    names = [TOOL_NAME]
    if executable_base and executable_base not in names:
        names.append(executable_base)
    return names
