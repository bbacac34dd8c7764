"""
Self-injection: run typing-bird in a small pane under the target.

Steps, in order:
  1. find earlier typing-bird panes in the session (tagged, or running the tool)
  2. interrupt and kill them, deferring the pane we were launched from
  3. resolve the pane that should receive keystrokes
  4. build the child command line from the config pinned to that pane
  5. split a 5-line detached pane under it running that command
  6. tag the new pane as injected and record its send target
  7. kill the deferred launching pane, if any

Any failure aborts; panes already killed stay killed. Provenance lives in
tmux pane options because the supervisor and the injected child are
separate processes and tmux is the only state they share.
"""

import os
import shutil
import sys
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from .config import BirdConfig, format_duration
from .constants import (
    INJECTED_PANE_HEIGHT,
    INTERRUPT_KEY,
    MODULE_NAME,
    RESTART_GRACE_DELAY,
    TAG_INJECTED,
    TAG_SEND_TARGET,
    TAG_TRUE,
)
from .exceptions import InjectionError, TypingBirdError
from .logging_config import get_logger
from .protocols import PaneClient
from .shell import shell_command_for_exec
from .targets import RESTART_SCAN_FIELDS, TargetResolver, default_command_names, parse_bird_pane_ids

logger = get_logger("injection")


def resolve_executable(argv0: str) -> List[str]:
    """Command prefix that relaunches this program.

    The console script when argv0 points at one, else the interpreter
    running the package as a module.
    """
    if argv0 and os.path.basename(argv0) not in ("__main__.py", "-c", "-m"):
        path = argv0 if os.sep in argv0 else shutil.which(argv0)
        if path and os.path.isfile(path):
            return [os.path.abspath(path)]
    return [sys.executable, "-m", MODULE_NAME]


@dataclass(frozen=True)
class InjectionResult:
    pane_id: str
    send_target: str


class InjectionSupervisor:
    """Replaces earlier injected instances with a fresh one."""

    def __init__(
        self,
        client: PaneClient,
        config: BirdConfig,
        executable: Sequence[str],
        invoking_pane: Optional[str] = None,
        resolver: Optional[TargetResolver] = None,
        grace_delay: float = RESTART_GRACE_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize the supervisor.

        Args:
            client: Pane client
            config: The user's config (inject mode)
            executable: Command prefix that starts typing-bird (see resolve_executable)
            invoking_pane: $TMUX_PANE of this process, if any
            resolver: Optional TargetResolver for dependency injection (testing)
            grace_delay: Seconds between interrupting and killing an old pane
            sleep: Sleep function (patched in tests)
        """
        if not executable:
            raise ValueError("executable must not be empty")
        self.client = client
        self.config = config
        self.executable = list(executable)
        self.invoking_pane = (invoking_pane or "").strip() or None
        self.resolver = resolver or TargetResolver(client, config.session, self.invoking_pane)
        self.grace_delay = grace_delay
        self._sleep = sleep

    @property
    def command_names(self) -> List[str]:
        # Never match on the interpreter name when running via `python -m`
        base = os.path.basename(self.executable[0]) if len(self.executable) == 1 else ""
        return default_command_names(base)

    def find_existing_panes(self) -> List[str]:
        """Ids of typing-bird panes anywhere in the session."""
        rows = self.client.list_panes(self.config.session, RESTART_SCAN_FIELDS, all_windows=True)
        if rows is None:
            raise InjectionError("listing existing panes", self.client.last_error)
        return parse_bird_pane_ids(rows, self.command_names)

    def restart_existing_panes(self) -> bool:
        """Interrupt and kill earlier instances.

        Returns:
            True if the invoking pane is itself an instance and was deferred
        """
        skipped_current = False
        for pane in self.find_existing_panes():
            if pane == self.invoking_pane:
                skipped_current = True
                continue

            logger.info("stopping previous instance in pane %s", pane)
            if not self.client.send_key(pane, INTERRUPT_KEY):
                logger.debug("interrupt to %s failed: %s", pane, self.client.last_error)
            self._sleep(self.grace_delay)
            if not self.client.kill_pane(pane) and self.client.pane_exists(pane):
                raise InjectionError(f"killing pane {pane}", self.client.last_error)
        return skipped_current

    def build_child_command(self, send_target: str) -> str:
        child = self.config.for_child(send_target)
        return shell_command_for_exec(self.executable[0], self.executable[1:] + child.child_args())

    def run(self) -> InjectionResult:
        """Perform the full injection.

        Raises:
            InjectionError: If any step fails
        """
        skipped_current = self.restart_existing_panes()

        try:
            send_target = self.resolver.resolve()
        except TypingBirdError as e:
            raise InjectionError("resolving the send-target pane", str(e)) from e

        command = self.build_child_command(send_target)
        logger.debug("child command: %s", command)

        pane_id = self.client.split_pane(send_target, command, height=INJECTED_PANE_HEIGHT)
        if pane_id is None:
            raise InjectionError(f"splitting pane {send_target}", self.client.last_error)

        if not self.client.set_pane_option(pane_id, TAG_INJECTED, TAG_TRUE):
            raise InjectionError(f"tagging pane {pane_id}", self.client.last_error)
        if not self.client.set_pane_option(pane_id, TAG_SEND_TARGET, send_target):
            raise InjectionError(f"tagging pane {pane_id}", self.client.last_error)

        logger.info(
            "injected pane=%r target-pane=%r session=%r timeout=%s delay=%s messages=%d",
            pane_id,
            send_target,
            self.config.session,
            format_duration(self.config.timeout),
            format_duration(self.config.delay),
            len(self.config.messages),
        )

        if skipped_current and self.invoking_pane:
            # Usually ends this process along with its pane
            if not self.client.kill_pane(self.invoking_pane):
                logger.warning("could not close previous pane %s: %s", self.invoking_pane, self.client.last_error)

        return InjectionResult(pane_id=pane_id, send_target=send_target)
