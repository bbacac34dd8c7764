"""
Cooperative cancellation and signal handling.

The dispatch loop never gets interrupted mid-call. Signal handlers only
flip a CancelToken, and the loop checks the token at its suspension points
(top of each idle round, between samples, and while sleeping). A tmux call
already in flight is allowed to finish.

Ctrl-C once prints the command needed to restart and keeps running; a
second Ctrl-C within INTERRUPT_WINDOW exits with 130. SIGTERM exits with 143.
"""

import signal
import time
from typing import Callable, Optional

from .constants import (
    CANCEL_POLL_INTERVAL,
    EXIT_DOUBLE_INTERRUPT,
    EXIT_OK,
    EXIT_TERMINATED,
    INTERRUPT_WINDOW,
)
from .logging_config import get_logger

logger = get_logger("signals")


class CancelToken:
    """One-shot cancellation flag carrying the exit code to finish with.

    cancel() only assigns attributes, so it is safe to call from a signal
    handler that interrupts sleep() on the same thread. sleep() polls the
    flag in short slices instead of blocking on a lock.
    """

    def __init__(self, poll_interval: float = CANCEL_POLL_INTERVAL):
        self._cancelled = False
        self._exit_code = EXIT_OK
        self.poll_interval = poll_interval

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def exit_code(self) -> int:
        return self._exit_code

    def cancel(self, exit_code: int = EXIT_OK) -> None:
        """Request shutdown. The first exit code recorded wins."""
        if self._cancelled:
            return
        self._exit_code = exit_code
        self._cancelled = True

    def sleep(self, seconds: float) -> bool:
        """Sleep up to `seconds`, waking within poll_interval of cancellation.

        Returns:
            True if the full duration elapsed, False if cancelled
        """
        deadline = time.monotonic() + seconds
        while not self._cancelled:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return True
            time.sleep(min(remaining, self.poll_interval))
        return False


class InterruptHandler:
    """Installs SIGINT/SIGTERM handlers that cancel a token.

    Use as a context manager; the previous handlers are restored on exit.
    """

    def __init__(
        self,
        cancel: CancelToken,
        launch_command: str = "",
        window: float = INTERRUPT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cancel = cancel
        self.launch_command = launch_command
        self.window = window
        self._clock = clock
        self._last_interrupt: Optional[float] = None
        self._old_handlers: dict = {}

    def install(self) -> None:
        self._old_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, self._on_signal)
        self._old_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, self._on_signal)

    def uninstall(self) -> None:
        for signum, handler in self._old_handlers.items():
            signal.signal(signum, handler)
        self._old_handlers.clear()

    def __enter__(self) -> "InterruptHandler":
        self.install()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.uninstall()

    def _on_signal(self, signum, frame) -> None:
        if signum == signal.SIGTERM:
            self.handle_terminate()
        else:
            self.handle_interrupt()

    def handle_terminate(self) -> None:
        if self.cancel.cancelled:
            return
        logger.info("SIGTERM received; exiting.")
        self.cancel.cancel(EXIT_TERMINATED)

    def handle_interrupt(self) -> None:
        if self.cancel.cancelled:
            return

        now = self._clock()
        if self._last_interrupt is not None and now - self._last_interrupt <= self.window:
            logger.info("Second Ctrl-C within %ss; exiting.", _seconds(self.window))
            self.cancel.cancel(EXIT_DOUBLE_INTERRUPT)
            return

        logger.info("Ctrl-C received; restart with:")
        logger.info("$ %s", self.launch_command or "<unknown command>")
        logger.info("Press Ctrl-C again within %ss to exit.", _seconds(self.window))
        self._last_interrupt = now


def _seconds(value: float) -> str:
    return f"{value:g}"
