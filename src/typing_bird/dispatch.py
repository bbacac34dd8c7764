"""
The dispatch loop.

    IDLE_WAIT --pane idle--> SENDING --message sent--> IDLE_WAIT
        |                       |
        +--cancel / pane gone---+--send failure--> SHUTDOWN

Messages are sent in order and wrap around forever. A send failure is not
retried; the loop stops and reports which message and target failed.
"""

from enum import Enum
from typing import Optional

from .cancellation import CancelToken
from .config import BirdConfig, format_duration
from .constants import ENTER_KEY, EXIT_FAILURE, EXIT_OK
from .encoder import KeyPress, LiteralText, message_send_actions
from .exceptions import DispatchError, TargetGoneError
from .idle import IdleDetector
from .logging_config import get_structured_logger
from .protocols import PaneClient


class DispatchState(Enum):
    IDLE_WAIT = "idle-wait"
    SENDING = "sending"
    SHUTDOWN = "shutdown"


class Dispatcher:
    """Types the configured messages into target whenever it goes idle."""

    def __init__(
        self,
        client: PaneClient,
        config: BirdConfig,
        target: str,
        cancel: CancelToken,
        detector: Optional[IdleDetector] = None,
        enter_key: str = ENTER_KEY,
    ):
        self.client = client
        self.config = config
        self.target = target
        self.cancel = cancel
        self.detector = detector or IdleDetector(
            client,
            cancel,
            samples=config.idle_samples,
            verbose=config.verbose,
        )
        self.enter_key = enter_key
        self.message_index = 0
        self.state = DispatchState.IDLE_WAIT
        self.log = get_structured_logger("dispatch").with_context(
            session=repr(config.session), target=repr(target)
        )

    def advance(self) -> int:
        """Move to the next message, wrapping at the end of the list."""
        self.message_index = (self.message_index + 1) % len(self.config.messages)
        return self.message_index

    def send_message(self, index: int) -> None:
        """Type message `index` into the target.

        Raises:
            DispatchError: If any literal chunk or key fails to send
        """
        message = self.config.messages[index]
        for action in message_send_actions(message, self.enter_key):
            if isinstance(action, LiteralText):
                ok = self.client.send_literal(self.target, action.text)
            elif isinstance(action, KeyPress):
                ok = self.client.send_key(self.target, action.name, delay=self.config.delay)
            else:
                raise TypeError(f"unknown send action: {action!r}")
            if not ok:
                raise DispatchError(index, self.target, self.client.last_error)

    def _shutdown(self, code: int) -> int:
        self.state = DispatchState.SHUTDOWN
        return code

    def run(self) -> int:
        """Run until cancelled or a fatal error.

        Returns:
            Process exit code: the cancellation's code, or 1 on failure
        """
        self.log.info(
            "starting",
            idle_timeout=format_duration(self.config.timeout),
            delay=format_duration(self.config.delay),
            messages=len(self.config.messages),
        )
        if self.config.messages == ("",):
            self.log.info("no messages supplied; sending newline only each timeout")

        while True:
            self.state = DispatchState.IDLE_WAIT
            try:
                stable_length = self.detector.wait_for_idle(self.target, self.config.timeout)
            except TargetGoneError as e:
                self.log.error(f"idle wait failed: {e}")
                return self._shutdown(EXIT_FAILURE)

            if stable_length is None:
                if self.cancel.exit_code == EXIT_OK:
                    self.log.info("shutdown signal received, exiting")
                return self._shutdown(self.cancel.exit_code)

            self.log.info(f"idle detected: sample1={stable_length} bytes")

            self.state = DispatchState.SENDING
            try:
                self.send_message(self.message_index)
            except DispatchError as e:
                self.log.error(str(e))
                return self._shutdown(EXIT_FAILURE)

            self.log.info(
                f"sent message {self.message_index + 1}/{len(self.config.messages)}: "
                f"{self.config.messages[self.message_index]!r}"
            )
            self.advance()
