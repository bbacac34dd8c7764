"""
Exceptions raised by typing-bird.

Everything derives from TypingBirdError so the CLI can report any
operational failure with a single handler.
"""

from typing import Optional


class TypingBirdError(Exception):
    """Base class for typing-bird errors."""


class ConfigurationError(TypingBirdError):
    """Invalid user configuration (bad duration, conflicting flags, ...)."""


class TmuxNotFoundError(TypingBirdError):
    """tmux is not installed or not on PATH."""


class SessionNotFoundError(TypingBirdError):
    """The requested tmux session does not exist."""

    def __init__(self, session: str, reason: Optional[str] = None):
        self.session = session
        self.reason = reason
        message = f"tmux session {session!r} not available"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TmuxCommandError(TypingBirdError):
    """A tmux query or mutation failed."""

    def __init__(self, command: str, reason: Optional[str] = None):
        self.command = command
        self.reason = reason
        message = f"tmux {command} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class PaneCaptureError(TypingBirdError):
    """A single capture of pane content failed."""

    def __init__(self, target: str, reason: Optional[str] = None):
        self.target = target
        self.reason = reason
        message = f"capture of {target!r} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class TargetGoneError(TypingBirdError):
    """The target pane no longer exists."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"tmux target {target!r} no longer exists")


class NoEligiblePaneError(TypingBirdError):
    """No non-injected pane is available to receive keystrokes."""

    def __init__(self, session: str):
        self.session = session
        super().__init__(f"no non-injected pane found in session {session!r}")


class DispatchError(TypingBirdError):
    """Sending a literal chunk or key to the target failed."""

    def __init__(self, message_index: int, target: str, reason: Optional[str] = None):
        self.message_index = message_index
        self.target = target
        self.reason = reason
        message = f"failed sending message #{message_index + 1} to target {target!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class InjectionError(TypingBirdError):
    """A step of self-injection failed."""

    def __init__(self, step: str, reason: Optional[str] = None):
        self.step = step
        self.reason = reason
        message = f"injection failed while {step}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
