"""
Run configuration for typing-bird.

A BirdConfig is built in exactly two ways: from user input on the command
line (BirdConfig.from_cli), or programmatically by the injection supervisor
for the child it launches (BirdConfig.for_child). The child's command line is
rendered from the typed config by child_args(), so both sides share one
definition of every flag.
"""

import re
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .constants import (
    DEFAULT_DELAY,
    DEFAULT_IDLE_SAMPLES,
    DEFAULT_TIMEOUT,
)
from .exceptions import ConfigurationError


_NANOS_PER_UNIT = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# One "<number><unit>" component of a duration such as "1h30m" or "1.5s"
_DURATION_COMPONENT = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"\d+\.?\d*|\.\d+")


def parse_duration(raw: str, name: str = "duration", require_positive: bool = False) -> float:
    """Parse a duration string like '30s', '15ms', '1h30m' or '90' into seconds.

    Args:
        raw: Duration text. A bare number is taken as seconds.
        name: Name of the setting, used in error messages
        require_positive: Reject zero as well as negative values

    Returns:
        Duration in seconds

    Raises:
        ConfigurationError: If the text is not a duration or is out of range
    """
    text = raw.strip()
    sign = 1
    if text[:1] in ("+", "-"):
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if not text:
        raise ConfigurationError(f"invalid {name} {raw!r}: empty duration")

    if _BARE_NUMBER.fullmatch(text):
        nanos = round(float(text) * _NANOS_PER_UNIT["s"])
    else:
        nanos = 0
        pos = 0
        while pos < len(text):
            match = _DURATION_COMPONENT.match(text, pos)
            if match is None:
                raise ConfigurationError(f"invalid {name} {raw!r}: unknown unit or malformed number")
            nanos += round(float(match.group(1)) * _NANOS_PER_UNIT[match.group(2)])
            pos = match.end()

    seconds = sign * nanos / 1_000_000_000
    if require_positive:
        if seconds <= 0:
            raise ConfigurationError(f"{name} must be greater than 0 (got {format_duration(seconds)})")
    elif seconds < 0:
        raise ConfigurationError(f"{name} must be >= 0 (got {format_duration(seconds)})")
    return seconds


def _format_fraction(value: int, unit: int) -> str:
    whole, frac = divmod(value, unit)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(unit)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def format_duration(seconds: float) -> str:
    """Render seconds the way Go prints a time.Duration ('30s', '15ms', '1m0s')."""
    nanos = round(seconds * 1_000_000_000)
    if nanos == 0:
        return "0s"

    sign = "-" if nanos < 0 else ""
    nanos = abs(nanos)

    if nanos < _NANOS_PER_UNIT["us"]:
        return f"{sign}{nanos}ns"
    if nanos < _NANOS_PER_UNIT["ms"]:
        return f"{sign}{_format_fraction(nanos, _NANOS_PER_UNIT['us'])}µs"
    if nanos < _NANOS_PER_UNIT["s"]:
        return f"{sign}{_format_fraction(nanos, _NANOS_PER_UNIT['ms'])}ms"

    hours, rem = divmod(nanos, _NANOS_PER_UNIT["h"])
    minutes, rem = divmod(rem, _NANOS_PER_UNIT["m"])
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    out += f"{_format_fraction(rem, _NANOS_PER_UNIT['s'])}s"
    return out


@dataclass(frozen=True)
class BirdConfig:
    """Everything a typing-bird process needs to run.

    messages is never empty; an empty message list from the user becomes a
    single empty message, which sends Enter on its own.
    """

    session: str
    messages: Tuple[str, ...] = ("",)
    timeout: float = DEFAULT_TIMEOUT
    delay: float = DEFAULT_DELAY
    verbose: bool = False
    inject: bool = False
    target_pane: Optional[str] = None
    log_file: Optional[Path] = None
    idle_samples: int = DEFAULT_IDLE_SAMPLES

    @classmethod
    def from_cli(
        cls,
        session: str,
        messages: Optional[Sequence[str]],
        timeout: str,
        delay: str,
        verbose: bool = False,
        inject: bool = False,
        target_pane: Optional[str] = None,
        log_file: Optional[Path] = None,
    ) -> "BirdConfig":
        """Build and validate a config from raw command-line values.

        Raises:
            ConfigurationError: On any invalid or conflicting value
        """
        timeout_seconds = parse_duration(timeout, "timeout", require_positive=True)
        delay_seconds = parse_duration(delay, "delay")

        target = (target_pane or "").strip() or None
        if inject and target:
            raise ConfigurationError("inject mode cannot be combined with --target-pane")

        if not session or not session.strip():
            raise ConfigurationError("tmux session name is required")

        return cls(
            session=session,
            messages=tuple(messages) if messages else ("",),
            timeout=timeout_seconds,
            delay=delay_seconds,
            verbose=verbose,
            inject=inject,
            target_pane=target,
            # Absolute, since an injected child starts in the pane's own cwd
            log_file=Path(log_file).expanduser().absolute() if log_file else None,
        )

    def for_child(self, target_pane: str) -> "BirdConfig":
        """Config for an injected child: same settings, pinned to target_pane."""
        return replace(self, inject=False, target_pane=target_pane)

    def child_args(self) -> List[str]:
        """Command-line arguments that reproduce this config in a new process.

        Options come first; the session and messages follow, so messages
        starting with '-' are still taken literally.
        """
        args = ["-t", format_duration(self.timeout), "-d", format_duration(self.delay)]
        if self.verbose:
            args.append("--verbose")
        if self.log_file is not None:
            args.extend(["--log-file", str(self.log_file)])
        if self.target_pane and self.target_pane.strip():
            args.extend(["--target-pane", self.target_pane])
        args.append(self.session)
        args.extend(self.messages)
        return args
