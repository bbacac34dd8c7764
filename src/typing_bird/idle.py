"""
Idle detection by repeated pane capture.

A round captures the pane N times spread evenly across the idle window and
declares the pane idle only if every capture is byte-for-byte identical. A
round that sees any change is thrown away and a fresh one starts; nothing
carries over between rounds.

A failed capture is retried after a short backoff unless the pane is gone,
which is fatal.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .cancellation import CancelToken
from .constants import CAPTURE_RETRY_BACKOFF, DEFAULT_IDLE_SAMPLES
from .exceptions import PaneCaptureError, TargetGoneError
from .logging_config import get_logger
from .protocols import PaneClient

logger = get_logger("idle")


@dataclass
class SampleRound:
    """Outcome of one sampling round.

    The diff lists are only filled in when diagnostics are enabled; index i
    holds the number of differing bytes between sample i+1 and sample 1
    (diffs_from_base) or sample i (diffs_from_prev). Index 0 is always 0.
    """

    all_equal: bool
    base_length: int
    diffs_from_base: List[int] = field(default_factory=list)
    diffs_from_prev: List[int] = field(default_factory=list)


def byte_diff_count(a: bytes, b: bytes) -> int:
    """Count differing byte positions, counting any length mismatch as differences."""
    common = min(len(a), len(b))
    diffs = sum(1 for i in range(common) if a[i] != b[i])
    return diffs + abs(len(a) - len(b))


def format_idle_differences(diffs_base: Sequence[int], diffs_prev: Sequence[int]) -> str:
    """Describe which samples differed from sample 1 and by how much."""
    parts = [
        f"sample {i + 1}: base={diffs_base[i]} prev={diffs_prev[i]}"
        for i in range(1, len(diffs_base))
        if diffs_base[i] != 0
    ]
    return "differences relative to sample 1: " + ", ".join(parts)


class IdleDetector:
    """Waits for a pane's visible content to stop changing."""

    def __init__(
        self,
        client: PaneClient,
        cancel: CancelToken,
        samples: int = DEFAULT_IDLE_SAMPLES,
        verbose: bool = False,
        retry_backoff: float = CAPTURE_RETRY_BACKOFF,
    ):
        """Initialize the detector.

        Args:
            client: Pane client used for captures
            cancel: Token checked between samples and during sleeps
            samples: Captures per round (>= 1)
            verbose: Compute and log per-sample differences for non-idle rounds
            retry_backoff: Seconds to wait after a failed capture
        """
        if samples < 1:
            raise ValueError("samples must be >= 1")
        self.client = client
        self.cancel = cancel
        self.samples = samples
        self.verbose = verbose
        self.retry_backoff = retry_backoff

    def interval(self, window: float) -> float:
        """Spacing between captures so that N samples span the window."""
        if self.samples <= 1:
            return 0.0
        return window / (self.samples - 1)

    def sample_round(self, target: str, window: float) -> Optional[SampleRound]:
        """Capture the target `samples` times across `window` seconds.

        Returns:
            The round's outcome, or None if cancelled mid-round

        Raises:
            PaneCaptureError: If any capture fails
        """
        interval = self.interval(window)
        captures: List[bytes] = []

        for i in range(self.samples):
            if self.cancel.cancelled:
                return None

            content = self.client.capture_pane(target)
            if content is None:
                raise PaneCaptureError(target, self.client.last_error)
            captures.append(content)

            if i < self.samples - 1 and interval > 0:
                if not self.cancel.sleep(interval):
                    return None

        base = captures[0]
        all_equal = all(c == base for c in captures[1:])
        result = SampleRound(all_equal=all_equal, base_length=len(base))

        if self.verbose:
            result.diffs_from_base = [0] * len(captures)
            result.diffs_from_prev = [0] * len(captures)
            for i in range(1, len(captures)):
                result.diffs_from_base[i] = byte_diff_count(base, captures[i])
                result.diffs_from_prev[i] = byte_diff_count(captures[i - 1], captures[i])

        return result

    def wait_for_idle(self, target: str, window: float) -> Optional[int]:
        """Block until a full round sees no change on target.

        Returns:
            Length in bytes of the stable content, or None if cancelled

        Raises:
            TargetGoneError: If the target disappears
        """
        while True:
            if self.cancel.cancelled:
                return None

            try:
                result = self.sample_round(target, window)
            except PaneCaptureError as e:
                if not self.client.pane_exists(target):
                    raise TargetGoneError(target) from e
                logger.debug("capture failed on %r, retrying: %s", target, e.reason)
                if not self.cancel.sleep(self.retry_backoff):
                    return None
                continue

            if result is None:
                return None
            if result.all_equal:
                return result.base_length

            if self.verbose:
                logger.debug(
                    "not idle yet on %r; %s",
                    target,
                    format_idle_differences(result.diffs_from_base, result.diffs_from_prev),
                )
