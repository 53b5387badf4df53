"""
Rate-limit bookkeeping and retry backoff for the request pipeline.

RateLimitState keeps the last quota information the service reported.
BackoffPolicy turns that state, an attempt number and a failure kind into
a delay. Neither sleeps: the executor owns the actual waiting.
"""

import random
import time
from dataclasses import dataclass
from email.utils import parsedate_to_datetime
from typing import Mapping, Optional

from .pipeline_errors import FailureKind


# Reset header values above this are epoch seconds, below it delta seconds
EPOCH_THRESHOLD = 1_000_000_000

REMAINING_HEADERS = ("X-RateLimit-Remaining", "RateLimit-Remaining")
RESET_HEADERS = ("X-RateLimit-Reset", "RateLimit-Reset")


@dataclass(frozen=True)
class RateLimitSnapshot:
    """Quota information observed on one response."""

    remaining: Optional[int] = None
    reset_at: Optional[float] = None
    observed_at: float = 0.0


def _header(headers: Mapping[str, str], names) -> Optional[str]:
    lowered = {str(key).lower(): value for key, value in headers.items()}
    for name in names:
        value = lowered.get(name.lower())
        if value is not None and str(value).strip() != "":
            return str(value).strip()
    return None


def parse_retry_after(value: Optional[str], now: float) -> Optional[float]:
    """
    Parse a Retry-After value.

    Args:
        value: Delta seconds ("2", "1.5") or an HTTP date
        now: Current epoch time, used to turn a date into a delay

    Returns:
        Seconds to wait (never negative), or None if the value is unusable
    """
    if value is None:
        return None
    value = str(value).strip()
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        pass
    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if retry_at is None:
        return None
    return max(0.0, retry_at.timestamp() - now)


class RateLimitState:
    """
    Process-wide view of the service's rate-limit headers.

    The snapshot is replaced wholesale on every update, so readers never
    block and the last writer wins.
    """

    def __init__(self):
        self._snapshot: Optional[RateLimitSnapshot] = None

    @property
    def snapshot(self) -> Optional[RateLimitSnapshot]:
        return self._snapshot

    def update(self, remaining: Optional[int], reset_at: Optional[float], now: float) -> None:
        self._snapshot = RateLimitSnapshot(remaining=remaining, reset_at=reset_at, observed_at=now)

    def update_from_headers(self, headers: Mapping[str, str], now: float) -> bool:
        """
        Record quota headers from a response.

        Returns:
            True if the response carried rate-limit information
        """
        remaining_raw = _header(headers, REMAINING_HEADERS)
        reset_raw = _header(headers, RESET_HEADERS)
        if remaining_raw is None and reset_raw is None:
            return False

        remaining = None
        if remaining_raw is not None:
            try:
                remaining = max(0, int(float(remaining_raw)))
            except ValueError:
                remaining = None

        reset_at = None
        if reset_raw is not None:
            try:
                reset_value = float(reset_raw)
                reset_at = reset_value if reset_value > EPOCH_THRESHOLD else now + reset_value
            except ValueError:
                reset_at = None

        self.update(remaining, reset_at, now)
        return True

    def mark_exhausted(self, reset_at: Optional[float], now: float) -> None:
        """Record that the quota is used up (a 429 was received)."""
        self.update(0, reset_at, now)

    def mark_available(self) -> None:
        """Forget an exhausted quota once a request succeeds without quota headers."""
        snapshot = self._snapshot
        if snapshot is not None and snapshot.remaining == 0:
            self._snapshot = None

    def clear(self) -> None:
        self._snapshot = None


class BackoffPolicy:
    """
    Computes waits between attempts.

    Delays grow exponentially from base_delay and are capped at max_delay.
    Jitter scales each delay down by a random fraction of up to `jitter`,
    so a jitter of 0 gives a deterministic, non-decreasing curve.
    """

    def __init__(self,
                 base_delay: float = 0.25,
                 max_delay: float = 8.0,
                 multiplier: float = 2.0,
                 jitter: float = 0.5,
                 rng: Optional[random.Random] = None):
        if base_delay < 0 or max_delay < 0:
            raise ValueError("Backoff delays must not be negative")
        if max_delay < base_delay:
            raise ValueError(f"max_delay ({max_delay}) must be >= base_delay ({base_delay})")
        if multiplier < 1.0:
            raise ValueError(f"multiplier must be >= 1.0, got {multiplier}")
        if not 0.0 <= jitter <= 1.0:
            raise ValueError(f"jitter must be between 0 and 1, got {jitter}")

        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.jitter = jitter
        self._rng = rng or random.Random()

    def should_wait(self, snapshot: Optional[RateLimitSnapshot], now: Optional[float] = None) -> float:
        """
        How long to hold off before the next attempt, given the last quota seen.

        Args:
            snapshot: Last observed rate-limit data, or None
            now: Current epoch time (defaults to time.time())

        Returns:
            0.0 when quota is available or unknown, otherwise the seconds
            remaining until the reported reset
        """
        if snapshot is None or snapshot.remaining is None or snapshot.remaining > 0:
            return 0.0
        if snapshot.reset_at is None:
            return self.base_delay
        if now is None:
            now = time.time()
        return max(0.0, snapshot.reset_at - now)

    def backoff_delay(self, attempt: int) -> float:
        """Exponential delay for a failed attempt number (1-based), without jitter."""
        if attempt < 1:
            raise ValueError(f"attempt must be >= 1, got {attempt}")
        # Cap the exponent so huge attempt numbers cannot overflow
        exponent = min(attempt - 1, 64)
        return min(self.max_delay, self.base_delay * (self.multiplier ** exponent))

    def next_backoff(self,
                     attempt: int,
                     kind: FailureKind,
                     retry_after: Optional[float] = None) -> float:
        """
        Delay before retrying after attempt number `attempt` failed with `kind`.

        Args:
            attempt: The attempt that just failed (1-based)
            kind: Why it failed
            retry_after: Server-specified delay in seconds, if any

        Returns:
            Seconds to wait

        Raises:
            ValueError: If `kind` is not a retryable failure
        """
        if kind == FailureKind.AUTHENTICATION:
            return 0.0
        if kind == FailureKind.RATE_LIMITED and retry_after is not None and retry_after > 0:
            return float(retry_after)
        if kind not in (FailureKind.NETWORK, FailureKind.SERVER, FailureKind.RATE_LIMITED):
            raise ValueError(f"{kind.value} failures are not retried")

        delay = self.backoff_delay(attempt)
        if self.jitter > 0:
            delay *= 1.0 - self._rng.uniform(0.0, self.jitter)
        return delay
