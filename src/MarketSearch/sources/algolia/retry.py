"""Timeout and retry policy for search requests.

Pure decision logic: the execution engine asks the policy how long an attempt
may take, whether a failure deserves another attempt, and how long to back
off first.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import Final

from MarketSearch.core.errors import ErrorKind, SearchError

RETRYABLE_KINDS: Final[frozenset[ErrorKind]] = frozenset(
    {
        ErrorKind.TIMEOUT,
        ErrorKind.CONNECTION,
        ErrorKind.DNS,
        ErrorKind.TRANSPORT,
        ErrorKind.SERVER,
    }
)


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Capped exponential backoff with symmetric jitter and escalating timeouts.

    Attributes:
        max_attempts: Total attempts per logical request (first try included).
        delay_factor: Base backoff in seconds for the first retry.
        randomization_factor: Jitter amplitude as a fraction of the base delay.
        max_delay: Upper bound for any single backoff, in seconds.
        timeout_progression: Per-attempt timeout budgets in seconds; attempts
            beyond its length reuse the last value.
    """

    max_attempts: int = 3
    delay_factor: float = 0.5
    randomization_factor: float = 0.1
    max_delay: float = 2.0
    timeout_progression: tuple[float, ...] = (3.0, 5.0, 8.0)

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if not self.timeout_progression:
            raise ValueError("timeout_progression must not be empty")
        if any(t <= 0 for t in self.timeout_progression):
            raise ValueError("timeout_progression values must be positive")
        if self.delay_factor < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if not 0.0 <= self.randomization_factor <= 1.0:
            raise ValueError("randomization_factor must be between 0 and 1")

    def timeout_for(self, attempt: int) -> float:
        """Return the timeout budget for a 1-based attempt number."""
        idx = min(max(attempt, 1) - 1, len(self.timeout_progression) - 1)
        return self.timeout_progression[idx]

    def base_delay(self, attempt: int) -> float:
        """Return the un-jittered backoff for a 1-based attempt number."""
        return self.delay_factor * (2 ** (max(attempt, 1) - 1))

    def delay_before_retry(self, attempt: int, rng: random.Random | None = None) -> float:
        """Compute the backoff to wait after a failed attempt.

        Args:
            attempt: The attempt that just failed (1-based).
            rng: Optional random source, for deterministic tests.

        Returns:
            Delay in seconds, within ``[0, max_delay]``.
        """
        base = self.base_delay(attempt)
        uniform = (rng or random).uniform(-1.0, 1.0)
        jitter = base * self.randomization_factor * uniform
        return max(0.0, min(base + jitter, self.max_delay))

    @staticmethod
    def is_retryable(error: BaseException) -> bool:
        """Classify a failure as transient (retry) or permanent (surface now).

        Only structured `SearchError` kinds are considered; anything else is
        treated as permanent.
        """
        return isinstance(error, SearchError) and error.kind in RETRYABLE_KINDS

    def should_retry(self, error: BaseException, attempt: int) -> bool:
        """Whether another attempt follows the failed ``attempt``."""
        return attempt < self.max_attempts and self.is_retryable(error)


@dataclass(slots=True)
class RetryState:
    """Book-keeping for one logical request's retry loop."""

    attempt: int = 0
    last_error: SearchError | None = None
    started_at: float = field(default_factory=time.monotonic)

    @property
    def elapsed(self) -> float:
        """Seconds since the first attempt started."""
        return time.monotonic() - self.started_at

    def begin_attempt(self) -> int:
        """Advance to the next attempt and return its 1-based number."""
        self.attempt += 1
        return self.attempt

    def record_failure(self, error: SearchError) -> None:
        """Remember the most recent failure."""
        self.last_error = error
