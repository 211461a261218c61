"""
Retry decisions for the request executor.

:class:`RetryPolicy` is a pure decision object: given the attempt index and
the outcome of a transport attempt it says whether to retry and how long to
wait. It never sleeps itself.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional
from typing import Union

from .transport import Success
from .transport import TransportFailure

DEFAULT_BACKOFF_SCHEDULE: tuple[float, ...] = (1.0, 2.0, 4.0)
DEFAULT_RETRYABLE_STATUSES: frozenset[int] = frozenset({429, 500, 502, 503, 504})

# Statuses whose Retry-After header overrides the backoff schedule.
RETRY_AFTER_STATUSES: frozenset[int] = frozenset({429})

Outcome = Union[Success, TransportFailure]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Decide whether a failed attempt is retried and how long to wait first.

    Attributes:
        max_retries: Retry attempts allowed beyond the first one.
        backoff_schedule: Delays in seconds indexed by attempt. Attempts past
            the end of the schedule reuse its last entry.
        retryable_statuses: HTTP statuses worth retrying.

    Examples:
        >>> policy = RetryPolicy(max_retries=2)
        >>> policy.should_retry(0, TransportFailure("connection reset"))
        True
        >>> policy.delay(5, TransportFailure("connection reset"))
        4.0
    """

    max_retries: int = 2
    backoff_schedule: Sequence[float] = DEFAULT_BACKOFF_SCHEDULE
    retryable_statuses: frozenset[int] = DEFAULT_RETRYABLE_STATUSES

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if not self.backoff_schedule:
            raise ValueError("backoff_schedule must not be empty")

    def is_retryable(self, outcome: Outcome) -> bool:
        if isinstance(outcome, TransportFailure):
            return True
        return outcome.status in self.retryable_statuses

    def should_retry(self, attempt: int, outcome: Outcome) -> bool:
        """Whether attempt ``attempt`` (0-indexed) is followed by another one."""
        return self.is_retryable(outcome) and attempt < self.max_retries

    def delay(self, attempt: int, outcome: Outcome) -> float:
        """Seconds to wait after attempt ``attempt`` before the next one."""
        if isinstance(outcome, Success) and outcome.status in RETRY_AFTER_STATUSES:
            retry_after = parse_retry_after(outcome.headers.get("Retry-After"))
            if retry_after is not None:
                return retry_after
        return self.backoff_schedule[min(attempt, len(self.backoff_schedule) - 1)]


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """
    Parse a Retry-After header given in (possibly fractional) seconds.

    Returns None when the header is absent or not a number. Negative values
    are clamped to zero.
    """
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if math.isnan(seconds) or math.isinf(seconds):
        return None
    return max(seconds, 0.0)
