"""
Retry Policy - what to retry, how long to wait, how many attempts

Only the decision lives here. The loop that applies it is in
services/insert_executor.py.
"""

from typing import FrozenSet, Iterable, Optional

from drillseed.core.errors import RETRYABLE_CATEGORIES, SinkError, SinkErrorCategory


class RetryPolicy:
    """
    Fixed-delay retry policy keyed on sink error categories.

    max_attempts=None means retry forever: a long backfill is expected to
    eventually get through transient resets and memory pressure.
    """

    def __init__(
        self,
        delay_seconds: float = 10.0,
        max_attempts: Optional[int] = None,
        retryable: Iterable[SinkErrorCategory] = RETRYABLE_CATEGORIES,
    ):
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        if max_attempts is not None and max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1 or None, got {max_attempts}")
        self.delay_seconds = delay_seconds
        self.max_attempts = max_attempts
        self.retryable: FrozenSet[SinkErrorCategory] = frozenset(retryable)

    @property
    def unbounded(self) -> bool:
        return self.max_attempts is None

    def is_retryable(self, error: BaseException) -> bool:
        return isinstance(error, SinkError) and error.category in self.retryable

    def __repr__(self) -> str:
        attempts = 'unbounded' if self.unbounded else self.max_attempts
        return f"RetryPolicy(delay={self.delay_seconds}s, max_attempts={attempts})"
