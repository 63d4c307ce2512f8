"""
Error types shared across drillseed

SinkErrorCategory is the closed set of failure kinds a sink reports. The
ingestion core decides what to retry from the category alone and never looks
at driver exception types or message text.
"""

from enum import Enum
from typing import Optional


class SinkErrorCategory(str, Enum):
    """Failure classes reported by a sink"""
    CONNECTION_RESET = "connection_reset"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    TIMEOUT = "timeout"
    FATAL = "fatal"


RETRYABLE_CATEGORIES = frozenset({
    SinkErrorCategory.CONNECTION_RESET,
    SinkErrorCategory.RESOURCE_EXHAUSTED,
    SinkErrorCategory.TIMEOUT,
})


class DrillSeedError(Exception):
    """Base class for drillseed errors"""


class SinkError(DrillSeedError):
    """An insert failed; carries the category plus the sink's code and message"""

    def __init__(self, category: SinkErrorCategory, message: str, code: Optional[str] = None):
        self.category = SinkErrorCategory(category)
        self.message = message
        self.code = code
        super().__init__(f"[{self.category.value}] {code or '-'}: {message}")

    @property
    def retryable(self) -> bool:
        return self.category in RETRYABLE_CATEGORIES


class RetriesExhausted(DrillSeedError):
    """A bounded retry policy ran out of attempts for one batch"""

    def __init__(self, attempts: int, last_error: SinkError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Gave up after {attempts} attempts: {last_error}")


class StreamConsumedError(DrillSeedError):
    """A single-pass row stream was iterated a second time"""


class BatchOrderError(DrillSeedError):
    """A batch was acknowledged out of offset order"""
