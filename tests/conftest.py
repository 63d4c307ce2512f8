"""Shared fixtures: scripted in-memory sinks and recorded sleeps."""

from typing import Dict, List

import pytest

from drillseed.core.errors import SinkError, SinkErrorCategory
from drillseed.models.settings import LoaderSettings

NOW_MS = 1_700_000_000_000


class ScriptedSink:
    """One fake connection. Raises the scripted error after `partial` rows."""

    def __init__(self, factory: "ScriptedSinkFactory"):
        self.factory = factory
        self.closed = False

    def insert(self, table, rows) -> int:
        offset = rows.offset
        self.factory.calls.append((table, offset))
        pending = self.factory.failures.get(offset, [])
        error = pending.pop(0) if pending else None

        count = 0
        for row in rows:
            if error is not None and count == self.factory.partial:
                raise error
            self.factory.landed.append(row)
            count += 1
        if error is not None:
            raise error
        return count

    def close(self):
        self.closed = True


class ScriptedSinkFactory:
    """Creates a fresh ScriptedSink per attempt; failures keyed by batch offset."""

    def __init__(self, failures: Dict[int, List[BaseException]] = None, partial: int = 0):
        self.failures = failures or {}
        self.partial = partial
        self.sinks: List[ScriptedSink] = []
        self.calls = []
        self.landed = []

    def __call__(self) -> ScriptedSink:
        sink = ScriptedSink(self)
        self.sinks.append(sink)
        return sink


def reset_error() -> SinkError:
    return SinkError(SinkErrorCategory.CONNECTION_RESET, "read ECONNRESET", code="ECONNRESET")


def auth_error() -> SinkError:
    return SinkError(SinkErrorCategory.FATAL, "Authentication failed: password is incorrect", code="516")


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def record_sleep(sleeps):
    return sleeps.append


@pytest.fixture
def small_settings() -> LoaderSettings:
    return LoaderSettings(
        total_rows=100,
        batch_size=25,
        retry_delay_seconds=10.0,
        throttle_every_rows=0,
        throttle_delay_seconds=0,
        seed=42,
    )
