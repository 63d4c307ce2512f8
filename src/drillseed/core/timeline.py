"""
Timeline - logical row index to event timestamp

Rows are spread linearly across a fixed lookback window ending at "now".
A small disorder set of indices gets a bounded random offset so the stream is
near-sorted but not strictly sorted, like real late/early arriving events.
"""

import math
import time
from typing import FrozenSet, Optional

from drillseed.core.random_source import MS_PER_DAY, RandomSource

# Disordered timestamps move by at most this many steps either way
DISORDER_SPREAD_STEPS = 2


class Timeline:
    """Maps index i in [0, total_rows) to an epoch-ms timestamp in [start_ms, now_ms]"""

    def __init__(
        self,
        total_rows: int,
        random_source: RandomSource,
        lookback_days: int = 30,
        disorder_fraction: float = 0.01,
        now_ms: Optional[int] = None,
    ):
        if total_rows < 1:
            raise ValueError(f"total_rows must be >= 1, got {total_rows}")
        if not 0.0 <= disorder_fraction <= 1.0:
            raise ValueError(f"disorder_fraction must be within [0, 1], got {disorder_fraction}")

        self.total_rows = total_rows
        self.random_source = random_source
        self.now_ms = int(now_ms if now_ms is not None else time.time() * 1_000)
        self.range_ms = lookback_days * MS_PER_DAY
        self.start_ms = self.now_ms - self.range_ms
        self.step_ms = self.range_ms // total_rows
        self.disorder = self._draw_disorder_set(disorder_fraction)

    def _draw_disorder_set(self, fraction: float) -> FrozenSet[int]:
        size = math.floor(self.total_rows * fraction)
        if size == 0:
            return frozenset()

        rng = self.random_source.numpy_generator()
        picked = rng.choice(self.total_rows, size=size, replace=False)
        return frozenset(int(i) for i in picked)

    def is_disordered(self, index: int) -> bool:
        return index in self.disorder

    def nominal_timestamp(self, index: int) -> int:
        """Evenly spaced timestamp before any disorder is applied"""
        if not 0 <= index < self.total_rows:
            raise IndexError(f"Row index {index} outside [0, {self.total_rows})")
        return self.start_ms + index * self.step_ms

    def timestamp_for(self, index: int) -> int:
        ts = self.nominal_timestamp(index)
        if index in self.disorder:
            spread = DISORDER_SPREAD_STEPS * self.step_ms
            ts += self.random_source.randint(-spread, spread)
            ts = max(self.start_ms, min(ts, self.now_ms))
        return ts


class UidPool:
    """Bounded pool of synthetic entity ids, reused cyclically by row index"""

    def __init__(self, total_rows: int, fraction: float = 0.07):
        if not 0.0 < fraction <= 1.0:
            raise ValueError(f"uid pool fraction must be within (0, 1], got {fraction}")
        self.size = max(1, math.floor(total_rows * fraction))

    def uid_for(self, index: int) -> int:
        return index % self.size
