"""
Batch Sequencer - fixed-size partitioning of the row range and progress tracking
"""

import math
from typing import Iterator

from drillseed.core.errors import BatchOrderError


class Batch:
    """Contiguous slice [offset, offset + size) of logical row indices"""

    def __init__(self, index: int, offset: int, size: int):
        self.index = index
        self.offset = offset
        self.size = size

    @property
    def end(self) -> int:
        return self.offset + self.size

    def __eq__(self, other) -> bool:
        if not isinstance(other, Batch):
            return NotImplemented
        return (self.index, self.offset, self.size) == (other.index, other.offset, other.size)

    def __repr__(self) -> str:
        return f"Batch(index={self.index}, offset={self.offset}, size={self.size})"


class BatchPlan:
    """
    Splits total_rows into ceil(total_rows / batch_size) batches.

    When batch_size does not divide total_rows the final batch is short,
    so batch sizes always add up to total_rows.
    """

    def __init__(self, total_rows: int, batch_size: int):
        if total_rows < 1:
            raise ValueError(f"total_rows must be >= 1, got {total_rows}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self.total_rows = total_rows
        self.batch_size = batch_size

    @property
    def batch_count(self) -> int:
        return math.ceil(self.total_rows / self.batch_size)

    @property
    def has_short_tail(self) -> bool:
        return self.total_rows % self.batch_size != 0

    def batches(self) -> Iterator[Batch]:
        for index, offset in enumerate(range(0, self.total_rows, self.batch_size)):
            yield Batch(index, offset, min(self.batch_size, self.total_rows - offset))

    def __len__(self) -> int:
        return self.batch_count


class ProgressTracker:
    """Cumulative rows acknowledged by the sink; each batch counts exactly once"""

    def __init__(self, total_rows: int):
        self.total_rows = total_rows
        self.rows_inserted = 0
        self.batches_completed = 0

    def record(self, batch: Batch) -> int:
        """Advance past an acknowledged batch, returning rows inserted so far"""
        if batch.offset != self.rows_inserted:
            raise BatchOrderError(
                f"Batch {batch.index} starts at {batch.offset}, expected offset {self.rows_inserted}"
            )
        self.rows_inserted += batch.size
        self.batches_completed += 1
        return self.rows_inserted

    @property
    def remaining(self) -> int:
        return max(0, self.total_rows - self.rows_inserted)

    @property
    def is_complete(self) -> bool:
        return self.rows_inserted >= self.total_rows

    @property
    def percent(self) -> float:
        return 100.0 * self.rows_inserted / self.total_rows

    def describe(self) -> str:
        return f"✔ {self.rows_inserted:,} / {self.total_rows:,} inserted"
