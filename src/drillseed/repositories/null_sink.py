"""
Null Sink - drains row streams without a database (dry runs)
"""

from typing import Iterable

from drillseed.core.synthesizer import Record


class NullSink:
    """Consumes every row and discards it"""

    def __init__(self):
        self.rows_drained = 0
        self.closed = False

    def insert(self, table: str, rows: Iterable[Record]) -> int:
        count = 0
        for _ in rows:
            count += 1
        self.rows_drained += count
        return count

    def close(self):
        self.closed = True
