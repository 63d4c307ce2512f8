"""
Row Stream Adapter - a batch exposed as a pull-based, single-pass row sequence

A stream that was partially drained by a failed insert cannot be rewound;
retries ask for a fresh() stream over the same offset and size instead.
"""

from typing import Iterator, Optional

from drillseed.core.batching import Batch
from drillseed.core.errors import StreamConsumedError
from drillseed.core.synthesizer import Record, RecordSynthesizer


class RowStream:
    """Single-consumer iterator over the records of one batch"""

    def __init__(self, synthesizer: RecordSynthesizer, offset: int, size: int):
        if offset < 0 or size < 0 or offset + size > synthesizer.total_rows:
            raise ValueError(
                f"Stream [{offset}, {offset + size}) outside [0, {synthesizer.total_rows})"
            )
        self.synthesizer = synthesizer
        self.offset = offset
        self.size = size
        self.rows_emitted = 0
        self._records: Optional[Iterator[Record]] = None

    def __iter__(self) -> Iterator[Record]:
        if self._records is not None:
            raise StreamConsumedError(
                f"Row stream at offset {self.offset} was already consumed; use fresh()"
            )
        self._records = self.synthesizer.iter_records(self.offset, self.size)
        return self

    def __next__(self) -> Record:
        if self._records is None:
            iter(self)
        record = next(self._records)
        self.rows_emitted += 1
        return record

    @property
    def started(self) -> bool:
        return self._records is not None

    @property
    def exhausted(self) -> bool:
        return self.rows_emitted == self.size

    def fresh(self) -> 'RowStream':
        """New, unconsumed stream over the same rows"""
        return RowStream(self.synthesizer, self.offset, self.size)


class RowStreamFactory:
    """Opens row streams for batches"""

    def __init__(self, synthesizer: RecordSynthesizer):
        self.synthesizer = synthesizer

    def open(self, batch: Batch) -> RowStream:
        return RowStream(self.synthesizer, batch.offset, batch.size)
