"""
Insert Executor - one batch insert with transparent retry of transient failures

Each attempt opens its own sink connection and its own row stream; neither
survives a failed attempt. Retryable failures are logged and retried after a
fixed delay, fatal ones propagate straight to the caller.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Optional

from tenacity import (
    RetryCallState,
    RetryError,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_never,
    wait_fixed,
)

from drillseed.core.batching import Batch
from drillseed.core.errors import RetriesExhausted, SinkError
from drillseed.core.retry_policy import RetryPolicy
from drillseed.core.row_stream import RowStreamFactory


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class InsertOutcome:
    """Result of a batch insert that was acknowledged by the sink"""

    def __init__(self, batch: Batch, attempts: int, rows_sent: int):
        self.batch = batch
        self.attempts = attempts
        self.rows_sent = rows_sent

    @property
    def retries(self) -> int:
        return self.attempts - 1


class InsertExecutor:
    """Inserts whole batches into table, retrying per RetryPolicy"""

    def __init__(
        self,
        sink_factory: Callable,
        stream_factory: RowStreamFactory,
        table: str,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.sink_factory = sink_factory
        self.stream_factory = stream_factory
        self.table = table
        self.policy = policy or RetryPolicy()
        self.sleep = sleep

    def _attempt(self, batch: Batch) -> int:
        sink = self.sink_factory()
        try:
            stream = self.stream_factory.open(batch)
            print(f"[{_now_iso()}] Starting insert for offset {batch.offset}...")
            sink.insert(self.table, stream)
            print(f"[{_now_iso()}] Finished insert for offset {batch.offset}.")
            return stream.rows_emitted
        finally:
            sink.close()

    def _log_retry(self, batch: Batch, retry_state: RetryCallState):
        error = retry_state.outcome.exception()
        code = getattr(error, 'code', None) or ''
        message = getattr(error, 'message', str(error))
        print(
            f"⚠️  {error.category.value} {code} {message} → retry in {self.policy.delay_seconds:g} s "
            f"(offset {batch.offset}, attempt {retry_state.attempt_number})"
        )

    def insert_batch(self, batch: Batch) -> InsertOutcome:
        """
        Insert one batch, all or nothing from the caller's point of view.

        Returns once the sink acknowledged the batch. Raises SinkError for a
        fatal failure, or RetriesExhausted when a bounded policy gives up.
        """
        policy = self.policy
        retrying = Retrying(
            stop=stop_never if policy.unbounded else stop_after_attempt(policy.max_attempts),
            wait=wait_fixed(policy.delay_seconds),
            retry=retry_if_exception(policy.is_retryable),
            before_sleep=lambda retry_state: self._log_retry(batch, retry_state),
            sleep=self.sleep,
            reraise=False,
        )

        attempts = 0

        def attempt() -> int:
            nonlocal attempts
            attempts += 1
            return self._attempt(batch)

        try:
            rows_sent = retrying(attempt)
        except RetryError as e:
            last_error = e.last_attempt.exception()
            if isinstance(last_error, SinkError):
                raise RetriesExhausted(attempts, last_error) from last_error
            raise

        return InsertOutcome(batch, attempts, rows_sent)
