"""
Ingestion Service - drives a full synthetic backfill

INIT -> (INSERT_WITH_RETRY -> ADVANCE_PROGRESS -> [THROTTLE])*
     -> COMPLETE, or ABORTED when a fatal sink error surfaces.

Batches run strictly one at a time in increasing offset order. Rows are
generated lazily while the insert drains the batch stream, so batch
generation happens inside INSERT_WITH_RETRY.
"""
import time
from enum import Enum
from typing import Callable, Dict, Optional

from drillseed.core.batching import BatchPlan, ProgressTracker
from drillseed.core.random_source import RandomSource
from drillseed.core.retry_policy import RetryPolicy
from drillseed.core.row_stream import RowStreamFactory
from drillseed.core.synthesizer import RecordSynthesizer
from drillseed.core.throttle import Throttle
from drillseed.core.timeline import Timeline, UidPool
from drillseed.models.settings import LoaderSettings
from drillseed.services.insert_executor import InsertExecutor


class RunState(str, Enum):
    INIT = "init"
    INSERT_WITH_RETRY = "insert_with_retry"
    ADVANCE_PROGRESS = "advance_progress"
    THROTTLE = "throttle"
    COMPLETE = "complete"
    ABORTED = "aborted"


class IngestionReport:
    """Summary of a run"""

    def __init__(self, total_rows: int, maintenance_command: str):
        self.total_rows = total_rows
        self.maintenance_command = maintenance_command
        self.state = RunState.INIT
        self.rows_inserted = 0
        self.batches = 0
        self.attempts = 0
        self.retries = 0
        self.throttle_pauses = 0
        self.parts_in_cycle = 0
        self.cycles = 0
        self.elapsed_seconds = 0.0
        self.error: Optional[BaseException] = None

    def to_dict(self) -> Dict:
        return {
            'state': self.state.value,
            'total_rows': self.total_rows,
            'rows_inserted': self.rows_inserted,
            'batches': self.batches,
            'attempts': self.attempts,
            'retries': self.retries,
            'throttle_pauses': self.throttle_pauses,
            'parts_in_cycle': self.parts_in_cycle,
            'cycles': self.cycles,
            'elapsed_seconds': round(self.elapsed_seconds, 3),
            'error': str(self.error) if self.error else None,
        }


class IngestionService:
    """Wires synthesizer, batching, executor and throttle together for one run"""

    def __init__(
        self,
        settings: LoaderSettings,
        sink_factory: Callable,
        sleep: Callable[[float], None] = time.sleep,
        random_source: Optional[RandomSource] = None,
        now_ms: Optional[int] = None,
    ):
        self.settings = settings
        self.random_source = random_source or RandomSource(settings.seed)

        self.timeline = Timeline(
            settings.total_rows,
            self.random_source,
            lookback_days=settings.lookback_days,
            disorder_fraction=settings.disorder_fraction,
            now_ms=now_ms,
        )
        self.uid_pool = UidPool(settings.total_rows, settings.uid_pool_fraction)
        self.synthesizer = RecordSynthesizer(
            self.timeline, self.uid_pool, self.random_source, app_id=settings.app_id
        )
        self.plan = BatchPlan(settings.total_rows, settings.batch_size)
        self.progress = ProgressTracker(settings.total_rows)
        self.executor = InsertExecutor(
            sink_factory=sink_factory,
            stream_factory=RowStreamFactory(self.synthesizer),
            table=settings.table,
            policy=RetryPolicy(settings.retry_delay_seconds, settings.max_attempts),
            sleep=sleep,
        )
        self.throttle = Throttle(
            settings.throttle_every_rows, settings.throttle_delay_seconds, sleep=sleep
        )
        self.report = IngestionReport(settings.total_rows, settings.maintenance_command)

    @property
    def state(self) -> RunState:
        return self.report.state

    def summary(self) -> Dict:
        """Plan of the run, without touching the sink"""
        return {
            'total_rows': self.settings.total_rows,
            'batch_size': self.settings.batch_size,
            'batches': self.plan.batch_count,
            'short_final_batch': self.plan.has_short_tail,
            'uid_pool': self.uid_pool.size,
            'disordered_rows': len(self.timeline.disorder),
            'step_ms': self.timeline.step_ms,
            'start_ms': self.timeline.start_ms,
            'now_ms': self.timeline.now_ms,
            'table': self.settings.table,
        }

    def run(self) -> IngestionReport:
        """
        Insert every batch in order.

        Returns the report on COMPLETE. A fatal sink error marks the run
        ABORTED and is re-raised; no later batch is attempted.
        """
        report = self.report
        started = time.monotonic()
        total = self.settings.total_rows

        print(f"🌱 Seeding {total:,} rows into {self.settings.table} "
              f"in {self.plan.batch_count} batches of {self.settings.batch_size:,}")

        try:
            for batch in self.plan.batches():
                report.state = RunState.INSERT_WITH_RETRY
                outcome = self.executor.insert_batch(batch)

                report.state = RunState.ADVANCE_PROGRESS
                inserted = self.progress.record(batch)
                report.rows_inserted = inserted
                report.batches = self.progress.batches_completed
                report.attempts += outcome.attempts
                report.retries += outcome.retries
                report.parts_in_cycle += 1
                if report.parts_in_cycle == self.settings.parts_per_cycle:
                    report.parts_in_cycle = 0
                    report.cycles += 1
                print(self.progress.describe())

                if self.throttle.should_pause(inserted, total):
                    report.state = RunState.THROTTLE
                    self.throttle.on_progress(inserted, total)
                    report.throttle_pauses = self.throttle.pauses
        except Exception as e:
            report.state = RunState.ABORTED
            report.error = e
            report.elapsed_seconds = time.monotonic() - started
            raise

        report.state = RunState.COMPLETE
        report.elapsed_seconds = time.monotonic() - started

        print()
        print("🎉 Ingestion complete.")
        print()
        print("To merge the parts later, run:")
        print(report.maintenance_command)
        print()
        return report
