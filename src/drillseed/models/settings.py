"""
Loader settings - every tunable of a drillseed run

Values come from environment variables (DRILL_*, CLICKHOUSE_*) and can be
overridden per run from the command line.
"""
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class LoaderSettings(BaseModel):
    """Validated configuration for one ingestion run"""

    # Volume and batching
    total_rows: int = Field(2_000_000, gt=0, description="Rows to synthesize and insert")
    batch_size: int = Field(25_000, gt=0, description="Rows per insert (one part per batch)")
    parts_per_cycle: int = Field(2, gt=0, description="Batches per reporting cycle")

    # Retry
    retry_delay_seconds: float = Field(10.0, ge=0, description="Fixed wait before retrying a batch")
    max_attempts: Optional[int] = Field(
        None,
        ge=1,
        description="Attempts per batch before giving up; unset retries forever",
    )

    # Throttle
    throttle_every_rows: int = Field(20_000, ge=0, description="Pause after each multiple of this many rows (0 disables)")
    throttle_delay_seconds: float = Field(5.0, ge=0, description="Length of each throttle pause")

    # Synthetic data shape
    lookback_days: int = Field(30, gt=0, description="Timeline window ending now")
    disorder_fraction: float = Field(0.01, ge=0, le=1, description="Share of rows with perturbed timestamps")
    uid_pool_fraction: float = Field(0.07, gt=0, le=1, description="UID pool size as a share of total rows")
    seed: Optional[int] = Field(None, description="Random seed for reproducible runs")
    app_id: str = Field("APP_ID", min_length=1)

    # Target
    table: str = Field("drill_events", pattern=r"^[A-Za-z_][A-Za-z0-9_.]*$")
    clickhouse_host: str = "localhost"
    clickhouse_port: int = Field(9000, gt=0, le=65535)
    clickhouse_user: str = "default"
    clickhouse_password: str = ""
    clickhouse_database: str = "countly_drill"

    @model_validator(mode='after')
    def _batch_fits_total(self) -> 'LoaderSettings':
        if self.batch_size > self.total_rows:
            raise ValueError(
                f"batch_size ({self.batch_size}) cannot exceed total_rows ({self.total_rows})"
            )
        return self

    @property
    def maintenance_command(self) -> str:
        return (
            'clickhouse-client -q "'
            f'OPTIMIZE TABLE {self.table} FINAL '
            "SETTINGS allow_disk_spill_for_merge = 1, max_memory_usage = '20G'\""
        )

    @classmethod
    def from_env(cls, **overrides: Any) -> 'LoaderSettings':
        """Build settings from the environment; non-None overrides win"""
        values: Dict[str, Any] = {}
        for field_name, env_var in ENV_VARS.items():
            raw = os.getenv(env_var)
            if raw is not None and raw != '':
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


ENV_VARS = {
    'total_rows': 'DRILL_TOTAL_ROWS',
    'batch_size': 'DRILL_BATCH_SIZE',
    'parts_per_cycle': 'DRILL_PARTS_PER_CYCLE',
    'retry_delay_seconds': 'DRILL_RETRY_DELAY_SECONDS',
    'max_attempts': 'DRILL_MAX_ATTEMPTS',
    'throttle_every_rows': 'DRILL_THROTTLE_EVERY_ROWS',
    'throttle_delay_seconds': 'DRILL_THROTTLE_DELAY_SECONDS',
    'lookback_days': 'DRILL_LOOKBACK_DAYS',
    'disorder_fraction': 'DRILL_DISORDER_FRACTION',
    'uid_pool_fraction': 'DRILL_UID_POOL_FRACTION',
    'seed': 'DRILL_SEED',
    'app_id': 'DRILL_APP_ID',
    'table': 'DRILL_TABLE',
    'clickhouse_host': 'CLICKHOUSE_HOST',
    'clickhouse_port': 'CLICKHOUSE_PORT',
    'clickhouse_user': 'CLICKHOUSE_USER',
    'clickhouse_password': 'CLICKHOUSE_PASSWORD',
    'clickhouse_database': 'CLICKHOUSE_DATABASE',
}
