"""Tests for LoaderSettings."""

import pytest
from pydantic import ValidationError

from drillseed.models.settings import ENV_VARS, LoaderSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


class TestLoaderSettings:
    def test_defaults(self) -> None:
        settings = LoaderSettings()

        assert settings.total_rows == 2_000_000
        assert settings.batch_size == 25_000
        assert settings.retry_delay_seconds == 10.0
        assert settings.max_attempts is None
        assert settings.throttle_every_rows == 20_000
        assert settings.throttle_delay_seconds == 5.0
        assert settings.disorder_fraction == 0.01
        assert settings.uid_pool_fraction == 0.07
        assert settings.table == 'drill_events'

    def test_from_env(self, monkeypatch) -> None:
        monkeypatch.setenv('DRILL_TOTAL_ROWS', '1000')
        monkeypatch.setenv('DRILL_BATCH_SIZE', '100')
        monkeypatch.setenv('DRILL_SEED', '7')
        monkeypatch.setenv('CLICKHOUSE_HOST', 'ch.internal')

        settings = LoaderSettings.from_env()

        assert settings.total_rows == 1000
        assert settings.batch_size == 100
        assert settings.seed == 7
        assert settings.clickhouse_host == 'ch.internal'

    def test_overrides_beat_env_and_none_is_ignored(self, monkeypatch) -> None:
        monkeypatch.setenv('DRILL_TOTAL_ROWS', '1000')

        settings = LoaderSettings.from_env(total_rows=500, batch_size=50, seed=None)

        assert settings.total_rows == 500
        assert settings.seed is None

    @pytest.mark.parametrize("values", [
        {'total_rows': 0},
        {'batch_size': -1},
        {'total_rows': 10, 'batch_size': 20},
        {'disorder_fraction': 1.5},
        {'uid_pool_fraction': 0},
        {'max_attempts': 0},
        {'table': 'drill_events; DROP TABLE x'},
    ])
    def test_rejects_invalid(self, values) -> None:
        with pytest.raises(ValidationError):
            LoaderSettings(**values)

    def test_maintenance_command(self) -> None:
        command = LoaderSettings(table='events').maintenance_command

        assert command == (
            'clickhouse-client -q "OPTIMIZE TABLE events FINAL SETTINGS '
            "allow_disk_spill_for_merge = 1, max_memory_usage = '20G'\""
        )
