"""Tests for the drillseed command line."""

import pytest

from drillseed import main as cli
from drillseed.core.batching import ProgressTracker
from drillseed.core.errors import BatchOrderError, SinkError, SinkErrorCategory
from drillseed.models.settings import ENV_VARS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for env_var in ENV_VARS.values():
        monkeypatch.delenv(env_var, raising=False)


class FailingSink:
    def insert(self, table, rows):
        raise SinkError(SinkErrorCategory.FATAL, "Authentication failed", code="516")

    def close(self):
        pass


class TestMain:
    def test_dry_run_completes(self, capsys) -> None:
        code = cli.main(['--rows', '200', '--batch-size', '50', '--seed', '1',
                         '--throttle-every', '0', '--dry-run'])

        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "✔ 200 / 200 inserted" in out
        assert "OPTIMIZE TABLE drill_events FINAL" in out
        assert "📊 Run report:" in out
        assert "state: complete" in out
        assert "rows_inserted: 200" in out
        assert "batches: 4" in out
        assert "retries: 0" in out

    def test_summary(self, capsys) -> None:
        code = cli.main(['--rows', '1000', '--batch-size', '300', '--summary'])

        out = capsys.readouterr().out
        assert code == cli.EXIT_OK
        assert "batches: 4" in out
        assert "short_final_batch: True" in out

    def test_invalid_configuration(self, capsys) -> None:
        code = cli.main(['--rows', '10', '--batch-size', '50'])

        assert code == cli.EXIT_CONFIG
        assert "Invalid configuration" in capsys.readouterr().out

    def test_fatal_sink_error_exits_non_zero(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(cli, 'clickhouse_sink_factory', lambda settings: FailingSink)

        code = cli.main(['--rows', '100', '--batch-size', '25', '--throttle-every', '0'])

        assert code == cli.EXIT_FATAL
        out = capsys.readouterr().out
        assert "❌ Ingestion aborted at 0 rows" in out
        assert "Authentication failed" in out

    def test_progress_error_ends_with_abort_line(self, monkeypatch, capsys) -> None:
        def out_of_order(self, batch):
            raise BatchOrderError(f"Batch {batch.index} starts at {batch.offset}, expected offset 0")

        monkeypatch.setattr(ProgressTracker, 'record', out_of_order)

        code = cli.main(['--rows', '100', '--batch-size', '25', '--throttle-every', '0', '--dry-run'])

        assert code == cli.EXIT_FATAL
        assert "❌ Ingestion aborted at 0 rows" in capsys.readouterr().out
