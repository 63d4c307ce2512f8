"""
drillseed command line - synthesize drill events and bulk-load them into ClickHouse

    drillseed --rows 2000000 --batch-size 25000
    drillseed --rows 1000 --batch-size 100 --dry-run
"""
import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from drillseed.core.errors import DrillSeedError
from drillseed.models.settings import LoaderSettings
from drillseed.repositories.clickhouse_sink import clickhouse_sink_factory
from drillseed.repositories.null_sink import NullSink
from drillseed.services.ingestion_service import IngestionService

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2
EXIT_INTERRUPTED = 130


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='drillseed',
        description='Generate synthetic drill events and bulk-load them into ClickHouse',
    )
    parser.add_argument('--rows', type=int, dest='total_rows', help='Total rows to insert')
    parser.add_argument('--batch-size', type=int, help='Rows per insert')
    parser.add_argument('--seed', type=int, help='Random seed for reproducible data')
    parser.add_argument('--table', help='Target table (default: drill_events)')
    parser.add_argument('--throttle-every', type=int, dest='throttle_every_rows',
                        help='Pause after every N inserted rows (0 disables)')
    parser.add_argument('--throttle-delay', type=float, dest='throttle_delay_seconds',
                        help='Seconds to pause at each throttle point')
    parser.add_argument('--retry-delay', type=float, dest='retry_delay_seconds',
                        help='Seconds to wait before retrying a failed batch')
    parser.add_argument('--max-attempts', type=int,
                        help='Give up on a batch after N attempts (default: retry forever)')
    parser.add_argument('--dry-run', action='store_true',
                        help='Generate and drain every batch without connecting to ClickHouse')
    parser.add_argument('--summary', action='store_true', help='Show the run plan and exit')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = LoaderSettings.from_env(
            total_rows=args.total_rows,
            batch_size=args.batch_size,
            seed=args.seed,
            table=args.table,
            throttle_every_rows=args.throttle_every_rows,
            throttle_delay_seconds=args.throttle_delay_seconds,
            retry_delay_seconds=args.retry_delay_seconds,
            max_attempts=args.max_attempts,
        )
    except ValidationError as e:
        print(f"❌ Invalid configuration:\n{e}")
        return EXIT_CONFIG

    sink_factory = NullSink if args.dry_run else clickhouse_sink_factory(settings)
    service = IngestionService(settings, sink_factory)

    if args.summary:
        print("📊 Run plan:")
        for key, value in service.summary().items():
            print(f"  {key}: {value}")
        return EXIT_OK

    if args.dry_run:
        print("⚠️  --dry-run mode: rows are generated and discarded")
        print()

    try:
        report = service.run()
    except DrillSeedError as e:
        print(f"❌ Ingestion aborted at {service.progress.rows_inserted:,} rows: {e}")
        return EXIT_FATAL
    except KeyboardInterrupt:
        print(f"\n⏹  Interrupted at {service.progress.rows_inserted:,} rows")
        return EXIT_INTERRUPTED

    print("📊 Run report:")
    for key, value in report.to_dict().items():
        print(f"  {key}: {value}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
