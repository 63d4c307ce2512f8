"""
ClickHouse Sink - bulk inserts of drill events over the native protocol

Wraps one clickhouse_driver Client (one connection). Driver and socket
failures are translated into SinkError with a SinkErrorCategory so callers
never inspect driver exceptions or message text.
"""

import errno
import json
import os
import socket
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from clickhouse_driver import Client
from clickhouse_driver import errors as ch_errors

from drillseed.core.errors import SinkError, SinkErrorCategory
from drillseed.core.synthesizer import NESTED_COLUMNS, RECORD_COLUMNS, Record

# ClickHouse server error codes
TIMEOUT_EXCEEDED = 159
SOCKET_TIMEOUT = 209
MEMORY_LIMIT_EXCEEDED = 241
# Seen alongside 241 when the server sheds insert load
INSERT_MEMORY_PRESSURE = 253

RESOURCE_CODES = frozenset({MEMORY_LIMIT_EXCEEDED, INSERT_MEMORY_PRESSURE})
TIMEOUT_CODES = frozenset({TIMEOUT_EXCEEDED, SOCKET_TIMEOUT})

RESET_MARKERS = ('ECONNRESET', 'EPIPE', 'Connection reset', 'Broken pipe', 'Unexpected EOF')
RESET_ERRNOS = frozenset({errno.ECONNRESET, errno.EPIPE})
MEMORY_MARKERS = ('MEMORY_LIMIT_EXCEEDED',)

# Server-side settings applied to every insert connection
INSERT_SETTINGS = {
    'async_insert': 1,
    'wait_for_async_insert': 1,
    'wait_end_of_query': 1,
    'optimize_on_insert': 1,
    'input_format_parallel_parsing': 1,
}


def _error_code(error: BaseException) -> Optional[int]:
    code = getattr(error, 'code', None)
    try:
        return int(code) if code is not None else None
    except (TypeError, ValueError):
        return None


def _error_message(error: BaseException) -> str:
    message = getattr(error, 'message', None) or str(error) or type(error).__name__
    return str(message).strip()


def _is_reset(error: BaseException) -> bool:
    """True when error, or an exception it was raised from, shows a dropped connection"""
    seen = set()
    while error is not None and id(error) not in seen:
        seen.add(id(error))
        if isinstance(error, (ConnectionResetError, BrokenPipeError, EOFError)):
            return True
        if isinstance(error, OSError) and error.errno in RESET_ERRNOS:
            return True
        if any(marker in _error_message(error) for marker in RESET_MARKERS):
            return True
        error = error.__cause__ or error.__context__
    return False


def classify_error(error: BaseException) -> SinkErrorCategory:
    """
    Map a driver/socket exception onto a SinkErrorCategory (pure function).

    The driver reports every socket failure as NetworkError (code 210), so
    that alone is not a reset: only resets, broken pipes and EOFs are. A
    refused connection or an unresolvable host is FATAL.
    """
    if isinstance(error, SinkError):
        return error.category

    if isinstance(error, (socket.timeout, TimeoutError, ch_errors.SocketTimeoutError)):
        return SinkErrorCategory.TIMEOUT

    code = _error_code(error)
    if code in RESOURCE_CODES:
        return SinkErrorCategory.RESOURCE_EXHAUSTED
    if code in TIMEOUT_CODES:
        return SinkErrorCategory.TIMEOUT

    if any(marker in _error_message(error) for marker in MEMORY_MARKERS):
        return SinkErrorCategory.RESOURCE_EXHAUSTED
    if _is_reset(error):
        return SinkErrorCategory.CONNECTION_RESET

    return SinkErrorCategory.FATAL


def to_sink_error(error: BaseException) -> SinkError:
    if isinstance(error, SinkError):
        return error
    code = _error_code(error)
    if code is None and isinstance(error, OSError) and error.errno is not None:
        code = error.errno
    return SinkError(
        classify_error(error),
        _error_message(error),
        code=str(code) if code is not None else type(error).__name__,
    )


def encode_row(record: Record) -> Tuple[Any, ...]:
    """Record -> tuple in RECORD_COLUMNS order, nested objects as JSON text"""
    return tuple(
        json.dumps(record[column], separators=(',', ':')) if column in NESTED_COLUMNS else record[column]
        for column in RECORD_COLUMNS
    )


class ClickHouseSink:
    """One connection to the drill database, used for a single insert attempt"""

    def __init__(
        self,
        host: str = None,
        port: int = None,
        user: str = None,
        password: str = None,
        database: str = None,
        insert_block_size: int = None,
        settings: Dict[str, Any] = None,
        client: Client = None,
    ):
        if client is None:
            client_settings = dict(INSERT_SETTINGS)
            if insert_block_size:
                client_settings['max_insert_block_size'] = insert_block_size
                client_settings['insert_block_size'] = insert_block_size
            client_settings.update(settings or {})
            client = Client(
                host=host or os.getenv('CLICKHOUSE_HOST', 'localhost'),
                port=int(port or os.getenv('CLICKHOUSE_PORT', '9000')),
                user=user or os.getenv('CLICKHOUSE_USER', 'default'),
                password=password if password is not None else os.getenv('CLICKHOUSE_PASSWORD', ''),
                database=database or os.getenv('CLICKHOUSE_DATABASE', 'countly_drill'),
                settings=client_settings,
            )
        self.client = client

    def insert(self, table: str, rows: Iterable[Record]) -> int:
        """
        Stream rows into table; returns the number of rows the server accepted.

        Raises SinkError on any driver or socket failure. Rows already sent
        before a failure may have landed, so a retried batch can duplicate
        part of itself (at-least-once).
        """
        query = f"INSERT INTO {table} ({', '.join(RECORD_COLUMNS)}) VALUES"
        try:
            # The driver only streams when handed a generator
            inserted = self.client.execute(query, (encode_row(record) for record in rows))
        except (ch_errors.Error, OSError, EOFError) as e:
            raise to_sink_error(e) from e
        return inserted or 0

    def close(self):
        self.client.disconnect()


def clickhouse_sink_factory(settings) -> Callable[[], ClickHouseSink]:
    """Factory that opens a fresh ClickHouseSink per call, from LoaderSettings"""
    def open_sink() -> ClickHouseSink:
        return ClickHouseSink(
            host=settings.clickhouse_host,
            port=settings.clickhouse_port,
            user=settings.clickhouse_user,
            password=settings.clickhouse_password,
            database=settings.clickhouse_database,
            insert_block_size=settings.batch_size,
        )
    return open_sink
