"""
Prepared statement handle wrapping a DB-API 2.0 (PEP-249) cursor.

A Statement owns exactly one driver cursor for its lifetime:

    prepare (open cursor) → bind → execute → fetch / rowcount / key → close
"""
import logging
import time
from collections.abc import Iterator, Sequence
from functools import wraps
from typing import Any, Self

from dbrecords.exceptions import wrap_conversion_errors
from dbrecords.options import QueryObserver
from dbrecords.strategy import DatabaseStrategy, get_db_strategy
from dbrecords.types import Column, TypeConverter, columns_from_cursor_description
from dbrecords.types import map_row
from dbrecords.utils import close_quietly, get_raw_connection

logger = logging.getLogger(__name__)

_FETCH_FAILED = 'Cannot convert fetched row'


def dumpsql(func):
    """Decorator for logging SQL queries and parameters."""
    @wraps(func)
    def wrapper(self, operation: str, *args: Any, **kwargs: Any):
        start = time.time()
        logger.debug(f'SQL:\n{operation}\nargs: {args}')
        try:
            result = func(self, operation, *args, **kwargs)
            if hasattr(self.dbapi_cursor, 'statusmessage'):
                logger.debug(f'Query result: {self.dbapi_cursor.statusmessage}')
            return result
        except Exception:
            logger.error(f'Error with query:\nSQL:\n{operation}\nargs: {args}')
            raise
        finally:
            elapsed = time.time() - start
            logger.debug(f'Query time: {elapsed:.4f}s')
    return wrapper


class Statement:
    """Single-use prepared statement bound to a connection.

    Placeholders are written as ``?``; the dialect strategy rewrites them for
    the driver at execution time. Use as a context manager so the cursor is
    released on every exit path.

    Examples
        with Statement(cn, 'select id, name from users where id = ?') as stmt:
            stmt.bind([1])
            stmt.execute_query()
            record = stmt.next()
    """

    def __init__(self, connection: Any, sql: str,
                 strategy: DatabaseStrategy | None = None,
                 generated_keys: bool = False,
                 on_query: QueryObserver | None = None) -> None:
        self.connection = connection
        self.raw_connection = get_raw_connection(connection)
        self.strategy = strategy or get_db_strategy(connection)
        self.generated_keys = generated_keys
        self.on_query = on_query
        self.sql = sql
        self.params: tuple[Any, ...] = ()
        self.columns: list[Column] = []
        self.dbapi_cursor: Any = None

    def __enter__(self) -> Self:
        self.prepare()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None,
                 exc_tb: Any | None) -> None:
        self.close()

    def __iter__(self) -> Iterator[dict[str, Any]]:
        """Iterate over the remaining rows as records."""
        rows = IterChunk(self.dbapi_cursor)
        while True:
            with wrap_conversion_errors(_FETCH_FAILED):
                row = next(rows, None)
            if row is None:
                return
            yield map_row(self.columns, row, self.strategy)

    def prepare(self) -> None:
        """Open the driver cursor and finalize the SQL for the generated-key
        mode.
        """
        if self.generated_keys:
            self.sql = self.strategy.prepare_generated_key_sql(self.sql)
        self.dbapi_cursor = self.strategy.create_cursor(self.raw_connection)

    def bind(self, params: Sequence[Any] | None) -> None:
        """Bind parameters positionally, in order. Empty params bind nothing.
        """
        self.params = TypeConverter.convert_params(params)

    def execute_query(self) -> list[Column]:
        """Execute a row-returning statement and capture its column metadata.
        """
        self._run()
        self.columns = columns_from_cursor_description(self.dbapi_cursor.description)
        return self.columns

    def execute_update(self) -> int:
        """Execute a data-modifying statement and return the affected row count.
        """
        self._run()
        return self.dbapi_cursor.rowcount

    def _run(self) -> None:
        operation = self.strategy.standardize_sql(self.sql, has_params=bool(self.params))
        if self.on_query is not None:
            self.on_query(operation, self.params)
        self._execute(operation, *self.params)

    @dumpsql
    def _execute(self, operation: str, *args: Any) -> None:
        if args:
            self.dbapi_cursor.execute(operation, args)
        else:
            self.dbapi_cursor.execute(operation)

    def fetch_row(self) -> Sequence[Any] | None:
        """Advance the cursor once and return the raw row, or None when exhausted.

        A value the driver fails to convert while fetching raises
        DataAccessError.
        """
        with wrap_conversion_errors(_FETCH_FAILED):
            return self.dbapi_cursor.fetchone()

    def next(self) -> dict[str, Any] | None:
        """Advance the cursor once and return the mapped record, or None when
        exhausted.
        """
        row = self.fetch_row()
        if row is None:
            return None
        return map_row(self.columns, row, self.strategy)

    def generated_key(self) -> Any | None:
        """Read the first generated key column of the executed INSERT."""
        return self.strategy.read_generated_key(self.dbapi_cursor)

    def generated_key_name(self) -> str:
        """Name of the column the generated key was read from."""
        columns = columns_from_cursor_description(self.dbapi_cursor.description)
        if columns:
            return columns[0].name
        return 'lastrowid'

    def close(self) -> None:
        """Release the driver cursor."""
        close_quietly(self.dbapi_cursor, 'cursor')
        self.dbapi_cursor = None


def IterChunk(cursor: Any, size: int = 5000) -> Iterator[Sequence[Any]]:
    """Iterate through cursor results in chunks."""
    while True:
        chunked = cursor.fetchmany(size)
        if not chunked:
            break
        yield from chunked
