"""
Statement execution with structured-record results.

Every operation follows the same protocol:

    validate → prepare → bind → execute → post-process → finalize

Finalize closes the statement cursor and then the connection, on success and
on failure alike. The connection passed in belongs to the call: it is closed
before the operation returns and must not be reused by the caller.

Mutating operations (insert, insert_and_get_id, update) run with autocommit
disabled, commit only once the affected row count is known to be positive,
and roll back once on any failure before the error propagates.
"""
import decimal
import logging
import numbers
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from dbrecords.exceptions import DataAccessError, wrap_driver_errors
from dbrecords.options import ExecutorOptions
from dbrecords.sql import validate_query
from dbrecords.statement import Statement
from dbrecords.strategy import DatabaseStrategy, get_db_strategy
from dbrecords.transaction import Transaction
from dbrecords.utils import close_quietly

logger = logging.getLogger(__name__)

__all__ = ['Executor']


def _to_int(value: Any, label: str) -> int:
    """Convert a numeric driver value or numeric text to int.

    Anything else, a uuid for instance, raises DataAccessError naming `label`.
    """
    if isinstance(value, numbers.Real | decimal.Decimal | str | bytes):
        try:
            return int(value)
        except (ValueError, OverflowError) as err:
            raise DataAccessError(f'{label} is not an integer: {value!r}') from err
    raise DataAccessError(f'{label} is not an integer: {type(value).__name__} {value!r}')


@contextmanager
def _finalize(cn: Any) -> Iterator[None]:
    """Close the connection once the enclosed block exits, however it exits.
    """
    try:
        yield
    finally:
        close_quietly(cn, 'connection')


class Executor:
    """Runs single statements against a caller-supplied connection.

    Holds no per-call state, so one instance may serve any number of
    threads, each with its own connections.
    """

    def __init__(self, options: ExecutorOptions | None = None) -> None:
        self.options = options or ExecutorOptions()

    def _statement(self, cn: Any, sql: str, strategy: DatabaseStrategy,
                   generated_keys: bool = False) -> Statement:
        return Statement(cn, sql, strategy, generated_keys=generated_keys,
                         on_query=self.options.on_query)

    def find_one(self, cn: Any, sql: str, *params: Any) -> dict[str, Any]:
        """Fetch the first row of a query as a record.

        Returns an empty dict when the query produces no row.
        """
        sql = validate_query(sql)
        with _finalize(cn), wrap_driver_errors():
            strategy = get_db_strategy(cn)
            with self._statement(cn, sql, strategy) as stmt:
                stmt.bind(params)
                stmt.execute_query()
                record = stmt.next()
        if record is None:
            logger.debug('find_one matched no row')
            return {}
        return record

    def find_all(self, cn: Any, sql: str, *params: Any) -> Any:
        """Fetch every row of a query, in result order.

        With the default data loader the result is a list of records, empty
        when no row matched.
        """
        sql = validate_query(sql)
        with _finalize(cn), wrap_driver_errors():
            strategy = get_db_strategy(cn)
            with self._statement(cn, sql, strategy) as stmt:
                stmt.bind(params)
                columns = stmt.execute_query()
                records = list(stmt)
        logger.debug(f'find_all returned {len(records)} rows')
        return self.options.data_loader(records, columns)

    def insert(self, cn: Any, sql: str, *params: Any) -> bool:
        """Execute an INSERT and commit it.

        Returns True if at least one row was inserted, False (without commit)
        otherwise.
        """
        sql = validate_query(sql)
        with _finalize(cn):
            strategy = get_db_strategy(cn)
            with Transaction(cn, strategy) as tx, wrap_driver_errors(), \
                    self._statement(cn, sql, strategy) as stmt:
                stmt.bind(params)
                if stmt.execute_update() < 1:
                    return False
                tx.commit()
                return True

    def insert_and_get_id(self, cn: Any, sql: str, *params: Any) -> int:
        """Execute an INSERT and return the generated key of the new row.

        Returns 0 without reading keys when no row was inserted, and 0
        without commit when the driver reports no generated key. The commit
        happens only after the key has been read.
        """
        sql = validate_query(sql)
        with _finalize(cn):
            strategy = get_db_strategy(cn)
            with Transaction(cn, strategy) as tx, wrap_driver_errors(), \
                    self._statement(cn, sql, strategy, generated_keys=True) as stmt:
                stmt.bind(params)
                if stmt.execute_update() < 1:
                    return 0
                key = stmt.generated_key()
                if key is None:
                    logger.debug('INSERT produced no generated key')
                    return 0
                key = _to_int(key, f'Generated key column {stmt.generated_key_name()!r}')
                tx.commit()
                return key

    def update(self, cn: Any, sql: str, *params: Any) -> int:
        """Execute an UPDATE (or DELETE) and commit it.

        Returns the affected row count; 0 means nothing matched and nothing
        was committed.
        """
        sql = validate_query(sql)
        with _finalize(cn):
            strategy = get_db_strategy(cn)
            with Transaction(cn, strategy) as tx, wrap_driver_errors(), \
                    self._statement(cn, sql, strategy) as stmt:
                stmt.bind(params)
                affected = stmt.execute_update()
                if affected < 1:
                    return 0
                tx.commit()
                return affected

    def count(self, cn: Any, sql: str, *params: Any) -> int:
        """Return the first column of the first row as an integer.

        A query that yields no row counts as 0, or raises DataAccessError
        when the executor runs with ``strict_count``. NULL counts as 0.
        """
        sql = validate_query(sql)
        with _finalize(cn), wrap_driver_errors():
            strategy = get_db_strategy(cn)
            with self._statement(cn, sql, strategy) as stmt:
                stmt.bind(params)
                stmt.execute_query()
                row = stmt.fetch_row()
        if row is None:
            if self.options.strict_count:
                raise DataAccessError('Count query returned no rows')
            return 0
        value = row[0]
        if value is None:
            return 0
        return _to_int(value, 'Count value')
