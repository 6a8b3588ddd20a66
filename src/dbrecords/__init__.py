"""
Single-statement database access returning structured records.

Every operation takes an open connection, a SQL string with positional ``?``
placeholders and the bind values, and closes the connection when done:

- find_one(cn, sql, *args) - First row as a dict, {} when no row
- find_all(cn, sql, *args) - All rows as a list of dicts
- insert(cn, sql, *args) - True when a row was inserted and committed
- insert_and_get_id(cn, sql, *args) - Generated key of the inserted row, 0 if none
- update(cn, sql, *args) - Affected row count, committed when positive
- count(cn, sql, *args) - First column of the first row as an int

The module functions delegate to a default `Executor`; build an Executor
with `ExecutorOptions` for other behavior.
"""
__version__ = '0.1.0'

from typing import Any

from dbrecords.connection import connect
from dbrecords.exceptions import DatabaseError, DataAccessError
from dbrecords.exceptions import TransactionIntegrityError, ValidationError
from dbrecords.executor import Executor
from dbrecords.options import DatabaseOptions, ExecutorOptions
from dbrecords.options import iterdict_data_loader, pandas_numpy_data_loader
from dbrecords.transaction import Transaction as transaction
from dbrecords.types import Column, SqlType, get_converter, register_converter

_executor = Executor()


def find_one(cn: Any, sql: str, *args: Any) -> dict[str, Any]:
    """Fetch a single record; an empty dict means no row matched.
    """
    return _executor.find_one(cn, sql, *args)


def find_all(cn: Any, sql: str, *args: Any) -> list[dict[str, Any]]:
    """Fetch all records in result order.
    """
    return _executor.find_all(cn, sql, *args)


def insert(cn: Any, sql: str, *args: Any) -> bool:
    """Insert and commit; False when no row was inserted.
    """
    return _executor.insert(cn, sql, *args)


def insert_and_get_id(cn: Any, sql: str, *args: Any) -> int:
    """Insert, commit and return the generated key; 0 when no row was inserted.
    """
    return _executor.insert_and_get_id(cn, sql, *args)


def update(cn: Any, sql: str, *args: Any) -> int:
    """Update and commit; returns the affected row count.
    """
    return _executor.update(cn, sql, *args)


def count(cn: Any, sql: str, *args: Any) -> int:
    """Return the integer in the first column of the first row.
    """
    return _executor.count(cn, sql, *args)


__all__ = [
    'connect',
    'transaction',
    'Executor',
    'ExecutorOptions',
    'DatabaseOptions',
    'iterdict_data_loader',
    'pandas_numpy_data_loader',
    'find_one',
    'find_all',
    'insert',
    'insert_and_get_id',
    'update',
    'count',
    'Column',
    'SqlType',
    'register_converter',
    'get_converter',
    'DatabaseError',
    'DataAccessError',
    'TransactionIntegrityError',
    'ValidationError',
]
