"""
Package exception classes.
"""
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg
import sqlalchemy as sa


class DatabaseError(Exception):
    """Base class for all dbrecords errors.
    """


class ValidationError(DatabaseError):
    """Error in input validation.
    """


class DataAccessError(DatabaseError):
    """Error raised by the driver while preparing, binding, executing,
    fetching, committing or rolling back a statement.

    The driver exception is available as ``__cause__``.
    """


class TransactionIntegrityError(DataAccessError):
    """Rollback failed after an earlier failure.

    The earlier failure is kept as both ``original`` and ``__cause__`` so it
    is never masked by the rollback error.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException) -> None:
        super().__init__(f'Rollback failed ({rollback_error}) after: {original}')
        self.original = original
        self.rollback_error = rollback_error


DRIVER_ERRORS = (
    sqlite3.Error,
    psycopg.Error,
    sa.exc.DBAPIError,
    )


@contextmanager
def wrap_driver_errors() -> Iterator[None]:
    """Re-raise driver exceptions as DataAccessError chained from the original.
    """
    try:
        yield
    except DRIVER_ERRORS as err:
        raise DataAccessError(f'{type(err).__name__}: {err}') from err


# Raised by value converters, ours and the ones registered with sqlite3
CONVERSION_ERRORS = (
    ValueError,
    TypeError,
    OverflowError,
    )


@contextmanager
def wrap_conversion_errors(context: str) -> Iterator[None]:
    """Re-raise a rejected value as DataAccessError chained from the original.
    """
    try:
        yield
    except CONVERSION_ERRORS as err:
        raise DataAccessError(f'{context}: {err}') from err
