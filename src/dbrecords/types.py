"""
Consolidated type handling for statement parameters and result rows.

This module provides:
- TypeConverter: Convert Python values to database-compatible bind values
- SqlType: Column type tags reported by the drivers
- Column: Column metadata from cursor descriptions
- resolve_postgres_type / resolve_sqlite_type: Type codes or values to tags
- Converter registry: Tag -> canonical value conversion
- map_row: Convert one result row into an ordered record
"""
import datetime
import logging
import math
from collections.abc import Callable, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Self

import dateutil.parser
import numpy as np
import pandas as pd
from dbrecords.exceptions import CONVERSION_ERRORS, DataAccessError
from psycopg.postgres import types as pg_types

if TYPE_CHECKING:
    from dbrecords.strategy import DatabaseStrategy

logger = logging.getLogger(__name__)

# Constants for type conversion
NUMPY_FLOAT_TYPES = (np.floating,)
NUMPY_INT_TYPES = (np.integer, np.unsignedinteger)


# Type Converter - Handles Python -> Database value conversion

def _convert_numpy_value(val: Any) -> float | int | bool | datetime.datetime | None:
    """Convert NumPy value to Python type."""
    if val is None:
        return None

    if isinstance(val, np.floating) and np.isnan(val):
        return None

    if isinstance(val, np.datetime64) and np.isnat(val):
        return None

    if isinstance(val, (np.floating, np.integer | np.unsignedinteger, np.bool_)):
        return val.item()

    if isinstance(val, np.datetime64):
        return pd.Timestamp(val).to_pydatetime()

    return val


class TypeConverter:
    """Universal type conversion for database parameters.

    Handles NumPy and Pandas scalars so drivers only ever see plain Python
    values.
    """

    @staticmethod
    def convert_value(value: Any) -> Any:
        """Convert a single value to a database-compatible format."""
        if value is None:
            return None

        if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
            return None

        if isinstance(value, type(pd.NaT)):
            return None

        if isinstance(value, (*NUMPY_FLOAT_TYPES, *NUMPY_INT_TYPES, np.bool_, np.datetime64)):
            return _convert_numpy_value(value)

        if isinstance(value, pd.Timestamp):
            return value.to_pydatetime()

        if value is pd.NA:
            return None

        return value

    @staticmethod
    def convert_params(params: Sequence[Any] | None) -> tuple[Any, ...]:
        """Convert positional parameters for binding, preserving order."""
        if not params:
            return ()
        return tuple(TypeConverter.convert_value(v) for v in params)


# Type tags

class SqlType(Enum):
    """Column type tags dispatched on when mapping rows."""
    ARRAY = 'array'
    BIGINT = 'bigint'
    INTEGER = 'integer'
    SMALLINT = 'smallint'
    TINYINT = 'tinyint'
    BOOLEAN = 'boolean'
    BLOB = 'blob'
    DOUBLE = 'double'
    FLOAT = 'float'
    NVARCHAR = 'nvarchar'
    VARCHAR = 'varchar'
    DATE = 'date'
    TIMESTAMP = 'timestamp'
    OTHER = 'other'


# Type Resolution - Database type codes -> tags

_oid = lambda x: pg_types.get(x).oid
_aoid = lambda x: pg_types.get(x).array_oid

postgres_types: dict[int, SqlType] = {
    _oid('int8'): SqlType.BIGINT,
    _oid('int4'): SqlType.INTEGER,
    _oid('int2'): SqlType.SMALLINT,
    _oid('bool'): SqlType.BOOLEAN,
    _oid('bytea'): SqlType.BLOB,
    _oid('float8'): SqlType.DOUBLE,
    _oid('float4'): SqlType.FLOAT,
    _oid('date'): SqlType.DATE,
    _oid('timestamp'): SqlType.TIMESTAMP,
    _oid('timestamptz'): SqlType.TIMESTAMP,
}

for v in [_oid('varchar'), _oid('text'), _oid('bpchar'), _oid('name')]:
    postgres_types[v] = SqlType.VARCHAR

_postgres_array_oids: set[int] = {t.array_oid for t in pg_types if t.array_oid}
_postgres_array_oids.add(_aoid('int2vector'))

# SQLite attaches a storage class to each value rather than to the column.
# bool precedes int and datetime precedes date because of subclassing.
_sqlite_storage_classes: tuple[tuple[type, SqlType], ...] = (
    (bool, SqlType.BOOLEAN),
    (int, SqlType.BIGINT),
    (float, SqlType.DOUBLE),
    (str, SqlType.VARCHAR),
    (bytes, SqlType.BLOB),
    (datetime.datetime, SqlType.TIMESTAMP),
    (datetime.date, SqlType.DATE),
)


def resolve_postgres_type(type_code: Any) -> SqlType:
    """Resolve a PostgreSQL type OID to a tag.
    """
    if type_code in postgres_types:
        return postgres_types[type_code]
    if type_code in _postgres_array_oids:
        return SqlType.ARRAY
    return SqlType.OTHER


def resolve_sqlite_type(value: Any) -> SqlType:
    """Resolve a SQLite value to a tag by its storage class.

    Values of declared DATE, TIMESTAMP and BOOLEAN columns arrive here
    already converted by sqlite3 and resolve to those tags.
    """
    for cls, tag in _sqlite_storage_classes:
        if isinstance(value, cls):
            return tag
    return SqlType.OTHER


# Column - Metadata from cursor descriptions

class Column:
    """Result column metadata."""

    def __init__(self, name: str, type_code: Any, position: int) -> None:
        self.name = name
        self.type_code = type_code
        self.position = position

    @classmethod
    def from_cursor_description(cls, description_item: Any, position: int) -> Self:
        """Create a Column from cursor description item.

        psycopg yields Column objects with attributes, sqlite3 yields plain
        7-tuples.
        """
        name = getattr(description_item, 'name', None)
        if name is None:
            name = description_item[0]
        type_code = getattr(description_item, 'type_code', None)
        if type_code is None and len(description_item) > 1:
            type_code = description_item[1]
        return cls(name=name, type_code=type_code, position=position)

    def __repr__(self) -> str:
        return (f'Column(name={self.name!r}, type_code={self.type_code!r}, '
                f'position={self.position})')

    @staticmethod
    def get_names(columns: list[Self]) -> list[str]:
        return [col.name for col in columns]


def columns_from_cursor_description(description: Sequence[Any] | None) -> list[Column]:
    """Create Column objects from cursor description, numbered from 1."""
    if description is None:
        return []
    return [Column.from_cursor_description(desc, i)
            for i, desc in enumerate(description, start=1)]


# Converters - tag -> canonical value

_TRUE_TEXT = frozenset({'1', 't', 'true'})
_FALSE_TEXT = frozenset({'0', 'f', 'false'})


def convert_date(value: Any) -> datetime.date:
    """Convert a date, datetime or ISO 8601 string to a date."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, bytes):
        value = value.decode()
    return dateutil.parser.isoparse(str(value)).date()


def convert_datetime(value: Any) -> datetime.datetime:
    """Convert a datetime, date or ISO 8601 string to a datetime."""
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, bytes):
        value = value.decode()
    return dateutil.parser.isoparse(str(value))


def convert_boolean(value: Any) -> bool:
    """Convert a bool, a number or 0/1/true/false text to a bool."""
    if isinstance(value, bytes):
        value = value.decode()
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TEXT:
            return True
        if text in _FALSE_TEXT:
            return False
        raise ValueError(f'invalid boolean literal: {value!r}')
    return bool(value)


def _passthrough(value: Any) -> Any:
    return value


_CONVERTERS: dict[SqlType, Callable[[Any], Any]] = {
    SqlType.ARRAY: list,
    SqlType.BIGINT: int,
    SqlType.INTEGER: int,
    SqlType.SMALLINT: int,
    SqlType.TINYINT: int,
    SqlType.BOOLEAN: convert_boolean,
    SqlType.BLOB: bytes,
    SqlType.DOUBLE: float,
    SqlType.FLOAT: float,
    SqlType.NVARCHAR: str,
    SqlType.VARCHAR: str,
    SqlType.DATE: convert_date,
    SqlType.TIMESTAMP: convert_datetime,
    SqlType.OTHER: _passthrough,
}


def register_converter(tag: SqlType, func: Callable[[Any], Any]) -> None:
    """Register or replace the converter used for a tag."""
    _CONVERTERS[tag] = func
    logger.debug(f'Registered converter for {tag.name}: {getattr(func, "__name__", func)!r}')


def get_converter(tag: SqlType) -> Callable[[Any], Any]:
    """Return the converter for a tag, falling back to the opaque pass-through."""
    return _CONVERTERS.get(tag, _passthrough)


def convert_value(tag: SqlType, value: Any) -> Any:
    """Convert a column value to its canonical form. NULL stays None."""
    if value is None:
        return None
    return get_converter(tag)(value)


def map_row(columns: list[Column], row: Sequence[Any],
            strategy: 'DatabaseStrategy') -> dict[str, Any]:
    """Map one result row to an ordered record keyed by column name.

    Columns are visited in description order; a duplicated column name keeps
    the value of its last occurrence. A value its converter rejects raises
    DataAccessError naming the column.
    """
    record: dict[str, Any] = {}
    for column in columns:
        value = row[column.position - 1]
        tag = strategy.resolve_column_type(column, value)
        try:
            record[column.name] = convert_value(tag, value)
        except CONVERSION_ERRORS as err:
            raise DataAccessError(
                f'Cannot convert column {column.name!r} to {tag.name}: {err}') from err
    return record
