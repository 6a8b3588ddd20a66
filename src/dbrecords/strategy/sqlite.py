"""
SQLite-specific strategy implementation.

SQLite is dynamically typed: a column has no fixed type, each value has a
storage class, and sqlite3 reports no type codes in cursor descriptions.
Declared DATE, DATETIME, TIMESTAMP and BOOLEAN columns are converted by the
sqlite3 converters registered below, which sqlite3 applies on connections
opened with ``detect_types=sqlite3.PARSE_DECLTYPES``. `connect()` always
opens connections that way; a caller's own sqlite3 connection needs the same
flag, otherwise such values come back as stored (text or integers). Type
tags are then resolved from each converted value. Generated keys come from
the cursor's ``lastrowid``.
"""
import datetime
import json
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

from dbrecords.sql import standardize_placeholders
from dbrecords.strategy.base import DatabaseStrategy, register_strategy
from dbrecords.types import Column, SqlType, convert_boolean, convert_date
from dbrecords.types import convert_datetime, resolve_sqlite_type

if TYPE_CHECKING:
    from dbrecords.options import DatabaseOptions

logger = logging.getLogger(__name__)


def register_sqlite_types() -> None:
    """Register adapters and converters in sqlite3's process-wide registries.

    Adapters (Python -> SQLite) serialize dict and list as JSON and dates as
    ISO 8601; converters (SQLite -> Python) are keyed by declared type name,
    case-insensitively.
    """
    sqlite3.register_adapter(dict, json.dumps)
    sqlite3.register_adapter(list, json.dumps)
    sqlite3.register_adapter(datetime.date, datetime.date.isoformat)
    sqlite3.register_adapter(datetime.datetime, datetime.datetime.isoformat)
    sqlite3.register_converter('date', convert_date)
    sqlite3.register_converter('datetime', convert_datetime)
    sqlite3.register_converter('timestamp', convert_datetime)
    sqlite3.register_converter('boolean', convert_boolean)
    sqlite3.register_converter('bool', convert_boolean)


register_sqlite_types()


@register_strategy('sqlite')
class SQLiteStrategy(DatabaseStrategy):
    """SQLite-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        """Registry key."""
        return 'sqlite'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """File path URL; `:memory:` gives a private in-memory database."""
        return f'sqlite:///{options.database}'

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Let sqlite3 run the registered converters on declared and aliased types."""
        return {
            'connect_args': {
                'detect_types': sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES
            }
        }

    def configure_connection(self, raw_conn: Any) -> None:
        """Enforce foreign keys, which SQLite leaves off per connection.
        """
        raw_conn.execute('PRAGMA foreign_keys = ON')

    def create_cursor(self, raw_conn: Any) -> Any:
        """Create a plain cursor; sqlite3 rows are tuples or sqlite3.Row,
        both indexable by position.
        """
        return raw_conn.cursor()

    def disable_autocommit(self, raw_conn: Any) -> None:
        """sqlite3 opens a deferred transaction before the next DML statement."""
        raw_conn.isolation_level = 'DEFERRED'

    def resolve_column_type(self, column: Column, value: Any) -> SqlType:
        return resolve_sqlite_type(value)

    def prepare_generated_key_sql(self, sql: str) -> str:
        return sql

    def read_generated_key(self, cursor: Any) -> Any | None:
        """Return the rowid of the inserted row.
        """
        return cursor.lastrowid

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Only the database path is needed."""
        return ['database']

    def standardize_sql(self, sql: str, has_params: bool = False) -> str:
        """Turn any %s placeholders into qmarks."""
        return standardize_placeholders(sql, dialect='sqlite')
