"""
PostgreSQL-specific strategy implementation.

Column type tags come from the type OID in the cursor description. psycopg
has no ``lastrowid`` for generated keys, so INSERTs that need one are issued
with ``RETURNING *`` (unless the caller wrote a RETURNING clause) and the key
is the first column of the first returned row.
"""
import logging
from typing import TYPE_CHECKING, Any

from dbrecords.sql import has_returning_clause, standardize_placeholders
from dbrecords.strategy.base import DatabaseStrategy, register_strategy
from dbrecords.types import Column, SqlType, resolve_postgres_type
from psycopg.rows import tuple_row

if TYPE_CHECKING:
    from dbrecords.options import DatabaseOptions

logger = logging.getLogger(__name__)


@register_strategy('postgresql')
class PostgresStrategy(DatabaseStrategy):
    """PostgreSQL-specific operations.
    """

    @property
    def dialect_name(self) -> str:
        return 'postgresql'

    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """psycopg 3 URL, with connect_timeout when a timeout is set."""
        query_parts = []
        if options.timeout:
            query_parts.append(f'connect_timeout={options.timeout}')

        url = (f'postgresql+psycopg://{options.username}:{options.password}'
               f'@{options.hostname}:{options.port}/{options.database}')

        if query_parts:
            url += '?' + '&'.join(query_parts)

        return url

    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """No extra engine arguments."""
        return {}

    def configure_connection(self, raw_conn: Any) -> None:
        """PostgreSQL with psycopg needs no extra configuration.
        """

    def create_cursor(self, raw_conn: Any) -> Any:
        """Create a tuple-row cursor regardless of the connection's row factory.
        """
        return raw_conn.cursor(row_factory=tuple_row)

    def disable_autocommit(self, raw_conn: Any) -> None:
        """psycopg opens a transaction with the next statement."""
        raw_conn.autocommit = False

    def resolve_column_type(self, column: Column, value: Any) -> SqlType:
        return resolve_postgres_type(column.type_code)

    def prepare_generated_key_sql(self, sql: str) -> str:
        """Append RETURNING * unless the statement already returns columns.
        """
        if has_returning_clause(sql):
            return sql
        return f"{sql.rstrip().rstrip(';').rstrip()} RETURNING *"

    def read_generated_key(self, cursor: Any) -> Any | None:
        """Read the first column of the first RETURNING row.
        """
        if cursor.description is None:
            return None
        row = cursor.fetchone()
        if row is None:
            return None
        return row[0]

    @classmethod
    def get_required_options(cls) -> list[str]:
        """Server connections need every network field."""
        return ['hostname', 'username', 'password', 'database', 'port']

    def standardize_sql(self, sql: str, has_params: bool = False) -> str:
        """Convert qmark placeholders (?) to psycopg's %s.

        Lone percent signs, in literals and in operators alike, are doubled
        when parameters are bound, since psycopg then treats % as a format
        marker.
        """
        return standardize_placeholders(sql, dialect='postgresql',
                                        escape_percent=has_params)
