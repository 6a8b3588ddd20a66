"""Low-level connection utilities with no internal dependencies.

These utilities work with raw DBAPI connections and SQLAlchemy connections
alike and import nothing from the rest of the package, making them safe to
import without circular dependency concerns.
"""
import logging
from typing import Any

import sqlalchemy as sa

logger = logging.getLogger(__name__)


def get_dialect_name(obj: Any) -> str:
    """Get dialect name for a database connection or engine.
    """
    if isinstance(obj, sa.engine.Connection | sa.engine.Engine):
        return str(obj.dialect.name).lower()

    if hasattr(obj, 'dialect'):
        dialect = obj.dialect
        if isinstance(dialect, str):
            return dialect.lower()
        return str(dialect.name).lower()

    type_name = f'{type(obj).__module__}.{type(obj).__name__}'
    if 'psycopg' in type_name:
        return 'postgresql'
    if 'sqlite3' in type_name:
        return 'sqlite'

    raise AttributeError(f'Cannot determine dialect for {type(obj)}')


def get_raw_connection(connection: Any) -> Any:
    """Extract the raw DBAPI connection from a wrapper."""
    if isinstance(connection, sa.engine.Connection):
        return connection.connection.driver_connection
    raw_conn = connection
    if hasattr(connection, 'driver_connection'):
        raw_conn = connection.driver_connection
    return raw_conn


def close_quietly(resource: Any, label: str) -> None:
    """Close a cursor or connection, logging instead of raising on failure.
    """
    if resource is None:
        return
    try:
        resource.close()
        logger.debug(f'Closed {label}')
    except Exception as e:
        logger.warning(f'Error closing {label}: {e}')
