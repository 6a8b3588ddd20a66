"""
Strategy interface for the driver-specific parts of statement execution.

Statement, Transaction and the connection provider work against this
interface only. A dialect supplies:

- connection: engine URL and kwargs, per-connection setup
- cursors: positional-row cursor creation, paramstyle rewriting
- transactions: switching autocommit off
- results: column type tags and generated-key retrieval
"""
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dbrecords.options import DatabaseOptions
    from dbrecords.types import Column, SqlType

# Dialect name -> strategy class; lives here so concrete strategies can
# register themselves without importing the package
_STRATEGY_REGISTRY: dict[str, type['DatabaseStrategy']] = {}


def register_strategy(dialect: str):
    """Class decorator adding a strategy to the registry under `dialect`.

    Usage:
        @register_strategy('sqlite')
        class SQLiteStrategy(DatabaseStrategy):
            ...
    """
    def decorator(cls: type['DatabaseStrategy']) -> type['DatabaseStrategy']:
        _STRATEGY_REGISTRY[dialect] = cls
        return cls
    return decorator


class DatabaseStrategy(ABC):
    """Driver-specific behavior for one SQL dialect.
    """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Registry key of this dialect."""

    @abstractmethod
    def build_connection_url(self, options: 'DatabaseOptions') -> str:
        """SQLAlchemy URL for `connect()`."""

    @abstractmethod
    def get_engine_kwargs(self, options: 'DatabaseOptions') -> dict[str, Any]:
        """Extra `create_engine` keyword arguments."""

    @abstractmethod
    def configure_connection(self, raw_conn: Any) -> None:
        """Prepare a connection opened by `connect()`.

        Args:
            raw_conn: driver connection, already unwrapped from SQLAlchemy
        """

    @abstractmethod
    def create_cursor(self, raw_conn: Any) -> Any:
        """Open a cursor whose rows are indexable by column position."""

    @abstractmethod
    def disable_autocommit(self, raw_conn: Any) -> None:
        """Make subsequent statements part of one transaction until commit
        or rollback.
        """

    @abstractmethod
    def resolve_column_type(self, column: 'Column', value: Any) -> 'SqlType':
        """Pick the type tag used to convert `value` of `column`.

        Args:
            column: metadata from the cursor description
            value: the column's value in the row being mapped
        """

    @abstractmethod
    def prepare_generated_key_sql(self, sql: str) -> str:
        """Rewrite an INSERT so its generated key can be read afterwards."""

    @abstractmethod
    def read_generated_key(self, cursor: Any) -> Any | None:
        """First generated key column of the executed INSERT, or None when
        the driver reports none.
        """

    @classmethod
    @abstractmethod
    def get_required_options(cls) -> list[str]:
        """Names of `DatabaseOptions` fields this dialect cannot do without."""

    @classmethod
    def validate_options(cls, options: 'DatabaseOptions') -> None:
        """Raise ValueError naming the first required field left unset."""
        for field in cls.get_required_options():
            if not getattr(options, field):
                raise ValueError(f'field {field} cannot be None or 0')

    def standardize_sql(self, sql: str, has_params: bool = False) -> str:
        """Rewrite ``?`` placeholders for the driver; qmark drivers need
        nothing.
        """
        return sql
