"""
Dialect strategies.

A strategy is looked up by dialect name, or from a connection whose dialect
is detected with `get_dialect_name`. Instances hold no state and are shared.
"""
from functools import cache
from typing import Any

from dbrecords.strategy.base import _STRATEGY_REGISTRY
from dbrecords.strategy.base import DatabaseStrategy as DatabaseStrategy
from dbrecords.strategy.base import register_strategy as register_strategy
from dbrecords.strategy.postgres import PostgresStrategy as PostgresStrategy
from dbrecords.strategy.sqlite import SQLiteStrategy as SQLiteStrategy
from dbrecords.utils import get_dialect_name


def get_strategy_class(dialect: str) -> type[DatabaseStrategy]:
    """Return the registered strategy class, raising ValueError if unknown."""
    try:
        return _STRATEGY_REGISTRY[dialect]
    except KeyError:
        available = get_available_dialects()
        raise ValueError(f'Unsupported dialect: {dialect}. Available: {available}') from None


@cache
def get_strategy(dialect: str) -> DatabaseStrategy:
    """Shared strategy instance for a dialect name."""
    return get_strategy_class(dialect)()


def get_db_strategy(cn: Any) -> DatabaseStrategy:
    """Strategy for the dialect of an open connection."""
    return get_strategy(get_dialect_name(cn))


def get_available_dialects() -> list[str]:
    return list(_STRATEGY_REGISTRY)


def is_supported_dialect(dialect: str) -> bool:
    return dialect in _STRATEGY_REGISTRY
