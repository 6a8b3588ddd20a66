from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import pandas as pd
from dbrecords.strategy import get_available_dialects, get_strategy_class
from dbrecords.strategy import is_supported_dialect
from dbrecords.types import Column

__all__ = [
    'DatabaseOptions',
    'ExecutorOptions',
    'pandas_numpy_data_loader',
    'iterdict_data_loader',
]

QueryObserver = Callable[[str, tuple[Any, ...]], None]


def iterdict_data_loader(data: list[dict[str, Any]], columns: list[Column],
                         **kwargs: Any) -> list[dict[str, Any]]:
    """Minimal data loader returning the mapped records as a list.
    """
    if not data:
        return []
    return list(data)


def pandas_numpy_data_loader(data: list[dict[str, Any]], columns: list[Column],
                             **kwargs: Any) -> pd.DataFrame:
    """Standard pandas DataFrame loader using NumPy.

    Always returns a DataFrame, never None, with columns preserved for empty
    results and ordered as in the cursor description.
    """
    names = list(dict.fromkeys(Column.get_names(columns)))
    if not data:
        return pd.DataFrame(columns=names)
    return pd.DataFrame.from_records(data, columns=names)


@dataclass
class DatabaseOptions:
    """Connection options used by `connect()`.

    supported driver names: `postgresql`, `sqlite`
    """
    drivername: str = 'postgresql'
    hostname: str = None
    username: str = None
    password: str = None
    database: str = None
    port: int = 0
    timeout: int = 0

    def __post_init__(self):
        if not is_supported_dialect(self.drivername):
            available = get_available_dialects()
            raise ValueError(f'drivername must be one of: {available}')
        strategy_cls = get_strategy_class(self.drivername)
        strategy_cls.validate_options(self)


@dataclass
class ExecutorOptions:
    """Behavior switches for an `Executor`.

    - strict_count: raise DataAccessError when a count query returns no row
      instead of counting it as 0
    - data_loader: turns the mapped records of `find_all` into its result
    - on_query: observer called with (sql, params) before each execution
    """
    strict_count: bool = False
    data_loader: Callable[..., Any] | None = None
    on_query: QueryObserver | None = None

    def __post_init__(self):
        if self.data_loader is None:
            self.data_loader = iterdict_data_loader
