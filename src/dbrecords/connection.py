"""
Connection provider built on SQLAlchemy.

The executor accepts any open sqlite3 or psycopg connection, raw or wrapped
in a SQLAlchemy `Connection`. `connect()` is a convenience for callers that
have no connection source of their own: it opens a single connection through
an unpooled engine (`NullPool`), so closing the connection really closes it.
"""
import atexit
import logging
import threading
from collections.abc import Callable
from typing import Any

import sqlalchemy as sa
from dbrecords.options import DatabaseOptions
from dbrecords.strategy import get_strategy
from sqlalchemy.engine import Engine
from sqlalchemy.pool import NullPool

__all__ = [
    'connect',
    'configure_connection',
    'get_engine_for_options',
    'dispose_all_engines',
]

logger = logging.getLogger(__name__)

_engine_registry: dict[str, Engine] = {}
_engine_registry_lock = threading.RLock()


def get_engine_for_options(options: DatabaseOptions,
                           engine_factory: Callable[..., Engine] = sa.create_engine,
                           **kwargs: Any) -> Engine:
    """Get or create an unpooled SQLAlchemy engine for the given options.
    """
    strategy = get_strategy(options.drivername)
    url = strategy.build_connection_url(options)

    with _engine_registry_lock:
        if url in _engine_registry:
            logger.debug(f'Reusing {options.drivername} engine')
            return _engine_registry[url]

        engine_kwargs: dict[str, Any] = {'echo': False, 'poolclass': NullPool}
        engine_kwargs.update(strategy.get_engine_kwargs(options))
        engine_kwargs.update(kwargs)

        engine = engine_factory(url, **engine_kwargs)

        _engine_registry[url] = engine
        logger.debug(f'Created unpooled {options.drivername} engine')

        return engine


def dispose_all_engines() -> None:
    """Dispose every cached engine; runs at interpreter exit.
    """
    with _engine_registry_lock:
        for engine in _engine_registry.values():
            engine.dispose()
        _engine_registry.clear()
        logger.debug('Disposed all engines')


atexit.register(dispose_all_engines)


def configure_connection(sa_connection: sa.engine.Connection) -> None:
    """Run the dialect's per-connection setup on the driver connection.
    """
    strategy = get_strategy(sa_connection.dialect.name)
    strategy.configure_connection(sa_connection.connection.driver_connection)


def connect(options: DatabaseOptions | dict[str, Any] | None = None,
            **kw: Any) -> sa.engine.Connection:
    """Open a database connection.

    Args:
        options: DatabaseOptions object or a dictionary of options
        **kw: Additional keyword arguments to override options

    Returns
        SQLAlchemy Connection, ready to hand to one executor operation
    """
    if isinstance(options, DatabaseOptions):
        if kw:
            options = DatabaseOptions(**{**vars(options), **kw})
    else:
        options = DatabaseOptions(**{**(options or {}), **kw})

    engine = get_engine_for_options(options)
    sa_connection = engine.connect()
    configure_connection(sa_connection)
    logger.debug(f'Opened {options.drivername} connection to {options.database}')
    return sa_connection
