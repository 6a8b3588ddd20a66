"""
Transaction handling for data-modifying statements.
"""
import logging
from typing import Any, Self

from dbrecords.exceptions import TransactionIntegrityError, wrap_driver_errors
from dbrecords.strategy import DatabaseStrategy, get_db_strategy
from dbrecords.utils import get_raw_connection

logger = logging.getLogger(__name__)


class Transaction:
    """Context manager running statements with autocommit disabled.

    Nothing is committed implicitly: call `commit()` once the work is known
    to be good. Leaving the block with an exception before the commit rolls
    back exactly once and re-raises. If the rollback itself fails, a
    TransactionIntegrityError chained from the original failure is raised.

    Examples
        with Transaction(cn) as tx:
            cursor.execute('update users set name = ? where id = ?', ('Dee', 1))
            tx.commit()
    """

    def __init__(self, cn: Any, strategy: DatabaseStrategy | None = None) -> None:
        self.connection = cn
        self.raw_connection = get_raw_connection(cn)
        self.strategy = strategy or get_db_strategy(cn)
        self.committed = False

    def __enter__(self) -> Self:
        with wrap_driver_errors():
            self.strategy.disable_autocommit(self.raw_connection)
        logger.debug(f'Started transaction for connection {id(self.connection)}')
        return self

    def __exit__(self, exc_type: type | None, value: BaseException | None,
                 traceback: Any | None) -> None:
        if value is None or self.committed:
            return
        self.rollback(value)

    def commit(self) -> None:
        """Commit the open transaction."""
        with wrap_driver_errors():
            self.raw_connection.commit()
        self.committed = True
        logger.debug(f'Committed transaction for connection {id(self.connection)}')

    def rollback(self, cause: BaseException) -> None:
        """Roll back after `cause`; a failing rollback is raised chained to it.
        """
        logger.warning(f'Rolling back the current transaction: {cause}')
        try:
            self.raw_connection.rollback()
        except Exception as rollback_error:
            logger.error(f'Rollback failed: {rollback_error}')
            raise TransactionIntegrityError(cause, rollback_error) from cause
