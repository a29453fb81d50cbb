import logging
from typing import Any, Sequence

from .connection import ExecutionResult, Router
from .errors import TransactionError

logger = logging.getLogger(__name__)


class Transaction:
    """A transaction pinned to one primary connection.

    The raw connection is checked out of the pool for the transaction's whole
    life, and given back on commit or rollback.
    """

    def __init__(self, router: Router):
        self.router = router
        self._entry = router.primary()
        self._connection = self._entry.checkout()
        self.active = False
        try:
            self._entry.run(self._connection, "BEGIN")
        except Exception:
            self._entry.checkin(self._connection, discard=True)
            raise
        self.active = True
        logger.debug("BEGIN on %r", self._entry)

    def execute(self, sql: str, parameters: Sequence[Any] = ()) -> ExecutionResult:
        """
        Execute a statement within this transaction.

        Args:
            sql: SQL statement with ``?`` placeholders
            parameters: Statement arguments

        Returns:
            ExecutionResult

        Raises:
            TransactionError: If the transaction was already committed or rolled back
        """
        if not self.active:
            raise TransactionError("Transaction is no longer active")
        logger.debug("%r (transaction): %s %r", self._entry, sql, tuple(parameters))
        return self._entry.run(self._connection, sql, parameters)

    def _finish(self, statement: str) -> None:
        if not self.active:
            raise TransactionError("Transaction is no longer active")
        self.active = False
        failed = True
        try:
            self._entry.run(self._connection, statement)
            failed = False
            logger.debug("%s on %r", statement, self._entry)
        finally:
            # a connection left inside an unfinished transaction must not be reused
            self._entry.checkin(self._connection, discard=failed)
            self._connection = None

    def commit(self) -> None:
        self._finish("COMMIT")

    def rollback(self) -> None:
        self._finish("ROLLBACK")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.active:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        return False
