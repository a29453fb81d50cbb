"""Exceptions raised by the statement builder, the router and transactions.

Input errors also subclass the matching builtin (``ValueError``, ``TypeError``,
``LookupError``) so generic handlers keep working. Errors raised by the
database driver are never wrapped.
"""


class BuilderError(Exception):
    """Base class for every error raised by chainsql itself."""


class TableNotSpecifiedError(BuilderError, ValueError):
    """A terminal operation was called before ``table()``."""


class ColumnNotSpecifiedError(BuilderError, ValueError):
    """A condition or a payload names no column."""


class InvalidDestinationError(BuilderError, TypeError):
    """The destination given to ``bind()`` cannot receive rows."""


class DataTypeMismatchError(BuilderError, TypeError):
    """An insert or update payload is not a mapping of columns to values."""


class PlaceholderCountError(BuilderError):
    """The number of ``?`` placeholders does not match the number of arguments."""

    def __init__(self, sql: str, expected: int, given: int):
        super().__init__(f"Statement has {expected} placeholder(s) but {given} argument(s) were given: {sql}")
        self.sql = sql
        self.expected = expected
        self.given = given


class InvalidConditionError(BuilderError, ValueError):
    """A condition cannot be built from the given arguments."""


class InvalidBetweenError(InvalidConditionError):
    """``BETWEEN`` / ``NOT BETWEEN`` was not given exactly two values."""


class EmptyInListError(InvalidConditionError):
    """``IN`` / ``NOT IN`` was given an empty list of values."""


class JoinNotFoundError(BuilderError, LookupError):
    """``join_where()`` names a table that was never joined."""


class InvalidArgumentError(BuilderError, ValueError):
    """An option, an interval or a page number is not acceptable."""


class TransactionError(BuilderError):
    """Transaction misuse (e.g. executing on a finished transaction)."""


class UnbegunTransactionError(TransactionError):
    """``commit()`` or ``rollback()`` was called outside of a transaction."""
