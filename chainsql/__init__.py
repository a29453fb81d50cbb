"""chainsql: a fluent SQL statement builder with read/write connection routing."""

from .builder import Builder
from .config import DatabaseConfig
from .connection import Router, connect, database, disconnect, new
from .materialize import Value
from .subquery import SubQuery
from .transaction import Transaction
from .errors import (
    BuilderError,
    ColumnNotSpecifiedError,
    DataTypeMismatchError,
    EmptyInListError,
    InvalidArgumentError,
    InvalidBetweenError,
    InvalidConditionError,
    InvalidDestinationError,
    JoinNotFoundError,
    PlaceholderCountError,
    TableNotSpecifiedError,
    TransactionError,
    UnbegunTransactionError,
)
