"""Fluent SQL statement builder.

A Builder accumulates clauses (tables, conditions, joins, ordering, grouping,
limits, options) through chainable methods that mutate it and return it, then
renders them into one statement with ``?`` placeholders when a terminal
operation (``get``, ``insert``, ``update``, ``delete``, ...) is called.

Every terminal operation:

1. clears the last-result metadata (``last_query``, ``count``, ...);
2. renders the statement and checks its placeholder count;
3. records ``last_query`` / ``last_params``;
4. runs it through the executor (a Router or a Transaction), if any;
5. loads the rows into the destination given to ``bind()``;
6. clears the clause state, even when one of the steps above failed.

A builder without an executor only renders ("render only" mode), which is
how sub-queries and tests use it.
"""

from __future__ import annotations

import math
import time
from collections.abc import Mapping
from contextlib import contextmanager
from typing import Any, Optional

from pydantic import BaseModel, Field, PrivateAttr

from .errors import (
    BuilderError,
    ColumnNotSpecifiedError,
    DataTypeMismatchError,
    InvalidArgumentError,
    JoinNotFoundError,
    TableNotSpecifiedError,
    TransactionError,
    UnbegunTransactionError,
)
from .expressions import (
    ConditionExpression,
    Expression,
    FunctionExpression,
    JoinExpression,
    OrderExpression,
    Timestamp,
    build_condition,
    now,
    render_conditions,
    to_expression,
)
from .materialize import Sink, Value, select_sink
from .placeholders import ArgumentList
from .trace import Trace, capture_stacks

BEFORE_OPTIONS = (
    "ALL",
    "DISTINCT",
    "DISTINCTROW",
    "HIGH_PRIORITY",
    "STRAIGHT_JOIN",
    "SQL_SMALL_RESULT",
    "SQL_BIG_RESULT",
    "SQL_BUFFER_RESULT",
    "SQL_CACHE",
    "SQL_NO_CACHE",
    "SQL_CALC_FOUND_ROWS",
    "LOW_PRIORITY",
    "QUICK",
    "IGNORE",
    "DELAYED",
)
"""Options rendered right after the statement keyword."""

AFTER_OPTIONS = ("FOR UPDATE", "LOCK IN SHARE MODE")
"""Options rendered at the end of a SELECT."""

COUNTING_OPTIONS = ("DISTINCT", "DISTINCTROW", "STRAIGHT_JOIN")
"""Options that change which rows a derived table holds; MySQL rejects the others in sub-queries."""

LOCK_METHODS = ("READ", "WRITE", "READ LOCAL", "LOW_PRIORITY WRITE")
JOIN_DIRECTIONS = ("LEFT", "RIGHT", "INNER", "NATURAL", "CROSS", "LEFT OUTER", "RIGHT OUTER")

CLAUSE_FIELDS = (
    "tables",
    "where_conditions",
    "having_conditions",
    "joins",
    "orders",
    "group_by_columns",
    "limit_value",
    "query_options",
    "on_duplicate_columns",
    "last_insert_id_column",
    "total_count_requested",
)
RESULT_FIELDS = (
    "last_query",
    "last_params",
    "count",
    "last_insert_id",
    "last_insert_ids",
    "total_count",
    "total_page",
)
SETTING_FIELDS = ("page_limit", "lock_method", "tracing")


def _normalize_keyword(value: str) -> str:
    return " ".join(value.upper().split())


def _is_sub_query(value: Any) -> bool:
    from .subquery import SubQuery
    return isinstance(value, SubQuery)


class Builder(BaseModel):
    """Mutable, chainable SQL statement builder bound to an optional executor."""

    model_config = {"arbitrary_types_allowed": True}

    # clause state, cleared after every terminal operation

    tables: list[Any] = Field(default_factory=list)
    """Table names (or aliased sub-queries, for SELECT)."""
    where_conditions: list[ConditionExpression] = Field(default_factory=list)
    having_conditions: list[ConditionExpression] = Field(default_factory=list)
    joins: dict[str, JoinExpression] = Field(default_factory=dict)
    """Joins keyed by table name or sub-query alias, in the order they were added."""
    orders: list[OrderExpression] = Field(default_factory=list)
    group_by_columns: list[str] = Field(default_factory=list)
    limit_value: tuple[int, ...] = ()
    """``(count,)`` or ``(offset, count)`` (stored to avoid shadowing the limit() method)."""
    query_options: list[str] = Field(default_factory=list)
    on_duplicate_columns: list[str] = Field(default_factory=list)
    last_insert_id_column: Optional[str] = None
    total_count_requested: bool = False

    # settings, kept across statements

    page_limit: int = 20
    """Rows per page for ``paginate()``."""
    lock_method: str = "WRITE"
    tracing: bool = False

    # last result, kept until the next terminal operation starts

    last_query: str = ""
    last_params: tuple[Any, ...] = ()
    count: int = 0
    """Rows loaded (reads) or affected (writes) by the last statement."""
    last_insert_id: Optional[int] = None
    last_insert_ids: list[int] = Field(default_factory=list)
    total_count: int = 0
    total_page: int = 0
    traces: list[Trace] = Field(default_factory=list)

    _executor: Any = PrivateAttr(default=None)
    _sink: Optional[Sink] = PrivateAttr(default=None)

    def __init__(self, executor: Any = None, **data: Any):
        super().__init__(**data)
        self._executor = executor

    # --- state management ---

    def _reset(self, names: tuple[str, ...]) -> None:
        fields = type(self).model_fields
        for name in names:
            setattr(self, name, fields[name].get_default(call_default_factory=True))

    def clone(self) -> Builder:
        """Return a builder with a copy of this one's clause state and settings.

        The copy shares the executor but not the bound destination nor the
        last-result metadata; mutating one never affects the other.
        """
        copy = type(self)(executor=self._executor, **self.model_dump(include=set(SETTING_FIELDS)))
        copy.tables = list(self.tables)
        copy.where_conditions = list(self.where_conditions)
        copy.having_conditions = list(self.having_conditions)
        copy.joins = {key: join.copy_with_conditions() for key, join in self.joins.items()}
        copy.orders = list(self.orders)
        copy.group_by_columns = list(self.group_by_columns)
        copy.limit_value = self.limit_value
        copy.query_options = list(self.query_options)
        copy.on_duplicate_columns = list(self.on_duplicate_columns)
        copy.last_insert_id_column = self.last_insert_id_column
        copy.total_count_requested = self.total_count_requested
        return copy

    @property
    def query(self) -> str:
        """SQL of the last statement."""
        return self.last_query

    @property
    def params(self) -> tuple[Any, ...]:
        """Arguments of the last statement, in placeholder order."""
        return self.last_params

    @property
    def timestamp(self) -> Timestamp:
        """Helpers for conditions on Unix-timestamp columns, e.g. ``where("CreatedAt", db.timestamp.is_year(2017))``."""
        return Timestamp()

    # --- clauses ---

    def table(self, *names: Any) -> Builder:
        """Set the table(s) the next statement targets."""
        self.tables = list(names)
        return self

    def where(self, *args: Any) -> Builder:
        """Add an AND-connected WHERE condition (see ``expressions.build_condition`` for the forms)."""
        self.where_conditions.append(build_condition("AND", *args))
        return self

    def or_where(self, *args: Any) -> Builder:
        self.where_conditions.append(build_condition("OR", *args))
        return self

    def having(self, *args: Any) -> Builder:
        self.having_conditions.append(build_condition("AND", *args))
        return self

    def or_having(self, *args: Any) -> Builder:
        self.having_conditions.append(build_condition("OR", *args))
        return self

    def join(self, target: Any, condition: str = "", direction: str = "INNER") -> Builder:
        """Join a table, or an aliased sub-query, on a raw condition.

        Args:
            target: Table name, or a sub-query created with ``sub_query(alias)``.
            condition: Raw ``ON`` condition; may be empty (e.g. for NATURAL or CROSS joins).
            direction: LEFT, RIGHT, INNER, NATURAL, CROSS, LEFT OUTER or RIGHT OUTER.

        Raises:
            InvalidArgumentError: For an unknown direction or a sub-query without alias.
            TableNotSpecifiedError: If the target is empty.
        """
        direction = _normalize_keyword(direction) if isinstance(direction, str) else ""
        if direction not in JOIN_DIRECTIONS:
            raise InvalidArgumentError(f"Invalid join direction `{direction}`")
        if _is_sub_query(target):
            if not target.alias:
                raise InvalidArgumentError("A joined sub-query needs an alias, e.g. sub_query('Users')")
        elif not isinstance(target, str) or not target.strip():
            raise TableNotSpecifiedError(f"Invalid join target: {target!r}")
        join = JoinExpression(direction=direction, target=target, condition=condition or "")
        self.joins[join.key] = join
        return self

    def left_join(self, target: Any, condition: str = "") -> Builder:
        return self.join(target, condition, "LEFT")

    def right_join(self, target: Any, condition: str = "") -> Builder:
        return self.join(target, condition, "RIGHT")

    def inner_join(self, target: Any, condition: str = "") -> Builder:
        return self.join(target, condition, "INNER")

    def natural_join(self, target: Any, condition: str = "") -> Builder:
        return self.join(target, condition, "NATURAL")

    def cross_join(self, target: Any, condition: str = "") -> Builder:
        return self.join(target, condition, "CROSS")

    def _find_join(self, target: Any) -> JoinExpression:
        key = target.alias if _is_sub_query(target) else target
        try:
            return self.joins[key]
        except (KeyError, TypeError) as error:
            raise JoinNotFoundError(f"No join on `{key}`; call join() before join_where()") from error

    def join_where(self, target: Any, *args: Any) -> Builder:
        """Add an AND-connected condition to the ON clause of an existing join.

        Raises:
            JoinNotFoundError: If nothing was joined under that table name or alias.
        """
        self._find_join(target).conditions.append(build_condition("AND", *args))
        return self

    def join_or_where(self, target: Any, *args: Any) -> Builder:
        self._find_join(target).conditions.append(build_condition("OR", *args))
        return self

    def order_by(self, column: str, direction: Optional[str] = None, *field_values: Any) -> Builder:
        """Order by a column (or raw expression such as ``RAND()``).

        With ``field_values``, rows are ordered by their column's position in that
        list, rendered as ``FIELD(column, ?, ...)``.
        """
        if not isinstance(column, str) or not column.strip():
            raise ColumnNotSpecifiedError(f"Invalid column for ORDER BY: {column!r}")
        if direction is not None:
            direction = _normalize_keyword(direction)
            if direction not in ("ASC", "DESC"):
                raise InvalidArgumentError(f"Invalid order direction `{direction}`")
        self.orders.append(OrderExpression(column=column, direction=direction, field_values=field_values))
        return self

    def group_by(self, *columns: str) -> Builder:
        self.group_by_columns.extend(columns)
        return self

    def limit(self, *values: int) -> Builder:
        """``limit(count)`` or ``limit(offset, count)``."""
        if len(values) not in (1, 2) or any(
            not isinstance(value, int) or isinstance(value, bool) or value < 0 for value in values
        ):
            raise InvalidArgumentError(f"limit() takes a count, or an offset and a count, got {values!r}")
        self.limit_value = tuple(values)
        return self

    def on_duplicate(self, columns: list[str], last_insert_id: Optional[str] = None) -> Builder:
        """Turn the next ``insert()`` into an upsert.

        Args:
            columns: Columns overwritten with the inserted values on conflict.
            last_insert_id: Column whose value becomes the statement's insert id on conflict.
        """
        self.on_duplicate_columns = list(columns)
        self.last_insert_id_column = last_insert_id
        return self

    def set_query_option(self, *options: str) -> Builder:
        """Add statement options such as ``DISTINCT``, ``SQL_NO_CACHE`` or ``FOR UPDATE``."""
        for option in options:
            normalized = _normalize_keyword(option) if isinstance(option, str) else option
            if normalized not in BEFORE_OPTIONS and normalized not in AFTER_OPTIONS:
                raise InvalidArgumentError(f"Unknown query option `{option}`")
            if normalized not in self.query_options:
                self.query_options.append(normalized)
        return self

    def with_total_count(self) -> Builder:
        """Also count the rows the next ``get()`` would return without ORDER BY and LIMIT."""
        self.total_count_requested = True
        return self

    def set_lock_method(self, method: str) -> Builder:
        method = _normalize_keyword(method) if isinstance(method, str) else method
        if method not in LOCK_METHODS:
            raise InvalidArgumentError(f"Invalid lock method `{method}`")
        self.lock_method = method
        return self

    def set_trace(self, enabled: bool = True) -> Builder:
        self.tracing = enabled
        return self

    def bind(self, destination: Any, model: Any = None) -> Builder:
        """Set where the rows of the next read go (see ``chainsql.materialize``).

        Args:
            destination: A ``Value``, a pydantic model instance, a list or a dict.
            model: Element type when ``destination`` is a list.

        Raises:
            InvalidDestinationError: If ``destination`` cannot receive rows.
        """
        self._sink = select_sink(destination, model)
        return self

    # --- values ---

    def sub_query(self, alias: Optional[str] = None):
        """Return a new, connection-less sub-query, usable as a condition, join or insert value."""
        from .subquery import SubQuery
        return SubQuery(builder=Builder(page_limit=self.page_limit), alias=alias)

    def func(self, sql: str, *args: Any) -> FunctionExpression:
        """Raw SQL value with its own ``?`` placeholders, e.g. ``func("SHA1(?)", "secret")``."""
        return FunctionExpression(template=sql, arguments=args)

    def now(self, *intervals: str) -> FunctionExpression:
        """``NOW()`` shifted by intervals such as ``"+1Y"`` or ``"-2h"``."""
        return now(*intervals)

    # --- rendering ---

    def _require_table(self, writable: bool = False) -> None:
        if not self.tables:
            raise TableNotSpecifiedError("No table specified; call table() first")
        for table in self.tables:
            if isinstance(table, str) and table.strip():
                continue
            if not writable and _is_sub_query(table) and table.alias:
                continue
            raise TableNotSpecifiedError(f"Invalid table: {table!r}")

    def _before_options(self) -> list[str]:
        return [option for option in self.query_options if option in BEFORE_OPTIONS]

    def _after_options(self) -> list[str]:
        return [option for option in self.query_options if option in AFTER_OPTIONS]

    @staticmethod
    def _render_table(table: Any, args: ArgumentList) -> str:
        if isinstance(table, str):
            return table
        return f"{args.bind(table)} AS {table.alias}"

    @staticmethod
    def _render_column(column: Any, args: ArgumentList) -> str:
        if isinstance(column, Expression):
            return args.bind(column)
        if not isinstance(column, str) or not column.strip():
            raise ColumnNotSpecifiedError(f"Invalid column: {column!r}")
        return column

    def _render_joins(self, args: ArgumentList) -> list[str]:
        return [args.bind(join) for join in self.joins.values()]

    def _render_where(self, args: ArgumentList) -> list[str]:
        if not self.where_conditions:
            return []
        return ["WHERE", render_conditions(self.where_conditions, args.bind)]

    def _render_order_and_limit(self, args: ArgumentList) -> list[str]:
        parts = []
        if self.orders:
            parts += ["ORDER BY", ", ".join([args.bind(order) for order in self.orders])]
        if self.limit_value:
            parts += ["LIMIT", ", ".join(str(value) for value in self.limit_value)]
        return parts

    def render_select(self, args: ArgumentList, columns: tuple = (), counting: bool = False) -> str:
        """Render the pending SELECT.

        With ``counting``, render the derived table of the total-count query
        instead: no ORDER BY, LIMIT nor locking options, only the options in
        ``COUNTING_OPTIONS``, and ``1`` as the column list unless rows are
        DISTINCT (joined tables sharing a column name cannot be selected with
        ``*`` in a derived table).
        """
        self._require_table()
        options = self._before_options()
        if counting:
            options = [option for option in options if option in COUNTING_OPTIONS]
            if not {"DISTINCT", "DISTINCTROW"} & set(options):
                columns = ("1",)
        parts = ["SELECT", *options]
        parts.append(", ".join([self._render_column(column, args) for column in columns]) if columns else "*")
        parts += ["FROM", ", ".join([self._render_table(table, args) for table in self.tables])]
        parts += self._render_joins(args)
        parts += self._render_where(args)
        if self.group_by_columns:
            parts += ["GROUP BY", ", ".join(self.group_by_columns)]
        if self.having_conditions:
            parts += ["HAVING", render_conditions(self.having_conditions, args.bind)]
        if not counting:
            parts += self._render_order_and_limit(args)
            parts += self._after_options()
        return " ".join(parts)

    @staticmethod
    def _check_payload(data: Any) -> Mapping:
        if not isinstance(data, Mapping):
            raise DataTypeMismatchError(f"Expected a mapping of columns to values, got {type(data).__name__}")
        if not data:
            raise ColumnNotSpecifiedError("No column to write")
        for column in data:
            if not isinstance(column, str) or not column.strip():
                raise ColumnNotSpecifiedError(f"Invalid column: {column!r}")
        return data

    def _render_on_duplicate(self) -> str:
        assignments = []
        if self.last_insert_id_column:
            column = self.last_insert_id_column
            assignments.append(f"{column} = LAST_INSERT_ID({column})")
        assignments += [f"{column} = VALUES({column})" for column in self.on_duplicate_columns]
        return ", ".join(assignments)

    def render_insert(self, keyword: str, rows: list, args: ArgumentList) -> str:
        """Render ``INSERT``/``REPLACE``; columns follow the first row's key order."""
        self._require_table(writable=True)
        rows = [self._check_payload(row) for row in rows]
        columns = list(rows[0])
        tuples = []
        for row in rows:
            if set(row) != set(columns):
                raise DataTypeMismatchError("Every row of a multi-row insert must have the same columns")
            tuples.append("(" + ", ".join([args.bind(to_expression(row[column])) for column in columns]) + ")")
        parts = [keyword, *self._before_options(), "INTO", self.tables[0]]
        parts += ["(" + ", ".join(columns) + ")", "VALUES", ", ".join(tuples)]
        if keyword == "INSERT" and (self.on_duplicate_columns or self.last_insert_id_column):
            parts += ["ON DUPLICATE KEY UPDATE", self._render_on_duplicate()]
        return " ".join(parts)

    def render_update(self, data: Any, args: ArgumentList) -> str:
        self._require_table(writable=True)
        data = self._check_payload(data)
        parts = ["UPDATE", *self._before_options(), self.tables[0]]
        parts += self._render_joins(args)
        assignments = [f"{column} = {args.bind(to_expression(value))}" for column, value in data.items()]
        parts += ["SET", ", ".join(assignments)]
        parts += self._render_where(args)
        parts += self._render_order_and_limit(args)
        return " ".join(parts)

    def render_delete(self, args: ArgumentList) -> str:
        """Render ``DELETE``; several tables (or joins) use the multi-table form, without ORDER BY and LIMIT."""
        self._require_table(writable=True)
        names = ", ".join(self.tables)
        if len(self.tables) > 1 or self.joins:
            parts = ["DELETE", *self._before_options(), names, "FROM", names]
            parts += self._render_joins(args)
            parts += self._render_where(args)
        else:
            parts = ["DELETE", *self._before_options(), "FROM", names]
            parts += self._render_where(args)
            parts += self._render_order_and_limit(args)
        return " ".join(parts)

    # --- execution ---

    @contextmanager
    def _statement(self):
        """Scope of one terminal operation: results cleared on entry, clauses on exit."""
        self._reset(RESULT_FIELDS)
        try:
            yield
        finally:
            self._reset(CLAUSE_FIELDS)
            self._sink = None

    def _execute(self, sql: str, args: ArgumentList, record: bool = True):
        args.check(sql)
        if record:
            self.last_query = sql
            self.last_params = args.values
        if self._executor is None:
            return None
        start = time.perf_counter()
        error = None
        try:
            return self._executor.execute(sql, args.values)
        except Exception as exc:
            error = exc
            raise
        finally:
            if self.tracing:
                self.traces.append(
                    Trace(
                        query=sql,
                        params=args.values,
                        duration=time.perf_counter() - start,
                        stacks=capture_stacks(3),
                        error=str(error) if error is not None else None,
                    )
                )

    def _record_rows(self, result, sink: Optional[Sink] = None) -> None:
        if result is None:
            return
        if not result.columns:
            self.count = max(result.rowcount, 0)
        elif sink is not None:
            self.count = sink.load(result.columns, result.rows)
        else:
            self.count = len(result.rows)

    def _record_write(self, result, inserted: bool = False) -> None:
        if result is None:
            return
        self.count = max(result.rowcount, 0)
        if inserted:
            self.last_insert_id = result.lastrowid or None

    def _select(self, columns: tuple) -> None:
        args = ArgumentList()
        sql = self.render_select(args, columns)
        result = self._execute(sql, args)
        self._record_rows(result, self._sink)
        if self.total_count_requested:
            self._fetch_total_count(columns)

    def _fetch_total_count(self, columns: tuple) -> None:
        args = ArgumentList()
        sql = f"SELECT COUNT(*) FROM ({self.render_select(args, columns, counting=True)}) AS counted"
        result = self._execute(sql, args, record=False)
        if result is None or not result.rows:
            return
        self.total_count = int(result.rows[0][0])
        self.total_page = math.ceil(self.total_count / self.page_limit)

    # --- terminal operations ---

    def get(self, *columns: Any) -> Builder:
        """Run the pending SELECT (``*`` unless columns are given) into the bound destination."""
        with self._statement():
            self._select(columns)
        return self

    def get_one(self, *columns: Any) -> Builder:
        """Like ``get()``, with ``LIMIT 1``."""
        with self._statement():
            self.limit_value = (1,)
            self._select(columns)
        return self

    def get_value(self, column: Any) -> Any:
        """Return the first row's value of one column, or None."""
        holder = Value()
        self.bind(holder).get_one(column)
        return holder.value

    def get_values(self, column: Any) -> list[Any]:
        """Return one column's value for every row."""
        values: list[Any] = []
        self.bind(values, Any).get(column)
        return values

    def paginate(self, page: int, *columns: Any) -> Builder:
        """Run the pending SELECT for one page of ``page_limit`` rows.

        Also sets ``total_count`` and ``total_page``.

        Args:
            page: Page number, starting at 1.
            *columns: Columns to select (``*`` by default).

        Raises:
            InvalidArgumentError: If ``page`` is lower than 1 or ``page_limit`` is not positive.
        """
        with self._statement():
            if self.page_limit <= 0:
                raise InvalidArgumentError("page_limit must be positive to paginate")
            if not isinstance(page, int) or isinstance(page, bool) or page < 1:
                raise InvalidArgumentError(f"Page numbers start at 1, got {page!r}")
            self.limit_value = ((page - 1) * self.page_limit, self.page_limit)
            self.total_count_requested = True
            self._select(columns)
        return self

    def has(self) -> bool:
        """Whether at least one row matches the pending conditions."""
        with self._statement():
            self.limit_value = (1,)
            args = ArgumentList()
            sql = self.render_select(args)
            self._record_rows(self._execute(sql, args))
        return self.count > 0

    def insert(self, data: Mapping[str, Any]) -> Builder:
        """Insert one row; sets ``last_insert_id`` and ``count``."""
        with self._statement():
            args = ArgumentList()
            sql = self.render_insert("INSERT", [data], args)
            self._record_write(self._execute(sql, args), inserted=True)
        return self

    def insert_multi(self, rows: list[Mapping[str, Any]]) -> Builder:
        """Insert several rows in one statement; sets ``last_insert_ids``."""
        with self._statement():
            if not isinstance(rows, (list, tuple)):
                raise DataTypeMismatchError(f"Expected a list of rows, got {type(rows).__name__}")
            if not rows:
                raise ColumnNotSpecifiedError("No row to insert")
            args = ArgumentList()
            sql = self.render_insert("INSERT", list(rows), args)
            result = self._execute(sql, args)
            self._record_write(result, inserted=True)
            if result is not None:
                self.last_insert_ids = list(result.insert_ids)
        return self

    def replace(self, data: Mapping[str, Any]) -> Builder:
        with self._statement():
            args = ArgumentList()
            sql = self.render_insert("REPLACE", [data], args)
            self._record_write(self._execute(sql, args), inserted=True)
        return self

    def update(self, data: Mapping[str, Any]) -> Builder:
        """Update the matching rows; ``count`` is the number of affected rows."""
        with self._statement():
            args = ArgumentList()
            sql = self.render_update(data, args)
            self._record_write(self._execute(sql, args))
        return self

    def delete(self) -> Builder:
        with self._statement():
            args = ArgumentList()
            sql = self.render_delete(args)
            self._record_write(self._execute(sql, args))
        return self

    def raw_query(self, sql: str, *values: Any) -> Builder:
        """Run caller-written SQL with ``?`` placeholders into the bound destination."""
        with self._statement():
            args = ArgumentList()
            args.add(*values)
            self._record_rows(self._execute(sql, args), self._sink)
        return self

    def raw_query_one(self, sql: str, *values: Any) -> Builder:
        return self.raw_query(sql + " LIMIT 1", *values)

    def raw_query_value(self, sql: str, *values: Any) -> Any:
        holder = Value()
        self.bind(holder).raw_query(sql + " LIMIT 1", *values)
        return holder.value

    def raw_query_values(self, sql: str, *values: Any) -> list[Any]:
        result: list[Any] = []
        self.bind(result, Any).raw_query(sql, *values)
        return result

    def lock(self, *tables: str) -> Builder:
        """``LOCK TABLES`` with the configured lock method.

        Table locks belong to one connection, so this needs a transaction builder.

        Raises:
            UnbegunTransactionError: Outside an active transaction.
        """
        self._active_transaction()
        with self._statement():
            if not tables or not all(isinstance(table, str) and table.strip() for table in tables):
                raise TableNotSpecifiedError("lock() needs at least one table")
            sql = "LOCK TABLES " + ", ".join(f"{table} {self.lock_method}" for table in tables)
            self._record_rows(self._execute(sql, ArgumentList()))
        return self

    def unlock(self) -> Builder:
        self._active_transaction()
        with self._statement():
            self._record_rows(self._execute("UNLOCK TABLES", ArgumentList()))
        return self

    # --- connection & transactions ---

    def _router(self):
        from .transaction import Transaction
        if isinstance(self._executor, Transaction):
            return self._executor.router
        if self._executor is None:
            raise BuilderError("This builder has no connection; create it with chainsql.new(url) or chainsql.database()")
        return self._executor

    def ping(self) -> Builder:
        """Check every database is reachable; the driver's error propagates otherwise."""
        self._router().ping()
        return self

    def connect(self) -> Builder:
        """Reopen every database connection."""
        self._router().reconnect()
        return self

    def disconnect(self) -> Builder:
        """Close every idle database connection."""
        self._router().close()
        return self

    def connection(self, write: bool = True):
        """Context manager lending a raw driver connection (e.g. to a migration tool)."""
        return self._router().connection(write=write)

    def _active_transaction(self):
        from .transaction import Transaction
        if not isinstance(self._executor, Transaction) or not self._executor.active:
            raise UnbegunTransactionError("No active transaction; call begin() first")
        return self._executor

    def begin(self) -> Builder:
        """Start a transaction and return a new builder running inside it.

        Statements of the returned builder all use one primary connection until
        ``commit()`` or ``rollback()``. It is also a context manager committing
        on success and rolling back on error.
        """
        from .transaction import Transaction
        if isinstance(self._executor, Transaction):
            raise TransactionError("Nested transactions are not supported")
        transaction = Transaction(self._router())
        return type(self)(executor=transaction, **self.model_dump(include=set(SETTING_FIELDS)))

    def commit(self) -> Builder:
        self._active_transaction().commit()
        return self

    def rollback(self) -> Builder:
        self._active_transaction().rollback()
        return self

    def __enter__(self) -> Builder:
        self._active_transaction()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        from .transaction import Transaction
        transaction = self._executor
        if isinstance(transaction, Transaction) and transaction.active:
            if exc_type is None:
                transaction.commit()
            else:
                transaction.rollback()
        return False
