"""Sub-queries: builders usable as values inside another statement.

A SubQuery wraps a connection-less Builder. Every chainable call works on a
clone and returns a new SubQuery, so one sub-query can serve as a template for
several statements, from several threads, without them seeing each other's
clauses. As an expression, it renders as ``(SELECT ...)`` and contributes its
own arguments at the position it is embedded.
"""

from __future__ import annotations

from typing import Any, Optional

from .builder import Builder
from .expressions import Expression


class SubQuery(Expression):
    """Immutable-by-convention nested SELECT."""

    builder: Builder
    alias: Optional[str] = None
    """Name of the derived table when joined or selected from."""
    statement: Optional[str] = None
    """SQL recorded by the last terminal call (``get``, ``get_one``, ...)."""
    arguments: tuple[Any, ...] = ()

    def _derive(self, method: str, *args: Any, **kwargs: Any) -> SubQuery:
        builder = self.builder.clone()
        getattr(builder, method)(*args, **kwargs)
        return SubQuery(builder=builder, alias=self.alias)

    def _render(self, method: str, *args: Any) -> SubQuery:
        builder = self.builder.clone()
        getattr(builder, method)(*args)
        return SubQuery(
            builder=builder,
            alias=self.alias,
            statement=builder.last_query,
            arguments=builder.last_params,
        )

    def _rendered(self) -> tuple[str, tuple[Any, ...]]:
        if self.statement is not None:
            return self.statement, self.arguments
        rendered = self._render("get")
        return rendered.statement, rendered.arguments

    @property
    def sql(self) -> str:
        return "(" + self._rendered()[0] + ")"

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(self._rendered()[1])

    @property
    def query(self) -> str:
        """Inner statement, without the surrounding parentheses."""
        return self._rendered()[0]

    @property
    def params(self) -> tuple[Any, ...]:
        return self.values

    # chainable clauses, each returning a new SubQuery

    def table(self, *names: Any) -> SubQuery:
        return self._derive("table", *names)

    def where(self, *args: Any) -> SubQuery:
        return self._derive("where", *args)

    def or_where(self, *args: Any) -> SubQuery:
        return self._derive("or_where", *args)

    def having(self, *args: Any) -> SubQuery:
        return self._derive("having", *args)

    def or_having(self, *args: Any) -> SubQuery:
        return self._derive("or_having", *args)

    def join(self, target: Any, condition: str = "", direction: str = "INNER") -> SubQuery:
        return self._derive("join", target, condition, direction)

    def left_join(self, target: Any, condition: str = "") -> SubQuery:
        return self._derive("left_join", target, condition)

    def right_join(self, target: Any, condition: str = "") -> SubQuery:
        return self._derive("right_join", target, condition)

    def inner_join(self, target: Any, condition: str = "") -> SubQuery:
        return self._derive("inner_join", target, condition)

    def natural_join(self, target: Any, condition: str = "") -> SubQuery:
        return self._derive("natural_join", target, condition)

    def cross_join(self, target: Any, condition: str = "") -> SubQuery:
        return self._derive("cross_join", target, condition)

    def join_where(self, target: Any, *args: Any) -> SubQuery:
        return self._derive("join_where", target, *args)

    def join_or_where(self, target: Any, *args: Any) -> SubQuery:
        return self._derive("join_or_where", target, *args)

    def order_by(self, column: str, direction: Optional[str] = None, *field_values: Any) -> SubQuery:
        return self._derive("order_by", column, direction, *field_values)

    def group_by(self, *columns: str) -> SubQuery:
        return self._derive("group_by", *columns)

    def limit(self, *values: int) -> SubQuery:
        return self._derive("limit", *values)

    def set_query_option(self, *options: str) -> SubQuery:
        return self._derive("set_query_option", *options)

    # terminal calls record the statement this sub-query stands for

    def get(self, *columns: Any) -> SubQuery:
        return self._render("get", *columns)

    def get_one(self, *columns: Any) -> SubQuery:
        return self._render("get_one", *columns)

    def paginate(self, page: int, *columns: Any) -> SubQuery:
        return self._render("paginate", page, *columns)

    def raw_query(self, sql: str, *values: Any) -> SubQuery:
        return self._render("raw_query", sql, *values)
