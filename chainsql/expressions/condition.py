"""WHERE / HAVING / join ON conditions."""

from __future__ import annotations

from typing import Any, Literal, Tuple

from pydantic import Field as PydanticField

from ..errors import (
    ColumnNotSpecifiedError,
    EmptyInListError,
    InvalidBetweenError,
    InvalidConditionError,
)
from ..placeholders import count_placeholders
from ._bases import Expression, to_expression
from .timestamp import TimestampExpression

RANGE_OPERATORS = ("BETWEEN", "NOT BETWEEN")
LIST_OPERATORS = ("IN", "NOT IN")
EXISTS_OPERATORS = ("EXISTS", "NOT EXISTS")


class ConditionExpression(Expression):
    """One condition, joined to the previous one in its list by ``connector``.

    Three kinds are rendered:

    - ``raw``: caller-written SQL, with ``raw_values`` for its inline ``?``;
    - ``column``: ``column operator operand(s)``;
    - ``exists``: ``[NOT] EXISTS (SELECT ...)``.
    """

    connector: Literal["AND", "OR"] = "AND"
    kind: Literal["raw", "column", "exists"] = "column"
    raw: str = ""
    raw_values: Tuple[Any, ...] = PydanticField(default_factory=tuple)
    column: str = ""
    operator: str = "="
    operands: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @property
    def sql(self) -> str:
        if self.kind == "raw":
            return self.raw
        if self.kind == "exists":
            return f"{self.operator} {self.operands[0].sql}"
        if len(self.operands) == 1 and isinstance(self.operands[0], TimestampExpression):
            return self.operands[0].render(self.column)
        if self.operator in RANGE_OPERATORS:
            low, high = self.operands
            return f"{self.column} {self.operator} {low.sql} AND {high.sql}"
        if self.operator in LIST_OPERATORS:
            if len(self.operands) == 1 and _is_sub_query(self.operands[0]):
                return f"{self.column} {self.operator} {self.operands[0].sql}"
            return f"{self.column} {self.operator} (" + ", ".join(operand.sql for operand in self.operands) + ")"
        return f"{self.column} {self.operator} {self.operands[0].sql}"

    @property
    def values(self) -> tuple[Any, ...]:
        if self.kind == "raw":
            return tuple(self.raw_values)
        return sum((operand.values for operand in self.operands), ())


def _is_sub_query(value: Any) -> bool:
    from ..subquery import SubQuery
    return isinstance(value, SubQuery)


def render_conditions(conditions: list[ConditionExpression], bind) -> str:
    """Join conditions with their connectors; the first one gets none.

    ``bind`` receives each condition and returns its SQL (see ``ArgumentList.bind``).
    """
    parts = []
    for index, condition in enumerate(conditions):
        sql = bind(condition)
        parts.append(sql if index == 0 else f"{condition.connector} {sql}")
    return " ".join(parts)


def build_condition(connector: str, *args: Any) -> ConditionExpression:
    """Build a condition from the polymorphic ``where()`` arguments.

    Accepted forms:

    - ``("A = B")`` or ``("(A = ? OR A = ?)", 1, 2)``: raw SQL, with values for its ``?``;
    - ``(sub_query, "EXISTS")`` / ``(sub_query, "NOT EXISTS")``;
    - ``("ID", 1)``: equality (a timestamp helper value renders its own comparison);
    - ``("ID", ">=", 1)``, ``("ID", "BETWEEN", 0, 20)``, ``("ID", "IN", 1, 5, 27)``,
      ``("ID", "IN", [1, 5, 27])``, ``("ID", "IN", sub_query)``, ``("Name", "IS NOT", None)``.

    Values are resolved into expressions here, once.

    Raises:
        ColumnNotSpecifiedError: If no column (or an empty one) is given.
        InvalidBetweenError: If BETWEEN does not get exactly two values.
        EmptyInListError: If IN gets an empty list.
        InvalidConditionError: For any other unusable combination.
    """
    if not args:
        raise ColumnNotSpecifiedError("A condition needs at least a column or a raw expression")
    first, rest = args[0], args[1:]

    if _is_sub_query(first):
        operator = rest[0].strip().upper() if rest and isinstance(rest[0], str) else ""
        if operator not in EXISTS_OPERATORS or len(rest) != 1:
            raise InvalidConditionError("A sub-query as the left operand needs exactly the EXISTS or NOT EXISTS operator")
        return ConditionExpression(connector=connector, kind="exists", operator=operator, operands=(first,))

    if not isinstance(first, str) or not first.strip():
        raise ColumnNotSpecifiedError(f"Invalid column for condition: {first!r}")

    if not rest or count_placeholders(first):
        return ConditionExpression(connector=connector, kind="raw", raw=first, raw_values=rest)

    if len(rest) == 1:
        return ConditionExpression(connector=connector, column=first, operands=(to_expression(rest[0]),))

    operator, values = rest[0], rest[1:]
    if not isinstance(operator, str) or not operator.strip():
        raise InvalidConditionError(f"Invalid operator for column `{first}`: {operator!r}")
    operator = " ".join(operator.upper().split())

    if operator in RANGE_OPERATORS:
        if len(values) == 1 and isinstance(values[0], (list, tuple)):
            values = tuple(values[0])
        if len(values) != 2:
            raise InvalidBetweenError(f"{operator} needs exactly 2 values, got {len(values)}")
    elif operator in LIST_OPERATORS:
        if len(values) == 1 and isinstance(values[0], (list, tuple, set, frozenset)):
            values = tuple(values[0])
        if not values:
            raise EmptyInListError(f"{operator} needs at least one value")
    elif len(values) != 1:
        raise InvalidConditionError(f"Operator {operator} takes a single value, got {len(values)}")

    return ConditionExpression(
        connector=connector,
        column=first,
        operator=operator,
        operands=tuple(to_expression(value) for value in values),
    )

