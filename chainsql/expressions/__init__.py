"""SQL expression types for statement building.

Each expression has a ``.sql`` property (SQL fragment with ``?`` placeholders)
and ``.values`` (tuple of bound values in the same order). Caller-supplied
values are resolved into expressions once, when a clause is added, with
``to_expression``.
"""

from ._bases import Expression, LiteralExpression, NullExpression, to_expression
from .condition import ConditionExpression, build_condition, render_conditions
from .function import FunctionExpression, now, parse_interval
from .join import JoinExpression
from .order import OrderExpression
from .timestamp import Timestamp, TimestampExpression

__all__ = [
    "ConditionExpression",
    "Expression",
    "FunctionExpression",
    "JoinExpression",
    "LiteralExpression",
    "NullExpression",
    "OrderExpression",
    "Timestamp",
    "TimestampExpression",
    "build_condition",
    "now",
    "parse_interval",
    "render_conditions",
    "to_expression",
]
