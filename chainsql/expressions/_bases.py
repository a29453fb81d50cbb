"""Base expression types for SQL fragments."""

from __future__ import annotations
from typing import Any

from pydantic import BaseModel


class Expression(BaseModel):
    """Base type for all SQL expression nodes.

    Subclasses must implement the ``sql`` property. The default ``values``
    is an empty tuple; expression types that contain literals override it
    to return the bound values in the same order as ``?`` placeholders in ``sql``.
    """

    model_config = {"arbitrary_types_allowed": True}

    @property
    def sql(self) -> str:
        """SQL fragment for this expression, with ``?`` for bound parameters."""
        raise NotImplementedError("Subclasses must implement `sql` property")

    @property
    def values(self) -> tuple[Any, ...]:
        """Bound values for placeholders in ``sql``, in order."""
        return ()


class LiteralExpression(Expression):
    """A single bound value, rendered as one ``?``."""

    value: Any

    @property
    def sql(self) -> str:
        return "?"

    @property
    def values(self) -> tuple[Any, ...]:
        return (self.value,)


class NullExpression(Expression):
    """SQL ``NULL``; consumes no placeholder."""

    @property
    def sql(self) -> str:
        return "NULL"


def to_expression(value: Any) -> Expression:
    """Resolve a caller-supplied value into an expression.

    Expressions (sub-queries, ``func()``/``now()`` values, timestamp helpers)
    are kept as they are, ``None`` becomes ``NULL`` and anything else is bound
    as a literal.
    """
    if isinstance(value, Expression):
        return value
    if value is None:
        return NullExpression()
    return LiteralExpression(value=value)
