"""JOIN descriptors."""

from typing import Any, Literal

from pydantic import Field as PydanticField

from ._bases import Expression
from .condition import ConditionExpression

JoinDirection = Literal["LEFT", "RIGHT", "INNER", "NATURAL", "CROSS", "LEFT OUTER", "RIGHT OUTER"]


class JoinExpression(Expression):
    """One JOIN: a table name or an aliased sub-query, its base ON condition
    and the conditions appended later with ``join_where()``."""

    direction: JoinDirection = "INNER"
    target: Any
    condition: str = ""
    conditions: list[ConditionExpression] = PydanticField(default_factory=list)

    @property
    def key(self) -> str:
        """Name used by ``join_where()`` to find this join."""
        if isinstance(self.target, str):
            return self.target
        return self.target.alias

    @property
    def target_sql(self) -> str:
        if isinstance(self.target, str):
            return self.target
        return f"{self.target.sql} AS {self.target.alias}"

    @property
    def on_sql(self) -> str:
        """Content of ``ON (...)``, empty when the join has no condition."""
        parts = [self.condition] if self.condition else []
        for condition in self.conditions:
            parts.append(f"{condition.connector} {condition.sql}" if parts else condition.sql)
        return " ".join(parts)

    @property
    def sql(self) -> str:
        sql = f"{self.direction} JOIN {self.target_sql}"
        on = self.on_sql
        if on:
            sql += f" ON ({on})"
        return sql

    @property
    def values(self) -> tuple[Any, ...]:
        values = () if isinstance(self.target, str) else tuple(self.target.values)
        for condition in self.conditions:
            values += condition.values
        return values

    def copy_with_conditions(self) -> "JoinExpression":
        """Copy whose condition list can be extended without touching this one."""
        return self.model_copy(update={"conditions": list(self.conditions)})
