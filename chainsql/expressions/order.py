"""ORDER BY expression."""

from typing import Any, Optional, Tuple

from pydantic import Field as PydanticField

from ._bases import Expression


class OrderExpression(Expression):
    """ORDER BY term: a column (or raw expression such as ``RAND()``) and an optional direction.

    With ``field_values``, rows are ordered by their position in that list:
    ``FIELD(column, ?, ?) ASC``.
    """

    column: str
    direction: Optional[str] = None
    field_values: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @property
    def sql(self) -> str:
        if self.field_values:
            placeholders = ", ".join("?" for _ in self.field_values)
            return f"FIELD({self.column}, {placeholders}) {self.direction or 'ASC'}"
        if self.direction:
            return f"{self.column} {self.direction}"
        return self.column

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(self.field_values)
