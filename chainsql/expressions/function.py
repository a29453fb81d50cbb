"""Raw SQL function values (``func()`` and ``now()``)."""

import re
from typing import Any, Tuple

from pydantic import Field as PydanticField

from ..errors import InvalidArgumentError
from ._bases import Expression

INTERVAL_UNITS: dict[str, str] = {
    "Y": "YEAR",
    "M": "MONTH",
    "D": "DAY",
    "W": "WEEK",
    "h": "HOUR",
    "m": "MINUTE",
    "s": "SECOND",
}
_INTERVAL_PATTERN = re.compile(r"^([+-])(\d+)([YMDWhms])$")


class FunctionExpression(Expression):
    """Raw SQL rendered verbatim, e.g. ``SHA1(?)`` with its own ``arguments``.

    The template must contain one ``?`` per argument.
    """

    template: str
    arguments: Tuple[Any, ...] = PydanticField(default_factory=tuple)

    @property
    def sql(self) -> str:
        if not self.template:
            raise ValueError("FunctionExpression must have a template")
        return self.template

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(self.arguments)


def parse_interval(interval: str) -> str:
    """Translate ``"+1Y"`` into ``"+ INTERVAL 1 YEAR"``.

    Raises:
        InvalidArgumentError: If the interval is not a sign, an integer and one of ``YMDWhms``.
    """
    match = _INTERVAL_PATTERN.match(interval.strip()) if isinstance(interval, str) else None
    if match is None:
        raise InvalidArgumentError(f"Invalid interval `{interval}`, expected e.g. '+1Y' or '-2h'")
    sign, amount, unit = match.groups()
    return f"{sign} INTERVAL {int(amount)} {INTERVAL_UNITS[unit]}"


def now(*intervals: str) -> FunctionExpression:
    """``NOW()``, optionally shifted by one or more intervals."""
    template = " ".join(["NOW()"] + [parse_interval(interval) for interval in intervals])
    return FunctionExpression(template=template)
