"""Comparisons on Unix-timestamp columns (``WHERE CreatedAt`` is in 2017, a Monday, ...)."""

from typing import Any

from ..errors import InvalidArgumentError
from ._bases import Expression

MONTHS: dict[str, int] = {
    "january": 1,
    "february": 2,
    "march": 3,
    "april": 4,
    "may": 5,
    "june": 6,
    "july": 7,
    "august": 8,
    "september": 9,
    "october": 10,
    "november": 11,
    "december": 12,
}

# Numbered the way MySQL's WEEKDAY() numbers them
WEEKDAYS: dict[str, int] = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}


class TimestampExpression(Expression):
    """A ``{column}``-templated comparison with a single bound value."""

    template: str
    value: Any

    def render(self, column: str) -> str:
        """SQL for this comparison applied to ``column``."""
        return self.template.format(column=column)

    @property
    def sql(self) -> str:
        raise TypeError("TimestampExpression must be used as a condition value, e.g. where('CreatedAt', ts)")

    @property
    def values(self) -> tuple[Any, ...]:
        return (self.value,)


def _lookup(value: Any, names: dict[str, int], kind: str) -> int:
    if isinstance(value, str):
        try:
            return names[value.lower()]
        except KeyError as error:
            raise InvalidArgumentError(f"Unknown {kind} name `{value}`") from error
    return value


class Timestamp:
    """Factory for timestamp comparisons, available as ``builder.timestamp``."""

    @staticmethod
    def _compare(function: str, value: Any) -> TimestampExpression:
        return TimestampExpression(template=function + "(FROM_UNIXTIME({column})) = ?", value=value)

    def is_date(self, date: str) -> TimestampExpression:
        """Match a ``YYYY-MM-DD`` date."""
        return self._compare("DATE", date)

    def is_year(self, year: int) -> TimestampExpression:
        return self._compare("YEAR", year)

    def is_month(self, month: int | str) -> TimestampExpression:
        """Match a month, given as 1-12 or by its English name."""
        return self._compare("MONTH", _lookup(month, MONTHS, "month"))

    def is_day(self, day: int) -> TimestampExpression:
        return self._compare("DAY", day)

    def is_weekday(self, weekday: int | str) -> TimestampExpression:
        """Match a weekday, given as 0 (Monday) to 6 (Sunday) or by its English name."""
        return self._compare("WEEKDAY", _lookup(weekday, WEEKDAYS, "weekday"))

    def is_hour(self, hour: int) -> TimestampExpression:
        return self._compare("HOUR", hour)

    def is_minute(self, minute: int) -> TimestampExpression:
        return self._compare("MINUTE", minute)

    def is_second(self, second: int) -> TimestampExpression:
        return self._compare("SECOND", second)
