"""Positional ``?`` placeholders: argument accumulation, counting, and translation
to the paramstyle of the underlying DB-API driver."""

from typing import Any, Iterator

from .errors import PlaceholderCountError

_QUOTES = ("'", '"', "`")


def _scan(sql: str) -> Iterator[tuple[str, bool]]:
    """Yield each character of ``sql`` with a flag telling whether it sits inside a
    quoted string literal or a backquoted identifier."""
    quote = None
    escaped = False
    for char in sql:
        if quote is None:
            if char in _QUOTES:
                quote = char
                yield char, True
            else:
                yield char, False
            continue
        if escaped:
            escaped = False
        elif char == "\\" and quote != "`":
            escaped = True
        elif char == quote:
            quote = None
        yield char, True


def count_placeholders(sql: str) -> int:
    """Count ``?`` placeholders, ignoring question marks inside quotes."""
    return sum(1 for char, quoted in _scan(sql) if char == "?" and not quoted)


def translate_placeholders(sql: str, paramstyle: str) -> str:
    """Rewrite ``?`` placeholders for a driver's paramstyle.

    ``qmark`` statements are returned untouched. For ``format`` / ``pyformat``
    drivers (e.g. pymysql), unquoted ``?`` become ``%s`` and every literal ``%``
    is doubled, since the driver interpolates with the ``%`` operator.
    """
    if paramstyle == "qmark":
        return sql
    if paramstyle not in ("format", "pyformat"):
        raise ValueError(f"Unsupported paramstyle: {paramstyle}")
    parts = []
    for char, quoted in _scan(sql):
        if char == "%":
            parts.append("%%")
        elif char == "?" and not quoted:
            parts.append("%s")
        else:
            parts.append(char)
    return "".join(parts)


class ArgumentList:
    """Ordered accumulator of bound values, filled while a statement is rendered.

    Every fragment is appended through ``bind`` (or ``add`` for a bare value),
    so the values always end up in the order their placeholders appear.
    """

    def __init__(self):
        self._values: list[Any] = []

    def bind(self, expression) -> str:
        """Append the expression's values and return its SQL fragment."""
        self._values.extend(expression.values)
        return expression.sql

    def add(self, *values: Any) -> str:
        """Append literal values and return matching ``?`` placeholders."""
        self._values.extend(values)
        return ", ".join("?" for _ in values)

    @property
    def values(self) -> tuple[Any, ...]:
        return tuple(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def check(self, sql: str) -> None:
        """Raise PlaceholderCountError unless ``sql`` has one ``?`` per value."""
        expected = count_placeholders(sql)
        if expected != len(self._values):
            raise PlaceholderCountError(sql, expected, len(self._values))
