"""Copy result rows into caller-supplied destinations.

A destination is bound once with ``Builder.bind()``, which picks the sink
that fills it:

- ``Value``: first column of the first row, coerced to the holder's type;
- a pydantic model instance: the first row, columns matched to fields by alias
  then by name (nested models are searched too and created when needed);
- a ``list``: emptied, then one element per row (models, dicts or scalars);
- a ``dict``: emptied, then the first row keyed by column name, as the driver
  returned it.

Columns that match nothing are dropped.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from pydantic import BaseModel, TypeAdapter

from .errors import InvalidDestinationError
from .utils.resolve_model import input_key, resolve_model_type

Path = tuple[tuple[str, str], ...]
"""(field name, input key) pairs from the top-level model down to the matched field."""


class Value:
    """Holder receiving a single value, e.g. ``Value(int)`` for a ``COUNT(*)``."""

    def __init__(self, type_: Any = Any):
        self.type = type_
        self.value = None

    def __repr__(self) -> str:
        return f"Value({self.value!r})"


def _find_path(model: type[BaseModel], column: str, seen: frozenset = frozenset()) -> Optional[Path]:
    fields = {name: field for name, field in model.model_fields.items() if not field.exclude}
    for name, field in fields.items():
        if column in (field.alias, field.validation_alias):
            return ((name, input_key(name, field)),)
    if column in fields:
        return ((column, input_key(column, fields[column])),)
    for name, field in fields.items():
        nested = resolve_model_type(field.annotation)
        if nested is None or nested in seen:
            continue
        path = _find_path(nested, column, seen | {model})
        if path:
            return ((name, input_key(name, field)),) + path
    return None


def column_paths(model: type[BaseModel], columns: Sequence[str]) -> list[Optional[Path]]:
    """Resolve each result column to a field path, or None when it matches no field."""
    return [_find_path(model, column) for column in columns]


def record_data(paths: Sequence[Optional[Path]], row: Sequence[Any]) -> dict[str, Any]:
    """Nested dict, ready for ``model_validate``, built from one row."""
    data: dict[str, Any] = {}
    for path, value in zip(paths, row):
        if path is None:
            continue
        node = data
        for _, key in path[:-1]:
            node = node.setdefault(key, {})
        node[path[-1][1]] = value
    return data


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value
    return base


class Sink(ABC):
    """Receives the rows of one statement."""

    @abstractmethod
    def load(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]) -> int:
        """Fill the destination and return the row count to record."""
        ...  # pylint: disable=unnecessary-ellipsis


class ValueSink(Sink):

    def __init__(self, holder: Value):
        self.holder = holder

    def load(self, columns, rows):
        if not rows:
            self.holder.value = None
            return 0
        self.holder.value = TypeAdapter(self.holder.type).validate_python(rows[0][0])
        return 1


class MappingSink(Sink):

    def __init__(self, destination: dict):
        self.destination = destination

    def load(self, columns, rows):
        self.destination.clear()
        if not rows:
            return 0
        self.destination.update(zip(columns, rows[0]))
        return 1


class RecordSink(Sink):
    """Updates the fields of an existing model instance from the first row.

    Untouched fields keep their values; the merged data goes through pydantic
    validation before being assigned.
    """

    def __init__(self, instance: BaseModel):
        self.instance = instance

    def load(self, columns, rows):
        if not rows:
            return 0
        model = type(self.instance)
        paths = column_paths(model, columns)
        overlay = record_data(paths, rows[0])
        if not overlay:
            return 1
        base = self.instance.model_dump(by_alias=True)
        validated = model.model_validate(_merge(base, overlay))
        for name in {path[0][0] for path in paths if path is not None}:
            setattr(self.instance, name, getattr(validated, name))
        return 1


class SequenceSink(Sink):
    """Replaces the content of a list with one element per row.

    ``model`` decides the element type: a pydantic model class builds records,
    ``None`` or ``dict`` keeps rows as dicts, any other type coerces the first column.
    """

    def __init__(self, destination: list, model: Any = None):
        self.destination = destination
        self.model = model

    def load(self, columns, rows):
        self.destination.clear()
        if resolve_model_type(self.model) is not None:
            model = resolve_model_type(self.model)
            paths = column_paths(model, columns)
            self.destination.extend(model.model_validate(record_data(paths, row)) for row in rows)
        elif self.model in (None, dict):
            self.destination.extend(dict(zip(columns, row)) for row in rows)
        else:
            adapter = TypeAdapter(self.model)
            self.destination.extend(adapter.validate_python(row[0]) for row in rows)
        return len(rows)


def select_sink(destination: Any, model: Any = None) -> Sink:
    """Pick the sink for a destination.

    Raises:
        InvalidDestinationError: If the destination cannot receive rows.
    """
    if isinstance(destination, Value):
        return ValueSink(destination)
    if isinstance(destination, BaseModel):
        if destination.model_config.get("frozen"):
            raise InvalidDestinationError(f"Cannot load rows into frozen model {type(destination).__name__}")
        return RecordSink(destination)
    if isinstance(destination, list):
        return SequenceSink(destination, model)
    if isinstance(destination, dict):
        return MappingSink(destination)
    raise InvalidDestinationError(
        f"Cannot load rows into {type(destination).__name__}; "
        "use a Value, a pydantic model instance, a list or a dict"
    )
