"""Find pydantic models behind field annotations (for nested record materialization)."""

import types
from typing import Any, Optional, Union, get_args, get_origin

from pydantic import BaseModel
from pydantic.fields import FieldInfo


def resolve_model_type(annotation: Any) -> Optional[type[BaseModel]]:
    """Return the BaseModel subclass an annotation refers to, unwrapping Optional/Union.

    ``Profile``, ``Optional[Profile]`` and ``Profile | None`` all resolve to
    ``Profile``; anything else (scalars, containers) resolves to None.
    """
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    if get_origin(annotation) in (Union, types.UnionType):
        models = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(models) == 1:
            return resolve_model_type(models[0])
    return None


def input_key(name: str, field: FieldInfo) -> str:
    """Key under which ``model_validate`` expects the field's value."""
    if isinstance(field.validation_alias, str):
        return field.validation_alias
    return field.alias or name
