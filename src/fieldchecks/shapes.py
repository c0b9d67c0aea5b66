"""Shape resolution for arbitrary Python values.

The value graph is seen through a closed set of shapes: records (dataclass and
pydantic model instances), sequences, mappings, scalars and the absent value.
Field metadata for records is read here so the walker never inspects types.
"""

import dataclasses
import numbers
import types
import typing
from collections.abc import Mapping, Set
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel

DIRECTIVE_KEY = "check"
NIL = "<nil>"


class Shape(str, Enum):
    """Shape variants of a value."""
    RECORD = "record"
    SEQUENCE = "sequence"
    MAP = "map"
    SCALAR = "scalar"
    ABSENT = "absent"


@dataclass(frozen=True)
class FieldInfo:
    """Metadata of one record field."""
    name: str
    directive: str | None = None
    optional: bool = False


_SCALAR_SEQUENCES = (str, bytes, bytearray, memoryview)


def shape_of(value: Any) -> Shape:
    """Resolve the shape of a value."""
    if value is None:
        return Shape.ABSENT
    if isinstance(value, BaseModel):
        return Shape.RECORD
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return Shape.RECORD
    if isinstance(value, Mapping):
        return Shape.MAP
    if isinstance(value, _SCALAR_SEQUENCES):
        return Shape.SCALAR
    if isinstance(value, (list, tuple, Set)):
        return Shape.SEQUENCE
    return Shape.SCALAR


def is_container(value: Any) -> bool:
    return shape_of(value) in (Shape.RECORD, Shape.SEQUENCE, Shape.MAP)


def _is_optional(annotation: Any) -> bool:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        return type(None) in typing.get_args(annotation)
    return annotation is None or annotation is type(None)


def _dataclass_hints(cls: type) -> dict[str, Any]:
    # String annotations may reference names that are not importable here
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        return {}


def record_fields(record: Any) -> list[tuple[FieldInfo, Any]]:
    """List ``(FieldInfo, value)`` pairs of a record in declaration order."""
    if isinstance(record, BaseModel):
        result = []
        for name, info in type(record).model_fields.items():
            extra = info.json_schema_extra
            directive = extra.get(DIRECTIVE_KEY) if isinstance(extra, dict) else None
            field_info = FieldInfo(name, directive, _is_optional(info.annotation))
            result.append((field_info, getattr(record, name, None)))
        return result

    hints = _dataclass_hints(type(record))
    result = []
    for f in dataclasses.fields(record):
        annotation = hints.get(f.name, f.type)
        field_info = FieldInfo(f.name, f.metadata.get(DIRECTIVE_KEY), _is_optional(annotation))
        result.append((field_info, getattr(record, f.name, None)))
    return result


def children(value: Any) -> list[Any]:
    """Elements of a sequence or values of a mapping, in iteration order."""
    shape = shape_of(value)
    if shape == Shape.MAP:
        return list(value.values())
    if shape == Shape.SEQUENCE:
        return list(value)
    return []


def child_labels(value: Any) -> list[str]:
    """Path suffixes matching ``children``."""
    if shape_of(value) == Shape.MAP:
        return [f"[{key!r}]" for key in value.keys()]
    return [f"[{i}]" for i in range(len(value))]


def is_default(value: Any, bool_is_default: bool = True) -> bool:
    """Whether a value equals the default of its type.

    Records are default when every field is; sequences and mappings when
    empty. ``bool_is_default`` only applies to ``value`` itself, nested
    booleans are compared against ``False``.
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return bool_is_default and value is False
    if isinstance(value, Enum):
        return is_default(value.value)
    shape = shape_of(value)
    if shape == Shape.RECORD:
        return all(is_default(v) for _, v in record_fields(value))
    if shape in (Shape.SEQUENCE, Shape.MAP):
        return len(value) == 0
    if isinstance(value, _SCALAR_SEQUENCES):
        return len(value) == 0
    if isinstance(value, numbers.Number):
        return value == 0
    return False


def render(value: Any) -> str:
    """String form of a value as compared by ``expect`` and ``re``."""
    if value is None:
        return NIL
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


def type_name(value: Any) -> str:
    if value is None:
        return NIL
    return type(value).__name__


def checked(directive: str, **kwargs: Any) -> Any:
    """Dataclass field carrying a check directive.

    Example::

        @dataclass
        class Server:
            listen: str = checked("required", default="")
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[DIRECTIVE_KEY] = directive
    return dataclasses.field(metadata=metadata, **kwargs)
