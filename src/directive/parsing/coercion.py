"""Declared value kinds and string coercion.

TypeSpec is the explicit sum type over every kind of value directive can
move between text and Python: tool parameters, answer return types and
vararg elements all use it. Each kind has exactly one registered converter;
an annotation with no kind fails closed at setup time.
"""

from __future__ import annotations

import datetime as _dt
import enum
import logging
import types
import typing
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from directive.exceptions import CoercionError, UnsupportedTypeError

logger = logging.getLogger(__name__)


class Kind(str, enum.Enum):
    """Supported value kinds."""

    STRING = "string"
    INT = "int"
    FLOAT = "float"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATE = "date"
    TIME = "time"
    DATETIME = "datetime"
    ENUM = "enum"
    LIST = "list"
    SET = "set"


_COLLECTION_KINDS = frozenset({Kind.LIST, Kind.SET})

_JSON_TYPES: dict[Kind, dict] = {
    Kind.STRING: {"type": "string"},
    Kind.INT: {"type": "integer"},
    Kind.FLOAT: {"type": "number"},
    Kind.DECIMAL: {"type": "number"},
    Kind.BOOL: {"type": "boolean"},
    Kind.DATE: {"type": "string", "format": "date"},
    Kind.TIME: {"type": "string", "format": "time"},
    Kind.DATETIME: {"type": "string", "format": "date-time"},
}


@dataclass(frozen=True)
class TypeSpec:
    """Declared kind of a value.

    Attributes:
        kind: The value kind.
        element: Element TypeSpec for LIST and SET kinds.
        enum_type: The Enum class for the ENUM kind.
    """

    kind: Kind
    element: TypeSpec | None = None
    enum_type: type[enum.Enum] | None = None

    @property
    def is_collection(self) -> bool:
        return self.kind in _COLLECTION_KINDS

    @property
    def label(self) -> str:
        """Short, Python-flavoured type name (``int``, ``list[int]``, ``Color``)."""
        if self.kind is Kind.ENUM and self.enum_type is not None:
            return self.enum_type.__name__
        if self.is_collection and self.element is not None:
            return f"{self.kind.value}[{self.element.label}]"
        return {Kind.STRING: "str", Kind.BOOL: "bool"}.get(self.kind, self.kind.value)

    def choices(self) -> list[str]:
        """Closed choice list for BOOL and ENUM kinds."""
        if self.kind is Kind.BOOL:
            return ["true", "false"]
        if self.kind is Kind.ENUM and self.enum_type is not None:
            return [member.name for member in self.enum_type]
        return []

    def json_schema(self) -> dict:
        """JSON Schema fragment describing this kind."""
        if self.kind is Kind.ENUM:
            return {"type": "string", "enum": self.choices()}
        if self.is_collection:
            schema: dict = {"type": "array", "items": self.element.json_schema()}  # type: ignore[union-attr]
            if self.kind is Kind.SET:
                schema["uniqueItems"] = True
            return schema
        return dict(_JSON_TYPES[self.kind])


STRING = TypeSpec(Kind.STRING)
INT = TypeSpec(Kind.INT)
FLOAT = TypeSpec(Kind.FLOAT)
BOOL = TypeSpec(Kind.BOOL)


# ---------------------------------------------------------------------------
# Annotation -> TypeSpec
# ---------------------------------------------------------------------------

_SCALARS: dict[type, Kind] = {
    str: Kind.STRING,
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT,
    Decimal: Kind.DECIMAL,
    # datetime before date: datetime subclasses date
    _dt.datetime: Kind.DATETIME,
    _dt.date: Kind.DATE,
    _dt.time: Kind.TIME,
}

_LIST_ORIGINS = (list, typing.List)
_SET_ORIGINS = (set, frozenset, typing.Set, typing.FrozenSet)


def _strip_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def type_spec(annotation: Any) -> TypeSpec:
    """Build a TypeSpec from a Python annotation.

    ``Optional[X]`` is treated as ``X``. Collections must be parameterised
    with a scalar element type.

    Raises:
        UnsupportedTypeError: If the annotation has no supported kind.
    """
    if isinstance(annotation, TypeSpec):
        return annotation
    annotation = _strip_optional(annotation)

    origin = typing.get_origin(annotation)
    if origin is not None:
        args = typing.get_args(annotation)
        if origin in _LIST_ORIGINS or origin in _SET_ORIGINS:
            if len(args) != 1:
                raise UnsupportedTypeError(annotation, "collections need one element type")
            element = type_spec(args[0])
            if element.is_collection:
                raise UnsupportedTypeError(annotation, "nested collections")
            kind = Kind.LIST if origin in _LIST_ORIGINS else Kind.SET
            return TypeSpec(kind, element=element)
        raise UnsupportedTypeError(annotation)

    if isinstance(annotation, type):
        if issubclass(annotation, enum.Enum):
            return TypeSpec(Kind.ENUM, enum_type=annotation)
        for python_type, kind in _SCALARS.items():
            if annotation is python_type:
                return TypeSpec(kind)
        if annotation in (list, set, frozenset):
            raise UnsupportedTypeError(annotation, "collections need an element type")
    raise UnsupportedTypeError(annotation)


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


def _to_string(text: str, spec: TypeSpec) -> str:
    return text


def _to_int(text: str, spec: TypeSpec) -> int:
    stripped = text.strip()
    try:
        return int(stripped)
    except ValueError:
        pass
    try:
        number = Decimal(stripped)
    except InvalidOperation:
        raise CoercionError(text, "int", "not a number") from None
    if not number.is_finite() or number != number.to_integral_value():
        raise CoercionError(text, "int", "not a whole number")
    return int(number)


def _to_float(text: str, spec: TypeSpec) -> float:
    try:
        return float(text.strip())
    except ValueError:
        raise CoercionError(text, "float", "not a number") from None


def _to_decimal(text: str, spec: TypeSpec) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation:
        raise CoercionError(text, "decimal", "not a number") from None


def _to_bool(text: str, spec: TypeSpec) -> bool:
    lowered = text.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise CoercionError(text, "bool", "expected true or false")


def _iso(parser: Callable[[str], Any], label: str) -> Callable[[str, TypeSpec], Any]:
    def convert(text: str, spec: TypeSpec) -> Any:
        try:
            return parser(text.strip())
        except ValueError as exc:
            raise CoercionError(text, label, str(exc)) from None

    return convert


def _to_enum(text: str, spec: TypeSpec) -> enum.Enum:
    assert spec.enum_type is not None
    try:
        return spec.enum_type[text.strip()]
    except KeyError:
        raise CoercionError(
            text, spec.enum_type.__name__, f"expected one of {spec.choices()}"
        ) from None


def _to_collection(text: str, spec: TypeSpec) -> list | set:
    assert spec.element is not None
    items = [coerce(line, spec.element) for line in text.splitlines() if line.strip()]
    return set(items) if spec.kind is Kind.SET else items


_CONVERTERS: dict[Kind, Callable[[str, TypeSpec], Any]] = {
    Kind.STRING: _to_string,
    Kind.INT: _to_int,
    Kind.FLOAT: _to_float,
    Kind.DECIMAL: _to_decimal,
    Kind.BOOL: _to_bool,
    Kind.DATE: _iso(_dt.date.fromisoformat, "date"),
    Kind.TIME: _iso(_dt.time.fromisoformat, "time"),
    Kind.DATETIME: _iso(_dt.datetime.fromisoformat, "datetime"),
    Kind.ENUM: _to_enum,
    Kind.LIST: _to_collection,
    Kind.SET: _to_collection,
}


def coerce(text: str, spec: TypeSpec) -> Any:
    """Convert text to the declared kind.

    Collections are newline-delimited records; blank lines are skipped.

    Raises:
        CoercionError: If the text does not convert.
    """
    return _CONVERTERS[spec.kind](text, spec)


def coerce_value(value: Any, spec: TypeSpec) -> Any:
    """Convert an already-native value (JSON argument, nested call result).

    Values that already have the declared kind pass through; strings go
    through :func:`coerce`; anything else is rendered to text first.
    """
    kind = spec.kind
    if isinstance(value, str):
        return coerce(value, spec)
    if kind is Kind.STRING:
        from directive.parsing.calls import render_value

        return render_value(value)
    if isinstance(value, bool):
        if kind is Kind.BOOL:
            return value
        raise CoercionError(value, spec.label, "booleans are not numbers")
    if kind is Kind.INT and isinstance(value, (int, float, Decimal)):
        return _to_int(str(value), spec)
    if kind is Kind.FLOAT and isinstance(value, (int, float, Decimal)):
        return float(value)
    if kind is Kind.DECIMAL and isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    if kind is Kind.ENUM and isinstance(value, enum.Enum):
        if isinstance(value, spec.enum_type):  # type: ignore[arg-type]
            return value
        return coerce(value.name, spec)
    if kind is Kind.DATETIME and isinstance(value, _dt.datetime):
        return value
    if kind is Kind.DATE and isinstance(value, _dt.date) and not isinstance(value, _dt.datetime):
        return value
    if kind is Kind.TIME and isinstance(value, _dt.time):
        return value
    if spec.is_collection and isinstance(value, (list, tuple, set, frozenset)):
        items = [coerce_value(item, spec.element) for item in value]  # type: ignore[arg-type]
        return set(items) if kind is Kind.SET else items
    raise CoercionError(value, spec.label, f"unexpected {type(value).__name__}")
