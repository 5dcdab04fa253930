"""
Schema resolution for flat record types.

A record is a dataclass whose fields carry their wire layout in
``dataclasses.field(metadata=...)``. The recognised attributes are:

``len``
    Fixed read size, or the scan cap when combined with ``sep``.
``sep``
    Single separator code point (``int`` or one-character ``str``).
``padding``
    Padding character. Stored on the descriptor but never stripped.
``type``
    Legacy kind override (``"int"``); normally the kind comes from the
    field annotation.
``count``
    Explicit element count for list fields.

:func:`resolve` turns a record type into an ordered tuple of
:class:`FieldDescriptor` and caches it; :func:`record` does the same at class
creation time and makes every field default-constructible so an empty target
can be allocated with ``RecordType()``.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import re
import sys
import typing
import weakref
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeVar

from .errors import InvalidTargetShape, SchemaError

logger = logging.getLogger(__name__)

T = TypeVar("T")

ATTR_TYPE = "type"
ATTR_LEN = "len"
ATTR_SEP = "sep"
ATTR_PADDING = "padding"
ATTR_COUNT = "count"

_UNSIGNED_RE = re.compile(r"\+?[0-9]+")
_MAX_CODE_POINT = 0x10FFFF
_SURROGATES = range(0xD800, 0xE000)


class FieldKind(str, Enum):
    """Decoded value kinds a field can resolve to."""

    INTEGER = "int"
    TEXT = "str"
    NESTED = "nested"
    LIST_OF_INTEGER = "list[int]"
    LIST_OF_TEXT = "list[str]"

    @property
    def is_list(self) -> bool:
        return self in (FieldKind.LIST_OF_INTEGER, FieldKind.LIST_OF_TEXT)

    @property
    def element(self) -> "FieldKind":
        if self is FieldKind.LIST_OF_INTEGER:
            return FieldKind.INTEGER
        if self is FieldKind.LIST_OF_TEXT:
            return FieldKind.TEXT
        return self


_LEGACY_TYPES: Dict[str, FieldKind] = {
    "int": FieldKind.INTEGER,
}


@dataclass(frozen=True, slots=True)
class FieldDescriptor:
    name: str
    kind: FieldKind
    length: Optional[int] = None
    separator: Optional[int] = None  # code point
    padding: Optional[str] = None  # accepted, never applied
    record_type: Optional[type] = None
    count: Optional[int] = None

    @property
    def strategy(self) -> str:
        if self.kind is FieldKind.NESTED:
            return "nested"
        if self.separator is not None:
            return "separator"
        return "length"


def field(
    *,
    len: Optional[int | str] = None,  # noqa: A002
    sep: Optional[int | str] = None,
    padding: Optional[str] = None,
    type: Optional[str] = None,  # noqa: A002
    count: Optional[int] = None,
    metadata: Optional[Mapping[str, Any]] = None,
    **kwargs: Any,
) -> Any:
    """Declare a record field; extra keyword arguments go to ``dataclasses.field``."""
    attrs: Dict[str, Any] = dict(metadata or {})
    for key, value in (
        (ATTR_LEN, len),
        (ATTR_SEP, sep),
        (ATTR_PADDING, padding),
        (ATTR_TYPE, type),
        (ATTR_COUNT, count),
    ):
        if value is not None:
            attrs[key] = value
    return dataclasses.field(metadata=attrs, **kwargs)


def _parse_unsigned(attr: str, raw: Any) -> Optional[int]:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise SchemaError(f"Unable to parse {attr} attribute {raw!r}")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and _UNSIGNED_RE.fullmatch(raw.strip()):
        value = int(raw.strip())
    else:
        raise SchemaError(f"Unable to parse {attr} attribute {raw!r}")
    if value < 0:
        raise SchemaError(f"{attr} attribute must be non-negative, got {value}")
    return value


def _parse_separator(name: str, raw: Any) -> Optional[int]:
    if raw is None or raw == "" or raw == b"":
        return None
    code: Optional[int] = None
    if isinstance(raw, bool):
        code = None
    elif isinstance(raw, int):
        code = raw
    elif isinstance(raw, str) and len(raw) == 1:
        code = ord(raw)
    elif isinstance(raw, (bytes, bytearray)) and len(raw) == 1:
        code = raw[0]
    if code is None or not 0 <= code <= _MAX_CODE_POINT or code in _SURROGATES:
        logger.warning(
            "Ignoring sep attribute %r on field %s: not a single code point",
            raw,
            name,
        )
        return None
    return code or None


def _parse_padding(name: str, raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, str) and len(raw) == 1:
        return raw
    logger.warning(
        "Ignoring padding attribute %r on field %s: not a single character",
        raw,
        name,
    )
    return None


def _kind_for(annotation: Any) -> Optional[Tuple[FieldKind, Optional[type]]]:
    if annotation is int:
        return FieldKind.INTEGER, None
    if annotation is str:
        return FieldKind.TEXT, None
    if isinstance(annotation, type) and dataclasses.is_dataclass(annotation):
        return FieldKind.NESTED, annotation
    if typing.get_origin(annotation) is list:
        args = typing.get_args(annotation)
        if args == (int,):
            return FieldKind.LIST_OF_INTEGER, None
        if args == (str,):
            return FieldKind.LIST_OF_TEXT, None
    return None


def _override_kind(raw: Any) -> Optional[FieldKind]:
    if raw is None:
        return None
    if isinstance(raw, FieldKind):
        return raw
    kind = _LEGACY_TYPES.get(str(raw).strip().lower())
    if kind is None:
        raise SchemaError(f"Unknown type attribute {raw!r}")
    return kind


def _apply_override(
    annotation: Any, override: Optional[FieldKind]
) -> Optional[Tuple[FieldKind, Optional[type]]]:
    # The override only replaces scalar kinds; list and nested annotations
    # keep their shape and must agree with it.
    resolved = _kind_for(annotation)
    if override is None or override is FieldKind.NESTED:
        return resolved
    if resolved is None or resolved[0] in (FieldKind.INTEGER, FieldKind.TEXT):
        return override, None
    kind = resolved[0]
    if kind is override or (kind.is_list and kind.element is override):
        return resolved
    raise SchemaError(
        f"type attribute {override.value!r} conflicts with field type {annotation!r}"
    )


def _infer_kind(
    annotation: Any, attrs: Mapping[str, Any]
) -> Tuple[FieldKind, Optional[type]]:
    resolved = _apply_override(annotation, _override_kind(attrs.get(ATTR_TYPE)))
    if resolved is None:
        raise SchemaError(f"Unsupported field type {annotation!r}")
    return resolved


def describe_field(
    name: str, annotation: Any, attrs: Mapping[str, Any]
) -> FieldDescriptor:
    kind, record_type = _infer_kind(annotation, attrs)
    if kind is FieldKind.NESTED:
        return FieldDescriptor(name=name, kind=kind, record_type=record_type)

    length = _parse_unsigned(ATTR_LEN, attrs.get(ATTR_LEN))
    separator = _parse_separator(name, attrs.get(ATTR_SEP))
    padding = _parse_padding(name, attrs.get(ATTR_PADDING))
    count = _parse_unsigned(ATTR_COUNT, attrs.get(ATTR_COUNT))
    if count is not None and not kind.is_list:
        raise SchemaError(f"count attribute only applies to list fields, not {kind.value}")
    if length is None and separator is None:
        raise SchemaError("field needs a len or sep attribute")
    return FieldDescriptor(
        name=name,
        kind=kind,
        length=length,
        separator=separator,
        padding=padding,
        count=count,
    )


_SCHEMA_CACHE: weakref.WeakKeyDictionary[type, Tuple[FieldDescriptor, ...]] = (
    weakref.WeakKeyDictionary()
)
# Type hints of @record classes, evaluated in the scope that defined them.
_RECORD_HINTS: weakref.WeakKeyDictionary[type, Dict[str, Any]] = (
    weakref.WeakKeyDictionary()
)


def _type_hints(
    structure_type: type, localns: Optional[Mapping[str, Any]] = None
) -> Dict[str, Any]:
    known = _RECORD_HINTS.get(structure_type)
    if known is not None:
        return known
    try:
        return typing.get_type_hints(
            structure_type, localns=dict(localns) if localns is not None else None
        )
    except NameError as exc:
        err = SchemaError(f"Unable to resolve annotations: {exc}")
        raise err from exc


def resolve(structure_type: type) -> Tuple[FieldDescriptor, ...]:
    """Return the ordered field descriptors of a record type."""
    if not isinstance(structure_type, type) or not dataclasses.is_dataclass(
        structure_type
    ):
        raise InvalidTargetShape(f"{structure_type!r} is not a dataclass type")
    cached = _SCHEMA_CACHE.get(structure_type)
    if cached is not None:
        return cached

    hints = _type_hints(structure_type)
    descriptors: List[FieldDescriptor] = []
    for fld in dataclasses.fields(structure_type):
        try:
            descriptors.append(
                describe_field(fld.name, hints.get(fld.name, fld.type), fld.metadata)
            )
        except SchemaError as exc:
            exc.add_context(structure_type.__name__, fld.name)
            raise
    schema = tuple(descriptors)
    _SCHEMA_CACHE[structure_type] = schema
    return schema


def register(structure_type: type) -> type:
    resolve(structure_type)
    return structure_type


def clear_schema_cache() -> None:
    _SCHEMA_CACHE.clear()


def _blank_default(
    annotation: Any, attrs: Mapping[str, Any]
) -> Tuple[Any, Optional[Callable[[], Any]]]:
    raw = attrs.get(ATTR_TYPE)
    if isinstance(raw, FieldKind):
        override: Optional[FieldKind] = raw
    else:
        override = _LEGACY_TYPES.get(str(raw).strip().lower())
    resolved = _kind_for(annotation)
    if override is not None and override is not FieldKind.NESTED:
        if resolved is None or resolved[0] in (FieldKind.INTEGER, FieldKind.TEXT):
            resolved = (override, None)
    if resolved is None:
        return dataclasses.MISSING, None
    kind, record_type = resolved
    if kind is FieldKind.INTEGER:
        return 0, None
    if kind is FieldKind.TEXT:
        return "", None
    if kind is FieldKind.NESTED:
        return dataclasses.MISSING, record_type
    return dataclasses.MISSING, list


def _fill_defaults(cls: type, hints: Mapping[str, Any]) -> None:
    for name in inspect.get_annotations(cls):
        annotation = hints.get(name)
        if typing.get_origin(annotation) is typing.ClassVar:
            continue
        current = cls.__dict__.get(name, dataclasses.MISSING)
        if isinstance(current, dataclasses.Field):
            if (
                current.default is not dataclasses.MISSING
                or current.default_factory is not dataclasses.MISSING
            ):
                continue
            default, factory = _blank_default(annotation, current.metadata)
            if factory is not None:
                current.default_factory = factory
            elif default is not dataclasses.MISSING:
                current.default = default
        elif current is dataclasses.MISSING:
            default, factory = _blank_default(annotation, {})
            if factory is not None:
                setattr(cls, name, dataclasses.field(default_factory=factory))
            elif default is not dataclasses.MISSING:
                setattr(cls, name, default)


@typing.overload
def record(cls: type[T], /) -> type[T]: ...


@typing.overload
def record(cls: None = None, /, **dataclass_kwargs: Any) -> Callable[[type[T]], type[T]]: ...


def record(cls: Any = None, /, **dataclass_kwargs: Any) -> Any:
    """
    Class decorator declaring a flat record.

    Applies ``dataclasses.dataclass`` (forwarding keyword arguments), gives
    every field an empty default and resolves the schema eagerly so metadata
    mistakes surface when the class is defined. Annotations are evaluated in
    the scope that defines the class, so records local to a function may nest
    each other.
    """

    def wrap(target: type[T], localns: Mapping[str, Any]) -> type[T]:
        hints = _type_hints(target, localns)
        _fill_defaults(target, hints)
        built = dataclasses.dataclass(target, **dataclass_kwargs)
        _RECORD_HINTS[built] = hints
        resolve(built)
        return built

    if cls is None:

        def decorate(target: type[T]) -> type[T]:
            return wrap(target, sys._getframe(1).f_locals)

        return decorate
    return wrap(cls, sys._getframe(1).f_locals)


__all__ = [
    "ATTR_COUNT",
    "ATTR_LEN",
    "ATTR_PADDING",
    "ATTR_SEP",
    "ATTR_TYPE",
    "FieldDescriptor",
    "FieldKind",
    "clear_schema_cache",
    "describe_field",
    "field",
    "record",
    "register",
    "resolve",
]
