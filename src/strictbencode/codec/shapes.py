"""Destination shapes for the binder.

A destination is any type or typing annotation the caller wants a decoded
value bound into (``int``, ``list[str]``, ``dict[str, Int8]``, a record class,
``Optional[bytes]`` ...). ``resolve_shape`` turns an annotation into a frozen
``Shape`` once and caches it, so binding never re-inspects annotations.
"""

from __future__ import annotations

import collections.abc
import enum
import functools
import types
from dataclasses import dataclass, field
from typing import Annotated, Any, Optional, Union, get_args, get_origin

from pydantic import BaseModel

from ..models.fields import IntWidth
from .values import VALUE_TYPES

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)
_UNION_ORIGINS = (Union, types.UnionType)


class ShapeKind(enum.Enum):
    """Kinds of destination the binder knows how to fill."""

    ANY = "any"
    VALUE = "value"
    BYTES = "bytes"
    TEXT = "text"
    INTEGER = "integer"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    RECORD = "record"
    OPTIONAL = "optional"
    INVALID = "invalid"


@dataclass(frozen=True)
class Shape:
    """Resolved description of a destination annotation.

    Attributes:
        kind: Destination kind
        annotation: The annotation this shape was resolved from
        python_type: Concrete container, record, bytes or integer enum type to
            build, if any
        width: Integer width for INTEGER shapes (None means signed 64-bit)
        key_type: ``str`` or ``bytes`` for MAPPING shapes, None if the key
            type cannot hold byte-string keys
        elem: Element shape (SEQUENCE), value shape (MAPPING) or inner
            shape (OPTIONAL)
        reason: Why an INVALID shape cannot be bound
    """

    kind: ShapeKind
    annotation: Any = field(compare=False)
    python_type: Optional[type] = None
    width: Optional[IntWidth] = None
    key_type: Optional[type] = None
    elem: Optional["Shape"] = None
    reason: str = ""

    @property
    def name(self) -> str:
        if self.width is not None:
            return self.width.name
        if self.kind is ShapeKind.INTEGER and self.python_type is int:
            return "int64"
        return getattr(self.annotation, "__name__", None) or repr(self.annotation)

    @property
    def nillable(self) -> bool:
        return self.kind in (ShapeKind.OPTIONAL, ShapeKind.ANY)


ANY_SHAPE = Shape(ShapeKind.ANY, Any)


def is_destination(annotation: Any) -> bool:
    """Return True if ``annotation`` looks like a type or typing construct."""
    if annotation is Any or isinstance(annotation, type):
        return True
    return get_origin(annotation) is not None


def resolve_shape(annotation: Any) -> Shape:
    """Resolve ``annotation`` to a Shape, using the cache when hashable.

    Annotations carrying unhashable ``Annotated`` metadata are resolved on
    every call.
    """
    try:
        hash(annotation)
    except TypeError:
        return _resolve(annotation)
    return _resolve_cached(annotation)


@functools.lru_cache(maxsize=1024)
def _resolve_cached(annotation: Any) -> Shape:
    return _resolve(annotation)


def _invalid(annotation: Any, reason: str) -> Shape:
    return Shape(ShapeKind.INVALID, annotation, reason=reason)


def _resolve(annotation: Any) -> Shape:
    if annotation is Any or annotation is object:
        return ANY_SHAPE

    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        base, *metadata = args
        inner = resolve_shape(base)
        width = next((m for m in metadata if isinstance(m, IntWidth)), None)
        if width is None:
            return inner
        if inner.kind is not ShapeKind.INTEGER:
            return _invalid(annotation, "IntWidth applies only to int")
        return Shape(ShapeKind.INTEGER, annotation, python_type=inner.python_type, width=width)

    if origin in _UNION_ORIGINS:
        if set(args) == set(VALUE_TYPES):
            return Shape(ShapeKind.VALUE, annotation)
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1 and len(args) == 2:
            return Shape(ShapeKind.OPTIONAL, annotation, elem=resolve_shape(non_none[0]))
        return _invalid(annotation, "unions other than Optional[...] are not supported")

    if origin in _SEQUENCE_ORIGINS:
        container = tuple if origin is tuple else list
        if container is tuple and args and (len(args) != 2 or args[1] is not Ellipsis):
            return _invalid(annotation, "only variable-length tuple[T, ...] is supported")
        elem = resolve_shape(args[0]) if args else ANY_SHAPE
        return Shape(ShapeKind.SEQUENCE, annotation, python_type=container, elem=elem)

    if origin in _MAPPING_ORIGINS:
        key, value = args if args else (Any, Any)
        return Shape(
            ShapeKind.MAPPING,
            annotation,
            python_type=dict,
            key_type=_key_type(key),
            elem=resolve_shape(value),
        )

    if origin is not None or not isinstance(annotation, type):
        return _invalid(annotation, f"unsupported destination {annotation!r}")

    # bool is a subclass of int, but the format has no boolean
    if annotation is bool:
        return _invalid(annotation, "bool has no bencode representation")
    if annotation is int:
        return Shape(ShapeKind.INTEGER, annotation, python_type=int)
    if issubclass(annotation, int) and issubclass(annotation, enum.Enum):
        return Shape(ShapeKind.INTEGER, annotation, python_type=annotation)
    if annotation is str:
        return Shape(ShapeKind.TEXT, annotation, python_type=str)
    if annotation in (bytes, bytearray):
        return Shape(ShapeKind.BYTES, annotation, python_type=annotation)
    if annotation in (list, tuple):
        return Shape(ShapeKind.SEQUENCE, annotation, python_type=annotation, elem=ANY_SHAPE)
    if annotation is dict:
        return Shape(
            ShapeKind.MAPPING, annotation, python_type=dict, key_type=bytes, elem=ANY_SHAPE
        )
    if annotation in VALUE_TYPES:
        return Shape(ShapeKind.VALUE, annotation, python_type=annotation)
    if issubclass(annotation, BaseModel):
        return Shape(ShapeKind.RECORD, annotation, python_type=annotation)

    return _invalid(annotation, f"unsupported destination type {annotation.__name__}")


def _key_type(key: Any) -> Optional[type]:
    if key is str or key is bytes:
        return key
    if key is Any:
        return bytes
    return None
