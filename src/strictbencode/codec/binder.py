"""Binding of generic values into typed destinations.

The Binder takes a decoded Value tree and a destination annotation and builds
a new object of that shape: ``bytes``/``str`` from byte strings, width-checked
``int`` from integers, lists and tuples from lists, and dicts or pydantic
records from dictionaries. Destination annotations are resolved to shapes
once (see shapes.py) and dispatched through a handler table.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from pydantic import BaseModel, ValidationError

from ..exceptions import BindError, ErrorKind, UsageError
from .constants import INT64_MAX, INT64_MIN
from .schema import FieldDescriptor, StructMetadataCache, default_cache
from .shapes import Shape, ShapeKind, is_destination, resolve_shape
from .values import ByteString, Dictionary, Integer, List, Value, key_name


class Binder:
    """Assigns Value trees into typed destinations.

    Example:
        >>> binder = Binder()
        >>> binder.bind(decode(b"l4:spam4:eggse"), list[str])
        ['spam', 'eggs']

    Args:
        cache: Record metadata cache, defaults to the process-wide cache
    """

    def __init__(self, cache: Optional[StructMetadataCache] = None) -> None:
        self.cache = cache if cache is not None else default_cache
        self._handlers: Dict[ShapeKind, Callable[[Value, Shape], Any]] = {
            ShapeKind.ANY: self._bind_any,
            ShapeKind.VALUE: self._bind_value,
            ShapeKind.BYTES: self._bind_bytes,
            ShapeKind.TEXT: self._bind_text,
            ShapeKind.INTEGER: self._bind_integer,
            ShapeKind.SEQUENCE: self._bind_sequence,
            ShapeKind.MAPPING: self._bind_mapping,
            ShapeKind.RECORD: self._bind_record,
            ShapeKind.OPTIONAL: self._bind_optional,
            ShapeKind.INVALID: self._bind_invalid,
        }

    def check_destination(self, destination: Any) -> None:
        """Raise UsageError unless ``destination`` is a type or annotation."""
        if not is_destination(destination):
            raise UsageError(
                ErrorKind.USAGE,
                f"expected a destination type, got {type(destination).__name__} instance",
            )

    def bind(self, value: Optional[Value], destination: Any) -> Any:
        """Bind ``value`` into a new object of the ``destination`` shape.

        Args:
            value: Decoded value, or None for an absent value
            destination: Type or typing annotation

        Returns:
            The bound object

        Raises:
            UsageError: If ``destination`` is not a type or annotation
            BindError: If ``value`` does not fit the destination
        """
        self.check_destination(destination)
        return self._bind(value, resolve_shape(destination))

    def zero_value(self, destination: Any) -> Any:
        """Return the zero value of a destination (0, "", b"", [], {}, None ...)."""
        self.check_destination(destination)
        return self._zero(resolve_shape(destination))

    def _bind(self, value: Optional[Value], shape: Shape) -> Any:
        if value is None:
            if shape.nillable:
                return None
            raise BindError(
                ErrorKind.UNMARSHAL_TO_NIL, f"cannot assign nil to non-nillable type {shape.name}"
            )
        return self._handlers[shape.kind](value, shape)

    def _mismatch(self, value: Value, shape: Shape) -> BindError:
        return BindError(
            ErrorKind.UNMARSHAL_TYPE,
            f"cannot assign {value.kind.value} to {shape.kind.value} destination {shape.name}",
        )

    # ── Handlers ─────────────────────────────────────────────

    def _bind_any(self, value: Value, shape: Shape) -> Any:
        return value.to_python()

    def _bind_value(self, value: Value, shape: Shape) -> Value:
        if shape.python_type is not None and not isinstance(value, shape.python_type):
            raise self._mismatch(value, shape)
        return value

    def _bind_bytes(self, value: Value, shape: Shape) -> Any:
        if not isinstance(value, ByteString):
            raise self._mismatch(value, shape)
        return bytearray(value.data) if shape.python_type is bytearray else value.data

    def _bind_text(self, value: Value, shape: Shape) -> str:
        if not isinstance(value, ByteString):
            raise self._mismatch(value, shape)
        try:
            return value.data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise BindError(
                ErrorKind.UNMARSHAL_TYPE, "byte string is not valid UTF-8 text", cause=err
            ) from err

    def _bind_integer(self, value: Value, shape: Shape) -> int:
        if not isinstance(value, Integer):
            raise self._mismatch(value, shape)

        number = value.value
        width = shape.width
        low, high = (width.min_value, width.max_value) if width else (INT64_MIN, INT64_MAX)
        if width is not None and not width.signed and number < 0:
            raise BindError(
                ErrorKind.UNMARSHAL_TYPE,
                f"cannot assign negative value {number} to unsigned type {shape.name}",
            )
        if number < low or number > high:
            raise BindError(
                ErrorKind.UNMARSHAL_OVERFLOW, f"value {number} overflows {shape.name}"
            )
        if shape.python_type is None or shape.python_type is int:
            return number
        return self._enum_member(shape.python_type, number)

    def _enum_member(self, enum_type: type, number: int) -> Any:
        try:
            return enum_type(number)
        except ValueError as err:
            raise BindError(
                ErrorKind.UNMARSHAL_TYPE,
                f"value {number} is not a member of {enum_type.__name__}",
                cause=err,
            ) from err

    def _bind_sequence(self, value: Value, shape: Shape) -> Any:
        if not isinstance(value, List):
            raise self._mismatch(value, shape)

        assert shape.elem is not None
        items = []
        for index, item in enumerate(value.items):
            try:
                items.append(self._bind(item, shape.elem))
            except BindError as err:
                raise err.wrap(f"decoding list element {index}", field=str(index)) from err
        return tuple(items) if shape.python_type is tuple else items

    def _bind_mapping(self, value: Value, shape: Shape) -> Dict[Any, Any]:
        # Key type is checked first so that no value is bound into a bad map
        if shape.key_type is None:
            raise BindError(
                ErrorKind.UNMARSHAL_MAP_KEY,
                f"map keys must be str or bytes for destination {shape.name}",
            )
        if not isinstance(value, Dictionary):
            raise self._mismatch(value, shape)

        assert shape.elem is not None
        result: Dict[Any, Any] = {}
        for raw_key, item in value.entries:
            name = key_name(raw_key)
            if shape.key_type is str:
                try:
                    key: Any = raw_key.decode("utf-8")
                except UnicodeDecodeError as err:
                    raise BindError(
                        ErrorKind.UNMARSHAL_MAP_KEY,
                        "dictionary key is not valid UTF-8 text",
                        field=name,
                        cause=err,
                    ) from err
            else:
                key = raw_key
            try:
                result[key] = self._bind(item, shape.elem)
            except BindError as err:
                raise err.wrap(f"decoding map value for key {name!r}", field=name) from err
        return result

    def _bind_record(self, value: Value, shape: Shape) -> BaseModel:
        if not isinstance(value, Dictionary):
            raise self._mismatch(value, shape)

        record_type = shape.python_type
        assert record_type is not None
        values: Dict[str, Any] = {}
        for descriptor in self.cache.resolve(record_type):
            item = value.get(descriptor.key_bytes)
            if item is None and descriptor.required:
                raise BindError(
                    ErrorKind.REQUIRED_FIELD_MISSING,
                    f"required field {descriptor.key!r} is missing",
                    field=descriptor.key,
                )
            try:
                if item is None:
                    values[descriptor.name] = self.absent_value(descriptor)
                else:
                    values[descriptor.name] = self._bind(item, descriptor.shape)
            except BindError as err:
                raise err.wrap(
                    f"setting field {descriptor.name} (key {descriptor.key!r})",
                    field=descriptor.key,
                ) from err

        return self._construct(record_type, values)

    def _bind_optional(self, value: Value, shape: Shape) -> Any:
        assert shape.elem is not None
        return self._bind(value, shape.elem)

    def _bind_invalid(self, value: Value, shape: Shape) -> Any:
        raise BindError(ErrorKind.UNMARSHAL_TO_INVALID, shape.reason)

    # ── Records and zero values ──────────────────────────────

    def _construct(self, record_type: type, values: Dict[str, Any]) -> BaseModel:
        try:
            return record_type(**values)
        except ValidationError as err:
            raise BindError(
                ErrorKind.UNMARSHAL_TYPE,
                f"failed to construct {record_type.__name__}",
                cause=err,
            ) from err

    def absent_value(self, descriptor: FieldDescriptor) -> Any:
        """Return what a record field is set to when its key is absent.

        The encoder omits a non-required field exactly when it holds this
        value, so omitted fields decode back unchanged.
        """
        return descriptor.absent_value(self._zero)

    def _zero(self, shape: Shape) -> Any:
        kind = shape.kind
        if kind in (ShapeKind.ANY, ShapeKind.OPTIONAL, ShapeKind.VALUE):
            return None
        if kind is ShapeKind.INTEGER:
            if shape.python_type is None or shape.python_type is int:
                return 0
            return self._enum_member(shape.python_type, 0)
        if kind is ShapeKind.TEXT:
            return ""
        if kind is ShapeKind.BYTES or kind is ShapeKind.SEQUENCE:
            assert shape.python_type is not None
            return shape.python_type()
        if kind is ShapeKind.MAPPING:
            return {}
        if kind is ShapeKind.RECORD:
            assert shape.python_type is not None
            values = {
                d.name: self.absent_value(d) for d in self.cache.resolve(shape.python_type)
            }
            return self._construct(shape.python_type, values)
        raise BindError(ErrorKind.UNMARSHAL_TO_INVALID, shape.reason)
