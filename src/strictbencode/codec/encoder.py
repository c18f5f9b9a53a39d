"""Canonical bencode encoder.

This module provides the Encoder class, which writes values to a binary sink,
and the encode() function that returns the encoding as bytes. Output is
always canonical: integers without leading zeros and dictionary keys in
ascending byte order.
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from typing import Any, BinaryIO, Optional

from pydantic import BaseModel
from structlog import get_logger

from ..exceptions import BindError, EncodeError, ErrorKind
from .binder import Binder
from .constants import (
    INT64_MAX,
    INT64_MIN,
    MAX_DEPTH,
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_LIST,
)
from .schema import FieldDescriptor, StructMetadataCache, default_cache
from .values import VALUE_TYPES, ByteString, Dictionary, Integer, List, key_name

logger = get_logger()


def is_zero(value: Any) -> bool:
    """Return True if ``value`` is the zero value of its type.

    None, 0, empty strings, byte strings, sequences and mappings are zero,
    and so is a record whose fields are all zero.
    """
    if value is None:
        return True
    if isinstance(value, ByteString):
        return not value.data
    if isinstance(value, Integer):
        return value.value == 0
    if isinstance(value, (int, str, bytes, bytearray, memoryview, list, tuple, Mapping, List)):
        return not value
    if isinstance(value, Dictionary):
        return len(value) == 0
    if isinstance(value, BaseModel):
        return all(is_zero(getattr(value, name)) for name in type(value).model_fields)
    return False


class Encoder:
    """Writes bencoded values to a binary sink.

    Example:
        >>> sink = io.BytesIO()
        >>> enc = Encoder(sink)
        >>> enc.encode_next(42)
        >>> enc.encode_next(["spam", b"eggs"])
        >>> sink.getvalue()
        b'i42el4:spam4:eggse'

    Args:
        sink: Binary sink (anything with ``write(bytes)``)
        cache: Record metadata cache, defaults to the process-wide cache
        max_depth: Maximum nesting of lists, mappings and records
    """

    def __init__(
        self,
        sink: BinaryIO,
        *,
        cache: Optional[StructMetadataCache] = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self._sink = sink
        self.cache = cache if cache is not None else default_cache
        self.max_depth = max_depth
        self._binder = Binder(cache=self.cache)
        self.log = logger.new()

    def encode_next(self, value: Any) -> None:
        """Encode one value and write it to the sink.

        Bytes already written when an error occurs are not rolled back.

        Raises:
            EncodeError: If the value is unsupported, a required record field
                holds its zero value, or the sink fails
        """
        self._encode(value, 0)

    def _write(self, data: bytes) -> None:
        try:
            self._sink.write(data)
        except Exception as err:
            self.log.debug("sink write failed", error=repr(err))
            raise EncodeError(
                ErrorKind.ENCODE_WRITE_FAILED, "writing to sink", cause=err
            ) from err

    def _write_string(self, data: bytes) -> None:
        self._write(b"%d:" % len(data))
        if data:
            self._write(data)

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise EncodeError(
                ErrorKind.ENCODE_UNSUPPORTED_TYPE,
                f"nesting exceeds max depth {self.max_depth}",
            )

    def _encode(self, value: Any, depth: int) -> None:
        # bool must be checked before int: the format has no boolean
        if isinstance(value, bool):
            raise EncodeError(ErrorKind.ENCODE_UNSUPPORTED_TYPE, "unsupported type: bool")

        if isinstance(value, VALUE_TYPES):
            self._encode_value(value, depth)
            return

        if isinstance(value, int):
            self._encode_int(int(value))
            return

        if isinstance(value, str):
            self._write_string(_utf8(value))
            return

        if isinstance(value, (bytes, bytearray, memoryview)):
            self._write_string(bytes(value))
            return

        if isinstance(value, (list, tuple)):
            self._encode_list(value, depth + 1)
            return

        if isinstance(value, Mapping):
            self._encode_mapping(value, depth + 1)
            return

        if isinstance(value, BaseModel):
            self._encode_record(value, depth + 1)
            return

        raise EncodeError(
            ErrorKind.ENCODE_UNSUPPORTED_TYPE, f"unsupported type: {type(value).__name__}"
        )

    def _encode_int(self, number: int) -> None:
        if number < INT64_MIN or number > INT64_MAX:
            raise EncodeError(
                ErrorKind.ENCODE_OVERFLOW, f"integer {number} outside int64 range"
            )
        self._write(b"i%de" % number)

    def _encode_list(self, items: Any, depth: int) -> None:
        self._check_depth(depth)
        self._write(TOKEN_LIST)
        for index, item in enumerate(items):
            self._encode_member(item, depth, f"encoding list element {index}", str(index))
        self._write(TOKEN_END)

    def _encode_mapping(self, mapping: Mapping[Any, Any], depth: int) -> None:
        self._check_depth(depth)

        # Keys are validated and sorted before the first byte is written
        pairs = []
        for key, item in mapping.items():
            if isinstance(key, str):
                key_bytes = _utf8(key)
            elif isinstance(key, (bytes, bytearray)):
                key_bytes = bytes(key)
            else:
                raise EncodeError(
                    ErrorKind.ENCODE_MAP_KEY,
                    f"unsupported map key type: {type(key).__name__}",
                )
            pairs.append((key_bytes, item))
        self._write_pairs(pairs, depth)

    def _encode_record(self, record: BaseModel, depth: int) -> None:
        self._check_depth(depth)

        # Descriptors are already sorted by wire key
        pairs = []
        for descriptor in self.cache.resolve(type(record)):
            item = getattr(record, descriptor.name)
            if descriptor.required:
                if is_zero(item):
                    raise EncodeError(
                        ErrorKind.ENCODE_REQUIRED_ZERO,
                        f"required field {descriptor.key!r} is missing",
                        field=descriptor.key,
                    )
            elif self._is_absent(descriptor, item):
                continue
            pairs.append((descriptor.key_bytes, item))

        self._write(TOKEN_DICT)
        for key, item in pairs:
            self._write_string(key)
            self._encode_member(item, depth, "encoding field", key_name(key))
        self._write(TOKEN_END)

    def _is_absent(self, descriptor: FieldDescriptor, item: Any) -> bool:
        # A field is left out only if decoding the record without its key
        # restores the same value
        try:
            absent = self._binder.absent_value(descriptor)
        except BindError:
            return False
        return bool(item == absent)

    def _encode_value(self, value: Any, depth: int) -> None:
        if isinstance(value, ByteString):
            self._write_string(value.data)
        elif isinstance(value, Integer):
            self._encode_int(value.value)
        elif isinstance(value, List):
            self._encode_list(value.items, depth + 1)
        else:
            self._check_depth(depth + 1)
            self._write_pairs(list(value.entries), depth + 1)

    def _write_pairs(self, pairs: list[tuple[bytes, Any]], depth: int) -> None:
        pairs.sort(key=lambda pair: pair[0])
        for (prev, _), (key, _) in zip(pairs, pairs[1:]):
            if prev == key:
                raise EncodeError(
                    ErrorKind.ENCODE_MAP_KEY, "duplicate map key", field=key_name(key)
                )

        self._write(TOKEN_DICT)
        for key, item in pairs:
            self._write_string(key)
            self._encode_member(item, depth, "encoding map value", key_name(key))
        self._write(TOKEN_END)

    def _encode_member(self, item: Any, depth: int, msg: str, field: str) -> None:
        try:
            self._encode(item, depth)
        except EncodeError as err:
            if err.kind is ErrorKind.ENCODE_WRITE_FAILED:
                raise
            raise err.wrap(msg, field=field) from err


def _utf8(text: str) -> bytes:
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as err:
        raise EncodeError(
            ErrorKind.ENCODE_UNSUPPORTED_TYPE, "string is not encodable as UTF-8", cause=err
        ) from err


def encode(value: Any, *, cache: Optional[StructMetadataCache] = None) -> bytes:
    """Encode a value to canonical bencode.

    Supported values: int, str, bytes, bytearray, memoryview, list, tuple,
    mappings with str/bytes keys, pydantic records and Value model instances.

    Args:
        value: Value to encode
        cache: Record metadata cache, defaults to the process-wide cache

    Returns:
        Canonical encoding

    Raises:
        EncodeError: If the value or a nested value cannot be encoded

    Examples:
        ```python
        from strictbencode import Record, WireField, encode

        class Person(Record):
            name: str = WireField("name,required", default="")
            age: int = 0

        encode(Person(name="x"))   # b"d4:name1:xe"
        encode({"zebra": 1, "apple": 2})   # b"d5:applei2e5:zebrai1ee"
        ```
    """
    buffer = io.BytesIO()
    Encoder(buffer, cache=cache).encode_next(value)
    return buffer.getvalue()
