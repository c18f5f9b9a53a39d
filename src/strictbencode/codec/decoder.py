"""Canonical bencode decoder.

This module provides the Decoder class, which reads one item at a time from
a binary stream, and the decode()/decode_into() helpers. Only canonical input
is accepted: integers and lengths without leading zeros, no ``-0``, and
dictionary keys in strictly ascending byte order.

The decoder never reads past the end of the item it is decoding, so several
items can be read back to back from one stream.
"""

from __future__ import annotations

import io
from typing import Any, BinaryIO, Iterator, Optional, Union

from structlog import get_logger

from ..exceptions import (
    DecodeError,
    ErrorKind,
    GrammarError,
    StructureError,
)
from .binder import Binder
from .constants import (
    DIGITS,
    INT64_MAX,
    INT64_MIN,
    MAX_DEPTH,
    MAX_INTEGER_LITERAL,
    MAX_LENGTH_LITERAL,
    READ_CHUNK_SIZE,
    TOKEN_COLON,
    TOKEN_DICT,
    TOKEN_END,
    TOKEN_INTEGER,
    TOKEN_LIST,
)
from .schema import StructMetadataCache
from .values import ByteString, Dictionary, Integer, List, Value, key_name

logger = get_logger()

BytesLike = Union[bytes, bytearray, memoryview]


class Decoder:
    """Decodes bencoded items from a binary stream.

    Example:
        >>> stream = io.BytesIO(b"i1e4:spamle")
        >>> dec = Decoder(stream)
        >>> dec.decode_next()
        Integer(value=1)
        >>> [item.to_python() for item in dec]
        [b'spam', []]

    Args:
        stream: Binary stream to read from (anything with ``read(n)``)
        max_depth: Maximum nesting of lists and dictionaries
    """

    def __init__(self, stream: BinaryIO, *, max_depth: int = MAX_DEPTH) -> None:
        self._stream = stream
        self.max_depth = max_depth
        self.log = logger.new()

    def decode_next(self) -> Value:
        """Decode exactly one item and leave the stream positioned after it.

        Raises:
            GrammarError: With kind NULL_ROOT_VALUE if the stream is already
                exhausted, or another grammar kind for malformed input
            StructureError: If dictionary keys are not canonical
        """
        lead = self._stream.read(1)
        if not lead:
            raise GrammarError(ErrorKind.NULL_ROOT_VALUE, "null root value")
        try:
            return self._decode_item(lead, 0)
        except DecodeError as err:
            self.log.debug("decode aborted", kind=err.kind.name, error=str(err))
            raise

    def __iter__(self) -> Iterator[Value]:
        """Yield items until the stream ends on an item boundary."""
        while True:
            try:
                yield self.decode_next()
            except GrammarError as err:
                if err.kind is ErrorKind.NULL_ROOT_VALUE:
                    return
                raise

    # ── Low-level reads ──────────────────────────────────────

    def _read_byte(self, context: str) -> bytes:
        byte = self._stream.read(1)
        if not byte:
            raise GrammarError(ErrorKind.UNEXPECTED_EOF, context)
        return byte

    def _read_exact(self, length: int) -> bytes:
        chunks = []
        remaining = length
        while remaining > 0:
            chunk = self._stream.read(min(remaining, READ_CHUNK_SIZE))
            if not chunk:
                got = length - remaining
                raise GrammarError(
                    ErrorKind.UNEXPECTED_EOF,
                    f"expected {length} bytes for string, got {got}",
                )
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    # ── Grammar ──────────────────────────────────────────────

    def _decode_item(self, lead: bytes, depth: int) -> Value:
        if lead in DIGITS:
            return self._decode_string(lead)
        if lead == TOKEN_INTEGER:
            return self._decode_integer()
        if lead == TOKEN_LIST:
            return self._decode_list(depth + 1)
        if lead == TOKEN_DICT:
            return self._decode_dict(depth + 1)
        raise GrammarError(ErrorKind.UNEXPECTED_TOKEN, f"unexpected token {lead!r}")

    def _decode_string(self, lead: bytes) -> ByteString:
        digits = bytearray(lead)
        while True:
            byte = self._read_byte("unterminated string length")
            if byte == TOKEN_COLON:
                break
            if byte not in DIGITS:
                raise GrammarError(
                    ErrorKind.SYNTAX_STRING_LENGTH,
                    f"invalid character {byte!r} in string length",
                )
            digits += byte
            if len(digits) > MAX_LENGTH_LITERAL:
                raise GrammarError(ErrorKind.SYNTAX_STRING_LENGTH, "string length too large")

        if len(digits) > 1 and digits[0:1] == b"0":
            raise GrammarError(
                ErrorKind.SYNTAX_STRING_LENGTH,
                f"invalid string length (leading zero): {digits.decode()}",
            )
        length = int(digits)
        if length > INT64_MAX:
            raise GrammarError(ErrorKind.SYNTAX_STRING_LENGTH, "string length too large")
        return ByteString(self._read_exact(length))

    def _decode_integer(self) -> Integer:
        literal = bytearray()
        while True:
            byte = self._read_byte("integer not terminated by 'e'")
            if byte == TOKEN_END:
                break
            literal += byte
            if len(literal) > MAX_INTEGER_LITERAL:
                raise GrammarError(ErrorKind.SYNTAX_INTEGER, "integer literal too long")

        text = literal.decode("ascii", errors="replace")
        if not literal:
            raise GrammarError(ErrorKind.SYNTAX_INTEGER, "empty integer")
        if text == "-0":
            raise GrammarError(ErrorKind.SYNTAX_INTEGER, "invalid integer format: -0")

        digits = literal[1:] if literal[0:1] == b"-" else literal
        if not digits or any(b not in DIGITS for b in digits):
            raise GrammarError(ErrorKind.SYNTAX_INTEGER, f"cannot parse integer {text!r}")
        if len(digits) > 1 and digits[0:1] == b"0":
            raise GrammarError(
                ErrorKind.SYNTAX_INTEGER, f"invalid integer format (leading zero): {text}"
            )

        value = int(literal)
        if value < INT64_MIN or value > INT64_MAX:
            raise GrammarError(ErrorKind.SYNTAX_INTEGER, f"integer {text} overflows int64")
        return Integer(value)

    def _check_depth(self, depth: int) -> None:
        if depth > self.max_depth:
            raise StructureError(
                ErrorKind.NESTING_TOO_DEEP, f"nesting exceeds max depth {self.max_depth}"
            )

    def _decode_list(self, depth: int) -> List:
        self._check_depth(depth)
        items = []
        while True:
            lead = self._read_byte("list not terminated by 'e'")
            if lead == TOKEN_END:
                return List(tuple(items))
            items.append(self._decode_item(lead, depth))

    def _decode_dict(self, depth: int) -> Dictionary:
        self._check_depth(depth)
        entries = []
        prev: Optional[bytes] = None
        while True:
            lead = self._read_byte("dictionary not terminated by 'e'")
            if lead == TOKEN_END:
                return Dictionary(tuple(entries))

            key_item = self._decode_item(lead, depth)
            if not isinstance(key_item, ByteString):
                raise StructureError(
                    ErrorKind.DICT_KEY_NOT_STRING,
                    f"dictionary key of kind {key_item.kind.value} is not a byte string",
                )
            key = key_item.data
            name = key_name(key)
            if prev is not None:
                if key == prev:
                    raise StructureError(
                        ErrorKind.DICT_KEY_DUPLICATE, "duplicate key in dictionary", field=name
                    )
                if key < prev:
                    raise StructureError(
                        ErrorKind.DICT_KEY_ORDER,
                        f"key {name!r} is not lexicographically after {key_name(prev)!r}",
                        field=name,
                    )

            entries.append((key, self._decode_value(key, depth)))
            prev = key

    def _decode_value(self, key: bytes, depth: int) -> Value:
        name = key_name(key)
        lead = self._stream.read(1)
        if not lead:
            raise StructureError(
                ErrorKind.DICT_VALUE_MISSING,
                "missing value",
                field=name,
                cause=GrammarError(ErrorKind.UNEXPECTED_EOF, "unexpected end of input"),
            )
        try:
            return self._decode_item(lead, depth)
        except DecodeError as err:
            raise err.wrap("decoding value", field=name) from err


def _open(data: Union[BytesLike, BinaryIO]) -> tuple[BinaryIO, bool]:
    if isinstance(data, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(data)), True
    return data, False


def decode(data: Union[BytesLike, BinaryIO], *, max_depth: int = MAX_DEPTH) -> Value:
    """Decode one item into the generic value model.

    Args:
        data: Encoded bytes, or a binary stream positioned at an item
        max_depth: Maximum nesting of lists and dictionaries

    Returns:
        The decoded Value tree

    Raises:
        DecodeError: If the input is not exactly one canonical item. For
            bytes input, trailing data after the item is an error; a stream
            is left positioned after the item.

    Examples:
        >>> decode(b"d3:bar4:spam3:fooi42ee").to_python()
        {b'bar': b'spam', b'foo': 42}
    """
    stream, whole = _open(data)
    value = Decoder(stream, max_depth=max_depth).decode_next()
    if whole and stream.read(1):
        raise GrammarError(ErrorKind.TRAILING_DATA, "trailing data after root value")
    return value


def decode_into(
    data: Union[BytesLike, BinaryIO],
    destination: Any,
    *,
    cache: Optional[StructMetadataCache] = None,
    max_depth: int = MAX_DEPTH,
) -> Any:
    """Decode one item and bind it into ``destination``.

    Args:
        data: Encoded bytes, or a binary stream positioned at an item
        destination: Type or typing annotation to bind into (``int``,
            ``list[str]``, a record class, ``Optional[bytes]`` ...)
        cache: Record metadata cache, defaults to the process-wide cache
        max_depth: Maximum nesting of lists and dictionaries

    Returns:
        A new object of the destination shape

    Raises:
        UsageError: If ``destination`` is not a type or annotation
        DecodeError: If the input is not a canonical item
        BindError: If the item does not fit the destination

    Examples:
        ```python
        from strictbencode import Record, WireField, decode_into

        class Person(Record):
            name: str = WireField("name,required", default="")
            age: int = 0

        person = decode_into(b"d3:agei30e4:name4:Johne", Person)
        ```
    """
    binder = Binder(cache=cache)
    binder.check_destination(destination)
    value = decode(data, max_depth=max_depth)
    return binder.bind(value, destination)
