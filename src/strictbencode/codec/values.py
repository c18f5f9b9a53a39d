"""Generic value model produced by the decoder.

Any decoded item is exactly one of four immutable variants:

    ByteString: raw bytes, length explicit
    Integer: signed 64-bit integer
    List: ordered tuple of values
    Dictionary: (key, value) pairs with unique byte-string keys

A value tree is built fresh for each decode call and never mutated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, Iterator, Optional, Tuple, Union


class ValueKind(enum.Enum):
    """Discriminator for the four value variants."""

    BYTESTRING = "bytestring"
    INTEGER = "integer"
    LIST = "list"
    DICTIONARY = "dictionary"


@dataclass(frozen=True)
class ByteString:
    """A length-prefixed byte sequence."""

    data: bytes

    kind: ClassVar[ValueKind] = ValueKind.BYTESTRING

    def to_python(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class Integer:
    """A canonical signed 64-bit integer."""

    value: int

    kind: ClassVar[ValueKind] = ValueKind.INTEGER

    def to_python(self) -> int:
        return self.value


@dataclass(frozen=True)
class List:
    """An ordered sequence of values."""

    items: Tuple["Value", ...] = ()

    kind: ClassVar[ValueKind] = ValueKind.LIST

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator["Value"]:
        return iter(self.items)

    def __getitem__(self, index: int) -> "Value":
        return self.items[index]

    def to_python(self) -> list[Any]:
        return [item.to_python() for item in self.items]


@dataclass(frozen=True)
class Dictionary:
    """A mapping of byte-string keys to values.

    ``entries`` keeps the pairs in the order they were decoded, which for
    decoder output is strictly ascending by key bytes. Lookup is by key.

    Example:
        >>> d = Dictionary(((b"bar", ByteString(b"spam")), (b"foo", Integer(42))))
        >>> d[b"foo"]
        Integer(value=42)
        >>> d.to_python()
        {b'bar': b'spam', b'foo': 42}
    """

    entries: Tuple[Tuple[bytes, "Value"], ...] = ()
    _index: Dict[bytes, "Value"] = field(
        init=False, repr=False, compare=False, default_factory=dict
    )

    kind: ClassVar[ValueKind] = ValueKind.DICTIONARY

    def __post_init__(self) -> None:
        self._index.update(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __getitem__(self, key: bytes) -> "Value":
        return self._index[key]

    def get(self, key: bytes, default: Optional["Value"] = None) -> Optional["Value"]:
        return self._index.get(key, default)

    def keys(self) -> list[bytes]:
        return [key for key, _ in self.entries]

    def items(self) -> Tuple[Tuple[bytes, "Value"], ...]:
        return self.entries

    def to_python(self) -> dict[bytes, Any]:
        return {key: value.to_python() for key, value in self.entries}


Value = Union[ByteString, Integer, List, Dictionary]

VALUE_TYPES: Tuple[type, ...] = (ByteString, Integer, List, Dictionary)


def key_name(key: bytes) -> str:
    """Render a dictionary key for error messages and field names."""
    return key.decode("utf-8", errors="backslashreplace")
