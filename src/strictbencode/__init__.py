"""strictbencode: Canonical Bencode Codec

A Python library for the bencode serialization format (byte strings, signed
integers, lists and key-sorted dictionaries) that only accepts and only
produces the canonical encoding.

Key Features:
- Strict decoder: rejects leading zeros, ``-0`` and unsorted or duplicate keys
- Generic value model plus binding into typed destinations
- Pydantic-based structured records with tag-derived wire keys
- Streaming decoder and encoder over binary streams

Quick Start:
    >>> from strictbencode import Record, WireField, decode_into, encode
    >>>
    >>> class Person(Record):
    ...     name: str = WireField("name,required", default="")
    ...     age: int = 0
    >>>
    >>> data = encode(Person(name="John", age=30))
    >>> data
    b'd3:agei30e4:name4:Johne'
    >>> decode_into(data, Person)
    Person(name='John', age=30)
"""

from __future__ import annotations

from .codec import (
    Binder,
    ByteString,
    Decoder,
    Dictionary,
    Encoder,
    FieldDescriptor,
    Integer,
    List,
    StructMetadataCache,
    Value,
    ValueKind,
    clear_cache,
    decode,
    decode_into,
    encode,
)
from .exceptions import (
    BencodeError,
    BindError,
    DecodeError,
    EncodeError,
    ErrorKind,
    GrammarError,
    StructureError,
    UsageError,
)
from .models import (
    Int8,
    Int16,
    Int32,
    Int64,
    IntWidth,
    Record,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    WireField,
)

__version__ = "0.1.0"

__all__ = [
    # Core API
    "encode",
    "decode",
    "decode_into",
    "Decoder",
    "Encoder",
    "Binder",
    # Value model
    "Value",
    "ValueKind",
    "ByteString",
    "Integer",
    "List",
    "Dictionary",
    # Records
    "Record",
    "WireField",
    "IntWidth",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    # Metadata cache
    "StructMetadataCache",
    "FieldDescriptor",
    "clear_cache",
    # Exceptions
    "BencodeError",
    "DecodeError",
    "GrammarError",
    "StructureError",
    "BindError",
    "EncodeError",
    "UsageError",
    "ErrorKind",
    # Version
    "__version__",
]
