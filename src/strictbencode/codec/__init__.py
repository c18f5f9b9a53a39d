"""Canonical bencode codec for strictbencode.

This module provides the decoder, encoder, value model, type binder and
record metadata cache.
"""

from __future__ import annotations

from .binder import Binder
from .decoder import Decoder, decode, decode_into
from .encoder import Encoder, encode
from .schema import FieldDescriptor, StructMetadataCache, clear_cache, default_cache
from .values import ByteString, Dictionary, Integer, List, Value, ValueKind

__all__ = [
    "encode",
    "decode",
    "decode_into",
    "Decoder",
    "Encoder",
    "Binder",
    "StructMetadataCache",
    "FieldDescriptor",
    "default_cache",
    "clear_cache",
    "Value",
    "ValueKind",
    "ByteString",
    "Integer",
    "List",
    "Dictionary",
]
