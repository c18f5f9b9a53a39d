"""Pydantic record modeling for strictbencode.

This module provides the Record base class, the WireField tag helper and the
integer width annotations used by the binder.
"""

from __future__ import annotations

from .base import Record
from .fields import (
    Int8,
    Int16,
    Int32,
    Int64,
    IntWidth,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    WireField,
)

__all__ = [
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
]
