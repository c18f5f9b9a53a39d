"""Field helpers and integer width annotations.

``WireField`` attaches a bencode tag to a record field. ``IntWidth`` narrows
an integer destination below the default signed 64-bit range; the ``Int8``
.. ``UInt64`` aliases cover the common widths:

    >>> class Header(Record):
    ...     version: UInt8 = 0
    ...     offset: Int32 = WireField("off", default=0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, cast

from pydantic import Field
from pydantic.fields import FieldInfo

# Key under which the tag is stored in FieldInfo.json_schema_extra.
TAG_KEY = "bencode"


def WireField(tag: str, **kwargs: Any) -> FieldInfo:
    """Create a record field carrying a bencode tag.

    Tag syntax is ``key[,option]*`` with options ``required`` and
    ``omitempty``. An empty key keeps the field name as the wire key, and the
    tag ``-`` leaves the field out of the wire form entirely.

    Args:
        tag: Tag string, e.g. ``"piece length,required"``
        **kwargs: Additional Field() arguments (default, description, etc.)

    Returns:
        Pydantic FieldInfo suitable for use as a field default/metadata.

    Example:
        >>> class Info(Record):
        ...     piece_length: int = WireField("piece length", default=0)
        ...     name: str = WireField("name,required", default="")
    """
    return cast(FieldInfo, Field(json_schema_extra={TAG_KEY: tag}, **kwargs))


@dataclass(frozen=True)
class IntWidth:
    """Integer width constraint for binding, used as ``Annotated`` metadata.

    Attributes:
        bits: Width in bits (8, 16, 32 or 64)
        signed: Whether negative values are allowed
    """

    bits: int
    signed: bool = True

    def __post_init__(self) -> None:
        if self.bits not in (8, 16, 32, 64):
            raise ValueError(f"bits must be 8, 16, 32 or 64, got {self.bits}")

    @property
    def min_value(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max_value(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    @property
    def name(self) -> str:
        return f"{'int' if self.signed else 'uint'}{self.bits}"


Int8 = Annotated[int, IntWidth(8)]
Int16 = Annotated[int, IntWidth(16)]
Int32 = Annotated[int, IntWidth(32)]
Int64 = Annotated[int, IntWidth(64)]
UInt8 = Annotated[int, IntWidth(8, signed=False)]
UInt16 = Annotated[int, IntWidth(16, signed=False)]
UInt32 = Annotated[int, IntWidth(32, signed=False)]
UInt64 = Annotated[int, IntWidth(64, signed=False)]
