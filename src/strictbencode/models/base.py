"""Base record class and strictbencode-specific Pydantic configuration.

Any pydantic ``BaseModel`` subclass can be encoded and decoded as a structured
record. ``Record`` is the recommended base: it forbids unknown attributes and
validates assignments, so a record always holds values the codec can encode.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Record(BaseModel):
    """Base class for structured records.

    Each field is encoded as one dictionary entry. The wire key defaults to
    the field name; use ``WireField`` to choose another key or to mark the
    field as required.

    Example:
        >>> from strictbencode import Int8, WireField, encode
        >>> class Person(Record):
        ...     name: str = WireField("name,required", default="")
        ...     age: Int8 = WireField("age", default=0)
        ...     nickname: str = ""
        >>> encode(Person(name="x"))
        b'd4:name1:xe'
    """

    model_config = ConfigDict(
        # Lax mode: bound values already have their final Python types
        strict=False,
        # Value model fields (ByteString, Dictionary ...) are plain dataclasses
        arbitrary_types_allowed=True,
        # Assignments are checked too, so a record stays encodable
        validate_assignment=True,
        # Unknown attributes would have no wire key
        extra="forbid",
    )
