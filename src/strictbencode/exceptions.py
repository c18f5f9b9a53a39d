"""Exception hierarchy for strictbencode.

Every failure raised by the package is a BencodeError. The class tells the
category (decoding, binding, encoding, API usage) and ``kind`` tells the exact
condition, so callers can catch broadly and still match precisely:

    >>> try:
    ...     decode(b"i-0e")
    ... except GrammarError as err:
    ...     err.kind is ErrorKind.SYNTAX_INTEGER
    True

Errors raised while handling nested data keep the inner error as ``cause``
(and ``__cause__``) and add the offending field or key.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Fine-grained error conditions."""

    # Grammar
    SYNTAX = "syntax error"
    SYNTAX_INTEGER = "integer syntax error"
    SYNTAX_STRING_LENGTH = "string length syntax error"
    UNEXPECTED_TOKEN = "unexpected token"
    UNEXPECTED_EOF = "unexpected end of input"
    NULL_ROOT_VALUE = "null root value"
    TRAILING_DATA = "trailing data"

    # Structure
    DICT_KEY_NOT_STRING = "dictionary key is not a byte string"
    DICT_KEY_DUPLICATE = "duplicate dictionary key"
    DICT_KEY_ORDER = "dictionary key sort order error"
    DICT_VALUE_MISSING = "missing dictionary value"
    NESTING_TOO_DEEP = "nesting too deep"

    # Binding
    UNMARSHAL_TYPE = "unmarshal type mismatch"
    UNMARSHAL_OVERFLOW = "unmarshal overflow"
    UNMARSHAL_TO_NIL = "unmarshal to non-nillable"
    UNMARSHAL_TO_INVALID = "unmarshal to invalid destination"
    UNMARSHAL_MAP_KEY = "unmarshal map key type error"
    REQUIRED_FIELD_MISSING = "required field missing"

    # Encoding
    ENCODE_UNSUPPORTED_TYPE = "unsupported type"
    ENCODE_MAP_KEY = "map key is not textual"
    ENCODE_REQUIRED_ZERO = "required field holds zero value"
    ENCODE_WRITE_FAILED = "write failure"
    ENCODE_OVERFLOW = "integer out of range"

    # Usage
    USAGE = "API usage error"
    INVALID_RECORD = "invalid record definition"


class BencodeError(Exception):
    """Base exception for all strictbencode errors.

    Attributes:
        kind: The ErrorKind describing the condition
        msg: Human-readable description
        field: Offending field, key or list index, if any
        cause: Underlying error, if this error wraps another one
    """

    def __init__(
        self,
        kind: ErrorKind,
        msg: str = "",
        *,
        field: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        self.kind = kind
        self.msg = msg or kind.value
        self.field = field
        self.cause = cause
        super().__init__(self._describe())
        if cause is not None:
            self.__cause__ = cause

    def _describe(self) -> str:
        parts = []
        if self.field is not None:
            parts.append(f'field "{self.field}": ')
        parts.append(self.msg)
        if self.cause is not None:
            parts.append(": ")
            if isinstance(self.cause, BencodeError):
                parts.append(self.cause._describe())
            else:
                parts.append(str(self.cause) or type(self.cause).__name__)
        return "".join(parts)

    def __str__(self) -> str:
        return "bencode: " + self._describe()

    def has_kind(self, kind: ErrorKind) -> bool:
        """Return True if this error or any error in its cause chain has ``kind``."""
        err: BaseException | None = self
        while err is not None:
            if isinstance(err, BencodeError) and err.kind is kind:
                return True
            err = err.__cause__
        return False

    def wrap(self, msg: str, field: str | None = None) -> BencodeError:
        """Return an error of the same class and kind that chains this one."""
        return type(self)(self.kind, msg, field=field, cause=self)


class DecodeError(BencodeError):
    """Raised when input is not a canonical encoded item.

    Examples:
        - Truncated input (unexpected end of input)
        - Malformed integer or string length
        - Unsorted or duplicate dictionary keys
    """

    pass


class GrammarError(DecodeError):
    """Raised for malformed tokens, premature end of input or an empty input."""

    pass


class StructureError(DecodeError):
    """Raised for well-formed tokens arranged in a non-canonical structure."""

    pass


class BindError(BencodeError):
    """Raised when a decoded value cannot be assigned to the destination type.

    Examples:
        - Value kind does not match the destination (list into str)
        - Integer does not fit the destination width
        - Required record key missing from the dictionary
    """

    pass


class EncodeError(BencodeError):
    """Raised when a value cannot be encoded or the sink fails.

    Examples:
        - Unsupported runtime type (float, None, callables)
        - Mapping with non-textual keys
        - Required record field holding its zero value
    """

    pass


class UsageError(BencodeError):
    """Raised when the API is called with an invalid destination or record type."""

    pass
