"""Record metadata introspection and caching.

This module analyzes pydantic models and extracts, once per record type, the
encoding-relevant information for each field: wire key, required flag,
annotation and binder shape. Both the encoder and the binder read the cached
descriptors, which are sorted by wire key so neither has to sort per call.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Annotated, Any, Callable, Dict, Tuple, Type

from pydantic import BaseModel
from pydantic.fields import FieldInfo
from structlog import get_logger

from ..exceptions import ErrorKind, UsageError
from ..models.fields import TAG_KEY
from .shapes import Shape, resolve_shape

logger = get_logger()

TAG_SEPARATOR = ","
TAG_IGNORE = "-"
TAG_REQUIRED = "required"
TAG_OMIT_EMPTY = "omitempty"


@dataclass(frozen=True)
class ParsedTag:
    """A parsed ``key[,option]*`` tag.

    Attributes:
        key: Wire key, empty if the tag does not name one
        required: ``required`` option present
        omit_empty: ``omitempty`` option present
        ignored: The tag is ``-``; the field has no wire form
    """

    key: str = ""
    required: bool = False
    omit_empty: bool = False
    ignored: bool = False


def parse_tag(tag: str | None) -> ParsedTag:
    """Parse a field tag.

    Example:
        >>> parse_tag("name,required")
        ParsedTag(key='name', required=True, omit_empty=False, ignored=False)
        >>> parse_tag(",omitempty").key
        ''
    """
    if not tag:
        return ParsedTag()
    if tag.strip() == TAG_IGNORE:
        return ParsedTag(ignored=True)

    key, *options = tag.split(TAG_SEPARATOR)
    required = False
    omit_empty = False
    for option in options:
        option = option.strip()
        if option == TAG_REQUIRED:
            required = True
        elif option == TAG_OMIT_EMPTY:
            omit_empty = True
    return ParsedTag(key=key.strip(), required=required, omit_empty=omit_empty)


@dataclass(frozen=True)
class FieldDescriptor:
    """Cached information about a single record field.

    Attributes:
        name: Attribute name on the model
        key: Wire key
        key_bytes: Wire key as UTF-8 bytes, the sort key on the wire
        required: Field must be present (decode) and non-zero (encode)
        omit_empty: ``omitempty`` was given; fields equal to their absent
            value are omitted regardless, so this is informational
        annotation: Declared annotation, with Annotated metadata restored
        shape: Binder shape resolved from the annotation
    """

    name: str
    key: str
    key_bytes: bytes
    required: bool
    omit_empty: bool
    annotation: Any
    shape: Shape
    field_info: FieldInfo = field(repr=False, compare=False)

    @property
    def has_default(self) -> bool:
        return not self.field_info.is_required()

    def get_default(self) -> Any:
        """Return a fresh copy of the field's declared default."""
        return self.field_info.get_default(call_default_factory=True)

    def absent_value(self, zero: Callable[[Shape], Any]) -> Any:
        """Return the value a missing key decodes to.

        That is the declared default, or ``zero(shape)`` when the field has
        none.
        """
        if self.has_default:
            return self.get_default()
        return zero(self.shape)


class StructMetadataCache:
    """Per-type memo of record field descriptors.

    Lookups read the table without locking. A miss takes the lock, checks
    the table again so that threads racing on the same type compute its
    descriptors only once, then inserts. ``clear`` empties the table.

    Example:
        >>> cache = StructMetadataCache()
        >>> [d.key for d in cache.resolve(Person)]
        ['age', 'name']
    """

    def __init__(self) -> None:
        self._entries: Dict[type, Tuple[FieldDescriptor, ...]] = {}
        self._lock = threading.Lock()
        self.log = logger.new(cache=id(self))

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._entries

    def resolve(self, record_type: Type[BaseModel]) -> Tuple[FieldDescriptor, ...]:
        """Return the descriptors of ``record_type``, sorted by wire key.

        Raises:
            UsageError: If ``record_type`` is not a pydantic model class or
                two of its fields share a wire key
        """
        fields = self._entries.get(record_type)
        if fields is not None:
            return fields

        with self._lock:
            fields = self._entries.get(record_type)
            if fields is None:
                fields = self._introspect(record_type)
                self._entries[record_type] = fields
        return fields

    def clear(self) -> None:
        """Drop every cached entry."""
        with self._lock:
            self._entries = {}
        self.log.debug("record metadata cache cleared")

    def _introspect(self, record_type: Type[BaseModel]) -> Tuple[FieldDescriptor, ...]:
        if not (isinstance(record_type, type) and issubclass(record_type, BaseModel)):
            raise UsageError(
                ErrorKind.USAGE, f"expected a pydantic model class, got {record_type!r}"
            )

        descriptors = []
        seen: Dict[bytes, str] = {}
        for name, field_info in record_type.model_fields.items():
            tag = parse_tag(_tag_of(field_info))
            if tag.ignored:
                continue

            key = tag.key or name
            key_bytes = key.encode("utf-8")
            if key_bytes in seen:
                raise UsageError(
                    ErrorKind.INVALID_RECORD,
                    f"fields {seen[key_bytes]!r} and {name!r} of {record_type.__name__} "
                    f"share wire key {key!r}",
                )
            seen[key_bytes] = name

            annotation = _annotation_of(field_info)
            descriptors.append(
                FieldDescriptor(
                    name=name,
                    key=key,
                    key_bytes=key_bytes,
                    required=tag.required,
                    omit_empty=tag.omit_empty,
                    annotation=annotation,
                    shape=resolve_shape(annotation),
                    field_info=field_info,
                )
            )

        descriptors.sort(key=lambda d: d.key_bytes)
        self.log.debug(
            "record fields resolved",
            record=record_type.__name__,
            keys=[d.key for d in descriptors],
        )
        return tuple(descriptors)


def _tag_of(field_info: FieldInfo) -> str | None:
    extra = field_info.json_schema_extra
    if isinstance(extra, dict):
        tag = extra.get(TAG_KEY)
        if isinstance(tag, str):
            return tag
    return None


def _annotation_of(field_info: FieldInfo) -> Any:
    # pydantic moves Annotated metadata (IntWidth among it) into .metadata
    annotation = field_info.annotation
    if field_info.metadata:
        return Annotated[(annotation, *field_info.metadata)]
    return annotation


default_cache = StructMetadataCache()


def clear_cache() -> None:
    """Reset the process-wide record metadata cache."""
    default_cache.clear()
