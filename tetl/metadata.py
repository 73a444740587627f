"""
Column metadata and schema resolution for tetl.

The schema resolver binds field descriptors to physical file columns and
attaches one converter per bound column.  Its output, a ``MappingSet``,
is built once per session and reused for every row.

Read side (``resolve_read_mapping``):
  1. One ``ColumnMetadata`` per physical column -- from the trimmed
     header fields if the file has a header, else from the arity of the
     first data row.
  2. Each descriptor is matched by explicit ordinal, else by
     case-insensitive header equality.
  3. Zero matches, multiple matches, or two descriptors claiming the
     same column are fatal ``ConfigurationError``s.

Write side (``resolve_write_mapping``):
  Ordinals default to declaration order when not explicit; columns are
  emitted in ordinal order, with empty placeholder columns filling any
  gaps so positional readers line up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from tetl.converters.base import Converter
from tetl.converters.registry import ConverterRegistry
from tetl.exceptions import ConfigurationError
from tetl.schema import FieldDescriptor

logger = logging.getLogger(__name__)


@dataclass
class ColumnMetadata:
    """One physical file column and, when bound, its descriptor + converter.

    Attributes:
        ordinal: 0-based column position.
        header: Header text, or ``None`` when the file has no header.
        descriptor: The bound field descriptor; ``None`` means ignored.
        converter: Converter instance for the bound descriptor.
    """

    ordinal: int
    header: str | None = None
    descriptor: FieldDescriptor | None = None
    converter: Converter | None = None

    @property
    def ignore(self) -> bool:
        return self.descriptor is None

    @property
    def label(self) -> str:
        """Column identity for error messages."""
        if self.header:
            return f"{self.header} ({self.ordinal})"
        return f"Column {self.ordinal}"

    def is_match(self, descriptor: FieldDescriptor) -> bool:
        """True if *descriptor* targets this column by ordinal or header name."""
        if descriptor.ordinal is not None:
            return self.ordinal == descriptor.ordinal
        if descriptor.column is not None and self.header is not None:
            return self.header.casefold() == descriptor.column.strip().casefold()
        return False

    def bind(self, descriptor: FieldDescriptor, registry: ConverterRegistry) -> None:
        self.descriptor = descriptor
        self.converter = registry.create(
            descriptor.value_type,
            descriptor.nullable,
            descriptor.format,
            attribute=descriptor.attribute,
        )

    def set_value(self, record: Any, text: str) -> None:
        """Decode *text* and assign it to the bound attribute."""
        if self.converter.skips(text):
            return
        self.descriptor.set(record, self.converter.decode(text))

    def get_value(self, record: Any) -> str:
        """Encode the bound attribute of *record* as field text."""
        return self.converter.encode(self.descriptor.get(record))


@dataclass(frozen=True)
class MappingSet:
    """Ordered column metadata for one session.

    Attributes:
        columns: Every physical column, in ordinal order.
        relevant: The bound (non-ignored) subset, in ordinal order.
    """

    columns: tuple[ColumnMetadata, ...]
    relevant: tuple[ColumnMetadata, ...] = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "relevant", tuple(c for c in self.columns if not c.ignore)
        )

    @property
    def max_ordinal(self) -> int:
        return max((c.ordinal for c in self.relevant), default=-1)

    def headers(self) -> list[str]:
        return [c.header or f"Column {c.ordinal}" for c in self.columns]


# ---------------------------------------------------------------------------
# Read-side resolution
# ---------------------------------------------------------------------------

def build_columns(
    header: Sequence[str] | None = None,
    arity: int | None = None,
) -> list[ColumnMetadata]:
    """Create unbound column metadata from header text or a field count."""
    if header is not None:
        return [ColumnMetadata(ordinal=i, header=h.strip()) for i, h in enumerate(header)]
    if arity is None:
        raise ValueError("Either header or arity is required")
    return [ColumnMetadata(ordinal=i) for i in range(arity)]


def resolve_read_mapping(
    descriptors: Sequence[FieldDescriptor],
    registry: ConverterRegistry,
    header: Sequence[str] | None = None,
    arity: int | None = None,
) -> MappingSet:
    """Bind every descriptor to exactly one physical column.

    Args:
        descriptors: The schema's field descriptors.
        registry: Where converters are looked up.
        header: Raw header fields, if the file has a header row.
        arity: Field count of the first data row (used when no header).

    Raises:
        ConfigurationError: On an unresolvable or ambiguous mapping, or
            an unregistered value type.
    """
    columns = build_columns(header, arity)

    for descriptor in descriptors:
        matches = [c for c in columns if c.is_match(descriptor)]
        if not matches:
            raise ConfigurationError(
                f"For field {descriptor.identity}, no match was found in the file "
                f"(columns: {[c.label for c in columns]})"
            )
        if len(matches) > 1:
            raise ConfigurationError(
                f"For field {descriptor.identity}, multiple possible matches were "
                f"found in the file: {[c.label for c in matches]}"
            )
        match = matches[0]
        if not match.ignore:
            raise ConfigurationError(
                f"Column {match.label} is claimed by both field "
                f"{match.descriptor.identity} and field {descriptor.identity}"
            )
        match.bind(descriptor, registry)

    mapping = MappingSet(tuple(columns))
    logger.debug(
        "Resolved read mapping: %d column(s), %d bound",
        len(mapping.columns), len(mapping.relevant),
    )
    return mapping


# ---------------------------------------------------------------------------
# Write-side resolution
# ---------------------------------------------------------------------------

def resolve_write_mapping(
    descriptors: Sequence[FieldDescriptor],
    registry: ConverterRegistry,
) -> MappingSet:
    """Lay descriptors out as output columns.

    A descriptor without an explicit ordinal takes its declaration index.
    Positions not claimed by any descriptor become empty, unbound columns.

    Raises:
        ConfigurationError: If two descriptors land on the same ordinal,
            or a value type is unregistered.
    """
    by_ordinal: dict[int, ColumnMetadata] = {}
    for index, descriptor in enumerate(descriptors):
        ordinal = descriptor.ordinal if descriptor.ordinal is not None else index
        if ordinal in by_ordinal:
            raise ConfigurationError(
                f"Fields {by_ordinal[ordinal].descriptor.identity} and "
                f"{descriptor.identity} both write to column {ordinal}"
            )
        column = ColumnMetadata(ordinal=ordinal, header=descriptor.column)
        column.bind(descriptor, registry)
        by_ordinal[ordinal] = column

    width = max(by_ordinal) + 1
    columns = tuple(by_ordinal.get(i) or ColumnMetadata(ordinal=i) for i in range(width))
    mapping = MappingSet(columns)
    logger.debug(
        "Resolved write mapping: %d column(s), %d bound",
        len(mapping.columns), len(mapping.relevant),
    )
    return mapping
