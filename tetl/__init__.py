"""
tetl: stream delimited text files into typed records and back.

Public API surface:

- ``RecordSchema.builder(record_type)`` -- declare which record attribute
  maps to which column (by header name or 0-based ordinal) and with
  which value type.  ``load_schema(path)`` reads the same from YAML.

- ``TextFileSerializer(schema, config | **options)`` -- the serializer.
  ``begin_read(source)`` returns a primed ``ReadSession`` (an iterator of
  records); ``begin_write(target)`` returns a ``WriteSession``.

- ``read_records(...)`` / ``write_records(...)`` -- one-call convenience
  wrappers that own the session for you.

- ``register_converter(type_name, converter_cls)`` -- add or override a
  value type on the shared converter registry.

Files are read in a single forward pass; only the current line (plus up
to ``skip_footer_rows`` lines of lookahead) is held in memory.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Iterator

from tetl._resource import Source
from tetl.config import SerializerConfig, load_config, save_config
from tetl.converters import Converter, ConverterRegistry, register_converter
from tetl.exceptions import (
    BadDataError,
    ConfigurationError,
    ConversionError,
    ResourceError,
    TetlError,
)
from tetl.reader import ReadSession, SessionState
from tetl.schema import FieldDescriptor, RecordSchema, load_schema, save_schema
from tetl.serializer import TextFileSerializer
from tetl.writer import WriteSession

__all__ = [
    "BadDataError",
    "ConfigurationError",
    "ConversionError",
    "Converter",
    "ConverterRegistry",
    "FieldDescriptor",
    "ReadSession",
    "RecordSchema",
    "ResourceError",
    "SerializerConfig",
    "SessionState",
    "TetlError",
    "TextFileSerializer",
    "WriteSession",
    "load_config",
    "load_schema",
    "read_records",
    "register_converter",
    "save_config",
    "save_schema",
    "write_records",
]

logger = logging.getLogger(__name__)


def read_records(
    source: Source,
    schema: RecordSchema,
    config: SerializerConfig | None = None,
    *,
    registry: ConverterRegistry | None = None,
    skip_predicate: Callable[[Any], bool] | None = None,
    **options: Any,
) -> Iterator[Any]:
    """Yield typed records from *source*.

    The underlying session is closed when the generator finishes, raises,
    or is closed early by the caller.

    Examples::

        for person in tetl.read_records("people.csv", schema, delimiter=";",
                                        first_row_header=True):
            ...
    """
    serializer = TextFileSerializer(schema, config, registry, **options)
    with serializer.begin_read(source, skip_predicate=skip_predicate) as session:
        yield from session


def write_records(
    target: Source,
    records: Iterable[Any],
    schema: RecordSchema,
    config: SerializerConfig | None = None,
    *,
    registry: ConverterRegistry | None = None,
    **options: Any,
) -> int:
    """Write *records* to *target*; returns the number of records written."""
    serializer = TextFileSerializer(schema, config, registry, **options)
    with serializer.begin_write(target) as session:
        count = session.write_all(records)
    logger.debug("write_records() -- %d record(s)", count)
    return count
