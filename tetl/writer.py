"""
Writer (write path) for tetl -- the inverse of the record enumerator.

On the first write (or an explicit ``write_preamble()``) a session emits,
unless it is appending to an existing file:

1. The preamble lines, verbatim.
2. A header line (if ``first_row_header``) joining each column's name,
   or a ``Column N`` placeholder, with the delimiter.

Every record then becomes one line: each bound column is encoded by its
converter, in resolved ordinal order, and the fields are joined with the
delimiter (quoted where needed when ``fields_in_quotes`` is set).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from tetl._resource import TextResource
from tetl.config import SerializerConfig
from tetl.converters.registry import ConverterRegistry
from tetl.metadata import MappingSet, resolve_write_mapping
from tetl.schema import RecordSchema
from tetl.tokenizer import join_fields

logger = logging.getLogger(__name__)


class WriteSession:
    """One write pass into a delimited text resource.

    Created by ``TextFileSerializer.begin_write()``.  Use it as a context
    manager so the resource is flushed and released on every exit path.

    Attributes:
        mapping: The resolved output column layout.
        records_written: Number of records written so far.
    """

    def __init__(
        self,
        resource: TextResource,
        schema: RecordSchema,
        config: SerializerConfig,
        registry: ConverterRegistry,
    ) -> None:
        self._resource = resource
        self._schema = schema
        self._config = config
        self.mapping: MappingSet = resolve_write_mapping(schema.fields, registry)
        self.records_written = 0
        self._preamble_done = False
        self.closed = False

    def __repr__(self) -> str:
        return (
            f"WriteSession(resource={self._resource.name!r}, "
            f"records_written={self.records_written})"
        )

    def write_preamble(self, preamble_lines: Sequence[str] | None = None) -> None:
        """Emit preamble lines and the header row, once.

        Args:
            preamble_lines: Overrides ``config.preamble_lines`` when given.
        """
        if self._preamble_done:
            return
        self._preamble_done = True

        if self._config.append_mode:
            logger.debug("Append mode: no preamble or header for %s", self._resource.name)
            return

        if preamble_lines is None:
            preamble_lines = self._config.preamble_lines
        for line in preamble_lines:
            self._resource.write_line(line)

        if self._config.first_row_header:
            self._resource.write_line(self._join(self.mapping.headers()))

    def write(self, record: Any) -> None:
        """Serialize one record as one line."""
        if not self._preamble_done:
            self.write_preamble()
        fields = [
            "" if column.ignore else column.get_value(record)
            for column in self.mapping.columns
        ]
        self._resource.write_line(self._join(fields))
        self.records_written += 1

    def write_all(self, records: Iterable[Any]) -> int:
        """Serialize every record; returns how many were written."""
        count = 0
        for record in records:
            self.write(record)
            count += 1
        return count

    def _join(self, fields: list[str]) -> str:
        return join_fields(fields, self._config.delimiter, self._config.fields_in_quotes)

    # -- Disposal ------------------------------------------------------------

    def close(self) -> None:
        """Write a pending preamble/header, then release the resource."""
        if self.closed:
            return
        try:
            if not self._preamble_done:
                self.write_preamble()
        finally:
            self.closed = True
            self._resource.close()
        logger.info(
            "Finished writing %s: %d record(s)",
            self._resource.name, self.records_written,
        )

    def __enter__(self) -> WriteSession:
        return self

    def __exit__(self, exc_type: object, *exc_info: object) -> None:
        if exc_type is not None:
            # leave the output as it was at the failure point
            self._preamble_done = True
        self.close()
