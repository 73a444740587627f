"""
Record enumerator (read path) for tetl.

``ReadSession`` drives the footer buffer, the tokenizer and the resolved
column mapping to lazily produce one typed record per data line.

State machine::

    UNINITIALIZED --begin()--> PRIMED --first pull--> YIELDING --end--> EXHAUSTED
                                                                  close() -> CLOSED

- ``begin()`` skips leading rows, reads the header (if configured),
  pre-fetches and tokenizes the first data line, and resolves the schema.
  Every configuration error surfaces here, before any record is yielded.
- The first pull materializes the already-primed line; each later pull
  fetches the next line first.
- Materializing allocates a fresh record and decodes every relevant
  column into it.  A short line raises ``BadDataError``; a field that
  does not convert raises ``ConversionError`` chained from the parse
  failure.  Nothing is retried or skipped.

There is no rewind: a new pass needs a new session.  Stopping early is
simply not pulling again (and closing the session).
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from tetl._resource import TextResource
from tetl.buffer import FooterBuffer
from tetl.config import SerializerConfig
from tetl.converters.registry import ConverterRegistry
from tetl.exceptions import BadDataError, ConfigurationError, ConversionError
from tetl.metadata import MappingSet, resolve_read_mapping
from tetl.schema import RecordSchema
from tetl.tokenizer import split_line

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    PRIMED = "primed"
    YIELDING = "yielding"
    EXHAUSTED = "exhausted"
    CLOSED = "closed"


class ReadSession:
    """One forward, single-pass read over a delimited text resource.

    Created by ``TextFileSerializer.begin_read()``.  Iterate it to get
    records; use it as a context manager so the resource is released on
    every exit path.

    Attributes:
        line_no: 1-based physical line number of the line behind the
            most recently yielded record (0 before the first read).
        current_line: Raw fields of that line, or ``None`` at the end.
        mapping: The resolved column mapping (available after begin).
        state: Current ``SessionState``.
        records_read: Number of records yielded so far.
    """

    def __init__(
        self,
        resource: TextResource,
        schema: RecordSchema,
        config: SerializerConfig,
        registry: ConverterRegistry,
        skip_predicate: Callable[[Any], bool] | None = None,
    ) -> None:
        self._resource = resource
        self._schema = schema
        self._config = config
        self._registry = registry
        self._skip_predicate = skip_predicate
        self._buffer = FooterBuffer(resource.lines(), config.skip_footer_rows)

        self.current_line: list[str] | None = None
        self.mapping: MappingSet | None = None
        self.state = SessionState.UNINITIALIZED
        self.records_read = 0

    def __repr__(self) -> str:
        return (
            f"ReadSession(resource={self._resource.name!r}, "
            f"state={self.state.value}, line_no={self.line_no})"
        )

    @property
    def line_no(self) -> int:
        return self._buffer.line_no

    # -- Initialisation ------------------------------------------------------

    def begin(self) -> ReadSession:
        """Skip leading rows, read the header, prime, and resolve the schema.

        Raises:
            ConfigurationError: Skip count too large, header missing, or
                an unresolvable schema mapping.
        """
        if self.state is not SessionState.UNINITIALIZED:
            raise RuntimeError(f"Session already started (state={self.state.value})")

        cfg = self._config
        skip = cfg.skip_header_rows
        for _ in range(skip):
            if self._buffer.read_raw() is None:
                break
        if skip and self._buffer.at_end():
            raise ConfigurationError(
                f"skip_header_rows ({skip}) covers every line in {self._resource.name}"
            )

        header: list[str] | None = None
        if cfg.first_row_header:
            raw = self._buffer.read_raw()
            if raw is None or raw.strip() == "":
                raise ConfigurationError(
                    f"No header row found in {self._resource.name} but one was expected"
                )
            header = self._split(raw)

        self._advance()

        if header is not None:
            self.mapping = resolve_read_mapping(
                self._schema.fields, self._registry, header=header
            )
        elif self.current_line is not None:
            self.mapping = resolve_read_mapping(
                self._schema.fields, self._registry, arity=len(self.current_line)
            )
        else:
            # empty file: nothing to bind, nothing to yield
            self.mapping = MappingSet(())

        self.state = SessionState.PRIMED
        logger.info(
            "Reading %s: header=%s, %d bound column(s)",
            self._resource.name,
            header is not None,
            len(self.mapping.relevant),
        )
        return self

    # -- Iteration -----------------------------------------------------------

    def __iter__(self) -> ReadSession:
        return self

    def __next__(self) -> Any:
        if self.state is SessionState.UNINITIALIZED:
            self.begin()
        if self.state in (SessionState.EXHAUSTED, SessionState.CLOSED):
            raise StopIteration

        while True:
            if self.state is SessionState.YIELDING:
                self._advance()
            else:
                self.state = SessionState.YIELDING

            if self.current_line is None:
                self._finish()
                raise StopIteration

            record = self._materialize()
            if self._skip_predicate is not None and self._skip_predicate(record):
                logger.debug("Line %d skipped by predicate", self.line_no)
                continue
            self.records_read += 1
            return record

    def _split(self, line: str) -> list[str]:
        return split_line(line, self._config.delimiter, self._config.fields_in_quotes)

    def _advance(self) -> None:
        line = self._buffer.next_line()
        self.current_line = None if line is None else self._split(line)

    def _materialize(self) -> Any:
        line = self.current_line
        record = self._schema.new_record()

        for column in self.mapping.relevant:
            if column.ordinal >= len(line):
                raise BadDataError(
                    f"Insufficient field length on line {self.line_no}, trying to read "
                    f"field #{column.ordinal + 1}, but source line only has "
                    f"{len(line)} field(s)",
                    line_no=self.line_no,
                    line=list(line),
                )

            value = line[column.ordinal]
            try:
                column.set_value(record, value)
            except Exception as exc:
                descriptor = column.descriptor
                raise ConversionError(
                    f"Conversion problem on line {self.line_no}, column "
                    f"\"{column.label}\" could not convert value \"{value}\" to the "
                    f"target type of \"{descriptor.value_type}\" for attribute "
                    f"\"{descriptor.attribute}\"",
                    line_no=self.line_no,
                    column=column.label,
                    attribute=descriptor.attribute,
                    value_type=descriptor.value_type,
                    value=value,
                    line=list(line),
                ) from exc

        return record

    def _finish(self) -> None:
        self.state = SessionState.EXHAUSTED
        logger.info(
            "Finished reading %s: %d record(s), %d line(s)",
            self._resource.name, self.records_read, self.line_no,
        )
        self._resource.close()

    # -- Disposal ------------------------------------------------------------

    def close(self) -> None:
        """Release the underlying resource.  Safe to call more than once."""
        self._resource.close()
        self.state = SessionState.CLOSED

    def __enter__(self) -> ReadSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
