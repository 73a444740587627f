"""
Text file serializer for tetl.

``TextFileSerializer`` pairs a ``RecordSchema`` with an immutable
``SerializerConfig`` and hands out sessions:

- ``begin_read(source)`` -> ``ReadSession`` (already primed, so every
  configuration error has been raised by the time it returns).
- ``begin_write(target)`` -> ``WriteSession``.

The serializer itself holds no per-pass state -- each session owns its
resource, column metadata, converters and buffers, so one serializer can
start any number of independent passes.  A single session is meant for
one thread; sharing one across threads is unsupported.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from tetl._resource import Source, TextResource
from tetl.config import SerializerConfig
from tetl.converters.registry import ConverterRegistry, default_registry
from tetl.exceptions import ConfigurationError
from tetl.reader import ReadSession
from tetl.schema import RecordSchema
from tetl.writer import WriteSession

logger = logging.getLogger(__name__)


def build_config(config: SerializerConfig | None = None, **options: Any) -> SerializerConfig:
    """Merge keyword options over an optional base config.

    Raises:
        ConfigurationError: If neither a config nor a delimiter is given.
        pydantic.ValidationError: If an option fails validation.
    """
    if config is None:
        if "delimiter" not in options:
            raise ConfigurationError("Delimiter must be specified")
        return SerializerConfig(**options)
    if not options:
        return config
    return SerializerConfig.model_validate({**config.model_dump(), **options})


class TextFileSerializer:
    """Reads and writes delimited text files as typed records.

    Args:
        schema: Record shape and column bindings.
        config: File-format options.  Keyword *options* are merged over
            it (or used alone when *config* is omitted).
        registry: Converter registry; defaults to the shared registry.

    Example::

        serializer = TextFileSerializer(schema, delimiter=";", first_row_header=True)
        with serializer.begin_read("people.csv") as session:
            for person in session:
                print(session.line_no, person.name)
    """

    def __init__(
        self,
        schema: RecordSchema,
        config: SerializerConfig | None = None,
        registry: ConverterRegistry | None = None,
        **options: Any,
    ) -> None:
        self.schema = schema
        self.config = build_config(config, **options)
        self.registry = registry or default_registry()

    def __repr__(self) -> str:
        return f"TextFileSerializer(schema={self.schema!r}, delimiter={self.config.delimiter!r})"

    def begin_read(
        self,
        source: Source,
        skip_predicate: Callable[[Any], bool] | None = None,
    ) -> ReadSession:
        """Open *source* and start a primed read session.

        Args:
            source: Path, binary stream, or text stream.
            skip_predicate: Optional ``record -> bool``; matching records
                are not yielded.

        Raises:
            ResourceError: If the file cannot be opened.
            ConfigurationError: If the file does not fit the schema/config.
        """
        resource = TextResource(source, "r", encoding=self.config.encoding)
        session = ReadSession(
            resource, self.schema, self.config, self.registry, skip_predicate
        )
        try:
            session.begin()
        except BaseException:
            session.close()
            raise
        return session

    def begin_write(self, target: Source) -> WriteSession:
        """Open *target* (truncating, or appending in append mode) for writing.

        Raises:
            ResourceError: If the file cannot be created.
            ConfigurationError: If the schema cannot be laid out as columns.
        """
        mode = "a" if self.config.append_mode else "w"
        resource = TextResource(
            target, mode, encoding=self.config.encoding, newline=self.config.newline
        )
        try:
            session = WriteSession(resource, self.schema, self.config, self.registry)
        except BaseException:
            resource.close()
            raise
        logger.info("Writing %s (append=%s)", resource.name, self.config.append_mode)
        return session
