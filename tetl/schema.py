"""
Record schema declaration for tetl.

A schema says which record attributes are read from / written to which
file columns, and with which value type.  It replaces declarative
attribute syntax with an explicit construction API that is validated
eagerly:

- ``FieldDescriptor``: one record attribute -> one column (by header name
  XOR by 0-based ordinal), plus its value type and format hint.
- ``RecordSchema``: the record factory plus the ordered descriptors.
- ``SchemaBuilder``: fluent construction, accepting Python types as
  shorthand for registry type names.
- ``schema_from_dict`` / ``load_schema``: the same description as a
  plain dict or a YAML file.

Example::

    schema = (
        RecordSchema.builder(Person)
        .field("name", str, column="Name")
        .field("weight", Decimal, column="Weight")
        .field("born", datetime, column="DateOfBirth", nullable=True, format="%Y%m%d")
        .build()
    )
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from tetl.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Python type shorthand accepted by SchemaBuilder.field()
_PY_TYPE_NAMES: dict[type, str] = {
    str: "text",
    int: "int64",
    float: "float",
    Decimal: "decimal",
    bool: "bool",
    datetime: "datetime",
}


class FieldDescriptor(BaseModel):
    """Binding of one record attribute to one file column.

    Exactly one of ``column`` (header name, matched case-insensitively)
    or ``ordinal`` (0-based column position) must be given.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attribute: str = Field(..., min_length=1, description="Record attribute name")
    value_type: str = Field("text", min_length=1, description="Converter registry type name")
    nullable: bool = Field(False, description="If True, blank text means 'leave unset'")
    column: str | None = Field(None, description="Header name of the column")
    ordinal: int | None = Field(None, ge=0, description="0-based column position")
    format: str | None = Field(None, description="strftime/strptime format for timestamps")

    @model_validator(mode="after")
    def _check_column_xor_ordinal(self) -> FieldDescriptor:
        has_column = self.column is not None and self.column.strip() != ""
        if has_column and self.ordinal is not None:
            raise ConfigurationError(
                f"Field '{self.attribute}' specifies both column name "
                f"'{self.column}' and ordinal {self.ordinal}; use one or the other"
            )
        if not has_column and self.ordinal is None:
            raise ConfigurationError(
                f"Field '{self.attribute}' must specify either the column name "
                "or the column ordinal"
            )
        return self

    @property
    def identity(self) -> str:
        """Human-readable identity used in error messages."""
        if self.ordinal is not None:
            return f"'{self.attribute}' (ordinal {self.ordinal})"
        return f"'{self.attribute}' (column \"{self.column}\")"

    def get(self, record: Any) -> Any:
        # attributes a nullable decode left unset read back as None
        return getattr(record, self.attribute, None)

    def set(self, record: Any, value: Any) -> None:
        setattr(record, self.attribute, value)


class RecordSchema:
    """An ordered, validated set of field descriptors for one record shape.

    Attributes:
        record_factory: Zero-argument callable producing an empty record.
            Normally the record class itself.
        fields: Descriptors in declaration order.
    """

    def __init__(
        self,
        record_factory: Callable[[], Any],
        fields: list[FieldDescriptor] | tuple[FieldDescriptor, ...],
    ) -> None:
        fields = tuple(fields)
        if not fields:
            name = getattr(record_factory, "__name__", repr(record_factory))
            raise ConfigurationError(f"No field descriptors declared for record type {name}")

        seen: set[str] = set()
        for descriptor in fields:
            if descriptor.attribute in seen:
                raise ConfigurationError(
                    f"Attribute '{descriptor.attribute}' is declared more than once"
                )
            seen.add(descriptor.attribute)

        self.record_factory = record_factory
        self.fields = fields

    def __repr__(self) -> str:
        name = getattr(self.record_factory, "__name__", repr(self.record_factory))
        attrs = [f.attribute for f in self.fields]
        return f"RecordSchema(record={name}, fields={attrs})"

    def __len__(self) -> int:
        return len(self.fields)

    def new_record(self) -> Any:
        return self.record_factory()

    @staticmethod
    def builder(record_factory: Callable[[], Any]) -> SchemaBuilder:
        return SchemaBuilder(record_factory)

    def to_dict(self) -> dict[str, Any]:
        """Dump the field descriptors in the shape ``schema_from_dict`` reads."""
        return {
            "fields": [
                f.model_dump(exclude_defaults=True) for f in self.fields
            ]
        }


class SchemaBuilder:
    """Fluent builder for ``RecordSchema``."""

    def __init__(self, record_factory: Callable[[], Any]) -> None:
        self._record_factory = record_factory
        self._fields: list[FieldDescriptor] = []

    def field(
        self,
        attribute: str,
        value_type: str | type = "text",
        *,
        column: str | None = None,
        ordinal: int | None = None,
        nullable: bool = False,
        format: str | None = None,
    ) -> SchemaBuilder:
        """Declare one field.  Validation happens immediately."""
        self._fields.append(
            FieldDescriptor(
                attribute=attribute,
                value_type=_type_name(value_type),
                nullable=nullable,
                column=column,
                ordinal=ordinal,
                format=format,
            )
        )
        return self

    def build(self) -> RecordSchema:
        return RecordSchema(self._record_factory, self._fields)


def _type_name(value_type: str | type) -> str:
    if isinstance(value_type, str):
        return value_type
    try:
        return _PY_TYPE_NAMES[value_type]
    except KeyError:
        raise ConfigurationError(
            f"No default type name for Python type {value_type.__name__}; "
            "pass a registry type name instead"
        ) from None


def schema_from_dict(
    raw: dict[str, Any],
    record_factory: Callable[[], Any] = SimpleNamespace,
) -> RecordSchema:
    """Build a schema from ``{"fields": [{...}, ...]}``.

    Each field entry takes the ``FieldDescriptor`` keys; ``type`` is
    accepted as an alias of ``value_type``.
    """
    entries = raw.get("fields")
    if not entries:
        raise ConfigurationError("Schema has no 'fields' entries")

    fields: list[FieldDescriptor] = []
    for entry in entries:
        entry = dict(entry)
        if "type" in entry:
            entry["value_type"] = entry.pop("type")
        fields.append(FieldDescriptor.model_validate(entry))
    return RecordSchema(record_factory, fields)


def load_schema(
    path: str | Path,
    record_factory: Callable[[], Any] = SimpleNamespace,
) -> RecordSchema:
    """Load a schema YAML file.

    Records default to ``types.SimpleNamespace`` so a YAML-only schema
    needs no Python class.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigurationError: If the file is empty or declares no fields.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Schema file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigurationError(f"Schema file is empty: {path}")
    schema = schema_from_dict(raw, record_factory)
    logger.info("Loaded schema from %s: %d field(s)", path, len(schema))
    return schema


def save_schema(schema: RecordSchema, path: str | Path) -> None:
    """Write a schema's descriptors to YAML."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(
            schema.to_dict(),
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved schema to %s", path)
