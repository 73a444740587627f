"""
Unit tests for schema declaration (tetl.schema).

Covers descriptor validation, the fluent builder, and the dict/YAML
representation.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from tests.conftest import Person
from tetl.exceptions import ConfigurationError
from tetl.schema import (
    FieldDescriptor,
    RecordSchema,
    load_schema,
    save_schema,
    schema_from_dict,
)


# ---------------------------------------------------------------------------
# FieldDescriptor
# ---------------------------------------------------------------------------

class TestFieldDescriptor:
    def test_by_column(self):
        fd = FieldDescriptor(attribute="name", column="Name")
        assert fd.value_type == "text"
        assert fd.nullable is False
        assert fd.ordinal is None

    def test_by_ordinal(self):
        fd = FieldDescriptor(attribute="name", ordinal=0)
        assert fd.ordinal == 0

    def test_both_rejected(self):
        with pytest.raises(ConfigurationError, match="both column name"):
            FieldDescriptor(attribute="name", column="Name", ordinal=0)

    def test_neither_rejected(self):
        with pytest.raises(ConfigurationError, match="either the column name or the column ordinal"):
            FieldDescriptor(attribute="name")

    def test_blank_column_counts_as_missing(self):
        with pytest.raises(ConfigurationError):
            FieldDescriptor(attribute="name", column="  ")

    def test_negative_ordinal(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(attribute="name", ordinal=-1)

    def test_empty_attribute(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(attribute="", ordinal=0)

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            FieldDescriptor(attribute="name", ordinal=0, width=10)

    def test_frozen(self):
        fd = FieldDescriptor(attribute="name", ordinal=0)
        with pytest.raises(ValidationError):
            fd.ordinal = 1

    def test_identity(self):
        assert FieldDescriptor(attribute="a", ordinal=3).identity == "'a' (ordinal 3)"
        assert FieldDescriptor(attribute="a", column="A").identity == "'a' (column \"A\")"

    def test_get_and_set(self):
        fd = FieldDescriptor(attribute="name", ordinal=0)
        record = SimpleNamespace()
        assert fd.get(record) is None
        fd.set(record, "Fred")
        assert record.name == "Fred"
        assert fd.get(record) == "Fred"


# ---------------------------------------------------------------------------
# RecordSchema / SchemaBuilder
# ---------------------------------------------------------------------------

class TestRecordSchema:
    def test_builder_maps_python_types(self):
        schema = (
            RecordSchema.builder(Person)
            .field("name", str, ordinal=0)
            .field("weight", Decimal, ordinal=1)
            .field("height", int, ordinal=2)
            .field("date_of_birth", datetime, ordinal=3)
            .field("is_male", bool, ordinal=4)
            .field("comment", float, ordinal=5)
            .build()
        )
        assert [f.value_type for f in schema.fields] == [
            "text", "decimal", "int64", "datetime", "bool", "float",
        ]

    def test_builder_keeps_declaration_order(self, person_schema):
        assert [f.attribute for f in person_schema.fields] == [
            "name", "weight", "height", "date_of_birth", "is_male", "ssn", "comment",
        ]
        assert len(person_schema) == 7

    def test_unknown_python_type(self):
        with pytest.raises(ConfigurationError, match="complex"):
            RecordSchema.builder(Person).field("name", complex, ordinal=0)

    def test_builder_validates_immediately(self):
        with pytest.raises(ConfigurationError):
            RecordSchema.builder(Person).field("name", str)

    def test_no_fields(self):
        with pytest.raises(ConfigurationError, match="No field descriptors declared for record type Person"):
            RecordSchema.builder(Person).build()

    def test_duplicate_attribute(self):
        with pytest.raises(ConfigurationError, match="'name' is declared more than once"):
            RecordSchema(
                Person,
                [
                    FieldDescriptor(attribute="name", ordinal=0),
                    FieldDescriptor(attribute="name", ordinal=1),
                ],
            )

    def test_new_record(self, person_schema):
        record = person_schema.new_record()
        assert isinstance(record, Person)
        assert record.name is None

    def test_repr(self, person_schema):
        assert repr(person_schema).startswith("RecordSchema(record=Person")


# ---------------------------------------------------------------------------
# Dict / YAML representation
# ---------------------------------------------------------------------------

class TestSchemaFromDict:
    def test_type_alias(self):
        schema = schema_from_dict(
            {"fields": [{"attribute": "height", "type": "int32", "column": "Height"}]}
        )
        assert schema.fields[0].value_type == "int32"
        assert isinstance(schema.new_record(), SimpleNamespace)

    def test_custom_record_factory(self):
        schema = schema_from_dict({"fields": [{"attribute": "name", "ordinal": 0}]}, Person)
        assert isinstance(schema.new_record(), Person)

    def test_no_fields(self):
        with pytest.raises(ConfigurationError, match="no 'fields'"):
            schema_from_dict({"fields": []})

    def test_invalid_entry(self):
        with pytest.raises(ConfigurationError):
            schema_from_dict({"fields": [{"attribute": "name"}]})

    def test_to_dict_omits_defaults(self):
        schema = schema_from_dict({"fields": [{"attribute": "name", "column": "Name"}]})
        assert schema.to_dict() == {"fields": [{"attribute": "name", "column": "Name"}]}


class TestSchemaYaml:
    def test_save_load_round_trip(self, tmp_path, person_schema):
        path = tmp_path / "schemas" / "person.yaml"
        save_schema(person_schema, path)
        assert path.exists()

        loaded = load_schema(path, Person)
        assert loaded.fields == person_schema.fields

    def test_hand_written_yaml(self, tmp_path):
        path = tmp_path / "schema.yaml"
        path.write_text(
            "fields:\n"
            "  - attribute: born\n"
            "    type: datetime\n"
            "    column: DateOfBirth\n"
            "    nullable: true\n"
            "    format: '%Y%m%d'\n",
            encoding="utf-8",
        )
        schema = load_schema(path)
        fd = schema.fields[0]
        assert fd.value_type == "datetime"
        assert fd.nullable is True
        assert fd.format == "%Y%m%d"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_schema(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="empty"):
            load_schema(path)
