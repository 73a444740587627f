"""
Integration tests: file handling, YAML-driven setup, and export.

Covers opening failures, configs and schemas loaded from YAML, custom
converters, and streaming a read session straight into Parquet.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pandas as pd
import pytest

from tests.conftest import DATA_LINES, FOOTER, HEADER, Person
from tetl import (
    Converter,
    ConverterRegistry,
    RecordSchema,
    ResourceError,
    TextFileSerializer,
    load_config,
    load_schema,
    read_records,
)
from tetl.export import export_records


@pytest.fixture()
def people_file(tmp_path):
    """The sample people file on disk, with a footer line."""
    path = tmp_path / "people.csv"
    path.write_text("\n".join([HEADER, *DATA_LINES, FOOTER]) + "\n", encoding="utf-8")
    return path


@pytest.mark.integration
class TestOpenFailures:
    """Resource errors surface as ResourceError."""

    def test_missing_file(self, tmp_path, person_schema):
        serializer = TextFileSerializer(person_schema, delimiter=";")
        with pytest.raises(ResourceError, match="Cannot open text file"):
            serializer.begin_read(tmp_path / "missing.csv")

    def test_target_is_directory(self, tmp_path, person_schema):
        serializer = TextFileSerializer(person_schema, delimiter=";")
        with pytest.raises(ResourceError, match="Cannot create text file"):
            serializer.begin_write(tmp_path)

    def test_unreadable_stream(self, tmp_path, person_schema):
        serializer = TextFileSerializer(person_schema, delimiter=";")
        with open(tmp_path / "out.bin", "wb") as stream:
            with pytest.raises(ResourceError, match="not readable"):
                serializer.begin_read(stream)

    def test_unwritable_stream(self, people_file, person_schema):
        serializer = TextFileSerializer(person_schema, delimiter=";")
        with open(people_file, "rb") as stream:
            with pytest.raises(ResourceError, match="not writable"):
                serializer.begin_write(stream)


@pytest.mark.integration
class TestYamlDrivenRead:
    """Config and schema both come from YAML files."""

    def test_read_with_loaded_config_and_schema(self, tmp_path, people_file):
        config_path = tmp_path / "serializer.yaml"
        config_path.write_text(
            "delimiter: ';'\n"
            "first_row_header: true\n"
            "skip_footer_rows: 1\n"
            "fields_in_quotes: true\n",
            encoding="utf-8",
        )
        schema_path = tmp_path / "schema.yaml"
        schema_path.write_text(
            "fields:\n"
            "  - attribute: name\n"
            "    column: Name\n"
            "  - attribute: weight\n"
            "    type: decimal\n"
            "    column: Weight\n"
            "  - attribute: comment\n"
            "    column: Comment\n",
            encoding="utf-8",
        )

        config = load_config(config_path)
        schema = load_schema(schema_path)
        records = list(read_records(people_file, schema, config))

        assert [r.name for r in records] == ["Fred", "Andy", "Jane"]
        assert records[0].weight == Decimal("71.3")
        assert records[0].comment == "Hello;World"

    def test_keyword_options_override_config(self, tmp_path, people_file, person_schema):
        config_path = tmp_path / "serializer.yaml"
        config_path.write_text("delimiter: ';'\nfirst_row_header: true\n", encoding="utf-8")
        config = load_config(config_path)

        records = list(
            read_records(
                people_file, person_schema, config,
                skip_footer_rows=1, fields_in_quotes=True,
            )
        )
        assert len(records) == 3


@pytest.mark.integration
class TestCustomConverter:
    """A caller-registered value type takes part in reading."""

    def test_private_registry(self, people_file):
        class Grams(Converter):
            def decode(self, text):
                return int(Decimal(text) * 1000)

            def encode(self, value):
                return str(Decimal(value) / 1000)

        registry = ConverterRegistry()
        registry.register("grams", Grams)
        schema = (
            RecordSchema.builder(Person)
            .field("name", column="Name")
            .field("weight", "grams", column="Weight")
            .build()
        )

        records = list(
            read_records(
                people_file, schema, registry=registry,
                delimiter=";", first_row_header=True, skip_footer_rows=1,
            )
        )
        assert [r.weight for r in records] == [71300, 80200, 63500]


@pytest.mark.integration
class TestExportFromSession:
    """A read session streams straight into a columnar file."""

    def test_parquet(self, tmp_path, people_file, person_schema):
        serializer = TextFileSerializer(
            person_schema,
            delimiter=";",
            first_row_header=True,
            fields_in_quotes=True,
            skip_footer_rows=1,
        )
        out = tmp_path / "out" / "people.parquet"
        with serializer.begin_read(people_file) as session:
            count = export_records(session, person_schema, out, batch_size=2)

        assert count == 3
        frame = pd.read_parquet(out)
        assert list(frame["Name"]) == ["Fred", "Andy", "Jane"]
        assert pd.isna(frame["DateOfBirth"].iloc[1])
        assert frame["Comment"].iloc[0] == "Hello;World"

    def test_offset_timestamps(self, tmp_path):
        source = tmp_path / "stamps.csv"
        source.write_text(
            "Stamp;Amount\n"
            "2024-01-01T00:00:00+00:00;1.5\n"
            "2024-01-01T09:00:00+09:00;\n"
            "2024-01-01T01:30:00;0.125\n",
            encoding="utf-8",
        )
        schema = (
            RecordSchema.builder(SimpleNamespace)
            .field("stamp", datetime, column="Stamp")
            .field("amount", Decimal, column="Amount", nullable=True)
            .build()
        )
        serializer = TextFileSerializer(schema, delimiter=";", first_row_header=True)
        out = tmp_path / "stamps.parquet"
        with serializer.begin_read(source) as session:
            assert export_records(session, schema, out, batch_size=1) == 3

        frame = pd.read_parquet(out)
        assert list(frame["Stamp"]) == [
            pd.Timestamp(2024, 1, 1),
            pd.Timestamp(2024, 1, 1),
            pd.Timestamp(2024, 1, 1, 1, 30),
        ]
        assert frame["Amount"].iloc[2] == Decimal("0.125")
        assert pd.isna(frame["Amount"].iloc[1])
