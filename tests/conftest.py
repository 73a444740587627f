"""
Shared test fixtures for tetl tests.

Sample data mirrors a small people file with one column of every
commonly used value type.  Streams are built in memory as bytes, the
same way a file opened in binary mode would present them.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import pytest

from tetl.schema import RecordSchema

# ---------------------------------------------------------------------------
# Sample lines -- edit here if the sample file shape changes
# ---------------------------------------------------------------------------
HEADER = "Name;Weight;Height;DateOfBirth;IsMale;SSN;Comment"
DATA_LINES = [
    'Fred;71.3;165;19870521;1;4412237238;"Hello;World"',
    "Andy;80.2;180; ;1;4412237240;OK1",
    "Jane;63.5;160;19890622;0;4412237239;OK2",
]
FOOTER = "End Of File"


@dataclass
class Person:
    name: str | None = None
    weight: Decimal | None = None
    height: int | None = None
    date_of_birth: datetime | None = None
    is_male: bool | None = None
    ssn: int | None = None
    comment: str | None = None


def make_stream(lines: list[str], newline: str = "\n") -> io.BytesIO:
    """Encode *lines* as a UTF-8 byte stream, one terminator per line."""
    return io.BytesIO("".join(line + newline for line in lines).encode("utf-8"))


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------
@pytest.fixture()
def person_schema() -> RecordSchema:
    """Person fields bound by header name."""
    return (
        RecordSchema.builder(Person)
        .field("name", str, column="Name")
        .field("weight", "decimal", column="Weight")
        .field("height", "int32", column="Height")
        .field("date_of_birth", "datetime", column="DateOfBirth", nullable=True, format="%Y%m%d")
        .field("is_male", bool, column="IsMale")
        .field("ssn", "int64", column="SSN")
        .field("comment", str, column="Comment")
        .build()
    )


@pytest.fixture()
def person_ordinal_schema() -> RecordSchema:
    """Person fields bound by 0-based column position."""
    return (
        RecordSchema.builder(Person)
        .field("name", str, ordinal=0)
        .field("weight", "decimal", ordinal=1)
        .field("height", "int32", ordinal=2)
        .field("date_of_birth", "datetime", ordinal=3, nullable=True, format="%Y%m%d")
        .field("is_male", bool, ordinal=4)
        .field("ssn", "int64", ordinal=5)
        .field("comment", str, ordinal=6)
        .build()
    )


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (file I/O end to end)",
    )
