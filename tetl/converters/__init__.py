"""
Converters sub-package for tetl.

Contains the bidirectional text <-> value converters used to bind file
columns to record attributes.

Design: Strategy Pattern
- base.py defines the Converter ABC and the NullableConverter wrapper.
- numbers.py: int32, int64, float, decimal.
- text.py: text, char, bool.
- timestamps.py: datetime (explicit format or ISO 8601).
- registry.py maps type names to converter classes; the schema resolver
  asks it for one converter instance per bound column.
"""

from tetl.converters.base import Converter, NullableConverter
from tetl.converters.numbers import (
    DecimalConverter,
    FloatConverter,
    Int32Converter,
    Int64Converter,
)
from tetl.converters.registry import (
    ConverterRegistry,
    default_registry,
    register_converter,
)
from tetl.converters.text import BoolConverter, CharConverter, TextConverter
from tetl.converters.timestamps import DateTimeConverter

__all__ = [
    "BoolConverter",
    "CharConverter",
    "Converter",
    "ConverterRegistry",
    "DateTimeConverter",
    "DecimalConverter",
    "FloatConverter",
    "Int32Converter",
    "Int64Converter",
    "NullableConverter",
    "TextConverter",
    "default_registry",
    "register_converter",
]
