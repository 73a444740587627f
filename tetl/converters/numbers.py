"""
Numeric converters for tetl: 32-/64-bit integers, float, fixed-point decimal.

Integers are parsed strictly (optional sign, digits, surrounding
whitespace) and range-checked against their declared width, so an
``int32`` column rejects values a 32-bit consumer could not hold.

Decimal decoding goes through ``decimal.Decimal`` and therefore accepts
exponential notation exactly: ``"3.08600834621439E-05"`` decodes to
``Decimal("0.0000308600834621439")`` with no binary rounding.  Encoding
always emits plain fixed-point notation.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Any

from tetl.converters.base import Converter

_INTEGER_PATTERN = re.compile(r"\s*[+-]?\d+\s*")


class _BoundedIntConverter(Converter):
    """Shared integer parsing; subclasses set the bit width."""

    bits = 64

    def decode(self, text: str) -> int:
        if not _INTEGER_PATTERN.fullmatch(text):
            raise ValueError(f"'{text}' is not a valid integer")
        value = int(text)
        limit = 1 << (self.bits - 1)
        if not -limit <= value < limit:
            raise OverflowError(f"{value} is out of range for a {self.bits}-bit integer")
        return value

    def encode(self, value: Any) -> str:
        return str(int(value))


class Int32Converter(_BoundedIntConverter):
    bits = 32


class Int64Converter(_BoundedIntConverter):
    bits = 64


class FloatConverter(Converter):
    def decode(self, text: str) -> float:
        return float(text)

    def encode(self, value: Any) -> str:
        # repr() is the shortest text that round-trips exactly
        return repr(float(value))


class DecimalConverter(Converter):
    def decode(self, text: str) -> Decimal:
        return Decimal(text.strip())

    def encode(self, value: Any) -> str:
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        return format(value, "f")
