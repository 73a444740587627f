"""
Text-like converters for tetl: text, single character, boolean.
"""

from __future__ import annotations

from typing import Any

from tetl.converters.base import Converter

_TRUE_TOKENS = {"true", "1"}
_FALSE_TOKENS = {"false", "0"}


class TextConverter(Converter):
    """Plain text.  Surrounding whitespace is trimmed on decode.

    Encoding writes the value unchanged, so text with leading or trailing
    whitespace does not survive a write -> read round trip: ``"  padded "``
    reads back as ``"padded"``.  Register a custom converter for the
    ``text`` type if outer whitespace is significant.
    """

    def decode(self, text: str) -> str:
        return text.strip()

    def encode(self, value: Any) -> str:
        return "" if value is None else str(value)


class CharConverter(Converter):
    """A single character; blank text leaves the attribute unset."""

    def skips(self, text: str) -> bool:
        return text.strip() == ""

    def decode(self, text: str) -> str:
        return text[0]

    def encode(self, value: Any) -> str:
        if value is None:
            return ""
        value = str(value)
        if len(value) > 1:
            raise ValueError(f"'{value}' is longer than one character")
        return value


class BoolConverter(Converter):
    """Accepts ``true``/``false`` (any case) and ``1``/``0``."""

    def decode(self, text: str) -> bool:
        token = text.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
        raise ValueError(f"'{text}' is not a valid boolean")

    def encode(self, value: Any) -> str:
        return "True" if value else "False"
