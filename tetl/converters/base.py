"""
Base converter protocol for tetl.

A converter is a stateless, bidirectional text <-> value strategy for a
single value type.  One instance is created per bound column at session
start (so it can carry the descriptor's format hint) and reused for
every row.

Contract:
1. decode(text) -> value, raising on text that does not parse.
2. encode(value) -> text, the inverse of decode.
3. If ``skips(text)`` is True the column is left unset on the record and
   decode is not called.  Nullable variants skip blank text.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Converter(ABC):
    """Abstract base class for value converters.

    Attributes:
        format: Optional format hint from the field descriptor (used by
            timestamp converters; ignored by the others).
    """

    nullable = False

    def __init__(self, format: str | None = None) -> None:
        self.format = format

    def __repr__(self) -> str:
        if self.format is None:
            return f"{type(self).__name__}()"
        return f"{type(self).__name__}(format={self.format!r})"

    def skips(self, text: str) -> bool:
        """Whether *text* means 'leave the attribute unset'."""
        return False

    @abstractmethod
    def decode(self, text: str) -> Any:
        """Parse a raw field into a value."""

    @abstractmethod
    def encode(self, value: Any) -> str:
        """Render a value as field text."""


class NullableConverter(Converter):
    """Wraps a converter so blank text and ``None`` mean 'absent'."""

    nullable = True

    def __init__(self, inner: Converter) -> None:
        super().__init__(inner.format)
        self.inner = inner

    def __repr__(self) -> str:
        return f"Nullable({self.inner!r})"

    def skips(self, text: str) -> bool:
        return text.strip() == ""

    def decode(self, text: str) -> Any:
        if self.skips(text):
            return None
        return self.inner.decode(text)

    def encode(self, value: Any) -> str:
        if value is None:
            return ""
        return self.inner.encode(value)
