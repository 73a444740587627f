"""
Timestamp converter for tetl.

With a format hint (Python ``strptime`` directives, e.g. ``"%Y%m%d"``)
decoding is strict: the text must match the format exactly.  Without one,
the locale-invariant ISO 8601 representation is used in both directions.
Anything else is rejected rather than guessed -- ``"05/06/2024"`` could be
May or June, so it fails without an explicit format.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from tetl.converters.base import Converter


class DateTimeConverter(Converter):
    def decode(self, text: str) -> datetime:
        text = text.strip()
        if self.format is not None:
            return datetime.strptime(text, self.format)
        return datetime.fromisoformat(text)

    def encode(self, value: Any) -> str:
        if self.format is not None:
            return value.strftime(self.format)
        return value.isoformat()
