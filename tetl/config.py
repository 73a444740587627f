"""
Serializer configuration model and YAML I/O for tetl.

``SerializerConfig`` holds every option that shapes how a delimited file
is read or written: delimiter, header/footer handling, quoting, preamble
lines and text encoding.  It is a frozen Pydantic model -- the
configuration object is immutable input, and everything derived from it
at run time (column metadata, converters, buffers) lives on a session.

Key functions:
- load_config(path) -> SerializerConfig: Load and validate from YAML.
- save_config(config, path): Serialize to YAML.

Why Pydantic + YAML:
- Pydantic gives us strict validation (non-empty delimiter, non-negative
  row counts) and clear error messages at construction time.
- YAML keeps file-format settings human-editable next to the data.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from tetl.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_NEWLINES = (None, "", "\n", "\r", "\r\n")


class SerializerConfig(BaseModel):
    """File-format options shared by the read and write paths."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    delimiter: str = Field(..., description="Field separator; may be several characters")
    first_row_header: bool = Field(
        False, description="If True, the first non-skipped line holds column headings"
    )
    skip_header_rows: int = Field(
        0, ge=0, description="Number of lines at the top of the file to skip"
    )
    skip_footer_rows: int = Field(
        0, ge=0, description="Number of lines at the end of the file to exclude"
    )
    fields_in_quotes: bool = Field(
        False, description="If True, fields wrapped in double quotes may embed delimiters"
    )
    append_mode: bool = Field(
        False, description="If True, writes append to an existing file without preamble/header"
    )
    preamble_lines: tuple[str, ...] = Field(
        (), description="Lines written verbatim before the header when writing"
    )
    encoding: str = Field("utf-8", description="Text encoding of the file")
    newline: str | None = Field(
        None, description="Line terminator for writing; None uses the platform default"
    )

    @field_validator("delimiter")
    @classmethod
    def _check_delimiter(cls, value: str) -> str:
        if value == "":
            raise ValueError("Delimiter must be specified")
        if "\n" in value or "\r" in value:
            raise ValueError("Delimiter cannot contain a line break")
        return value

    @field_validator("newline")
    @classmethod
    def _check_newline(cls, value: str | None) -> str | None:
        # the values io.TextIOWrapper accepts
        if value not in _NEWLINES:
            raise ValueError(
                f"newline must be one of None, '', '\\n', '\\r' or '\\r\\n', got {value!r}"
            )
        return value


def load_config(path: str | Path) -> SerializerConfig:
    """Load and validate a serializer config YAML file.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ConfigurationError: If the file is empty.
        pydantic.ValidationError: If the YAML content fails validation.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)
    if raw is None:
        raise ConfigurationError(f"Config file is empty: {path}")
    logger.info("Loaded serializer config from %s", path)
    return SerializerConfig.model_validate(raw)


def save_config(config: SerializerConfig, path: str | Path) -> None:
    """Serialize a SerializerConfig to YAML."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    data = config.model_dump(mode="json")
    with open(path, "w", encoding="utf-8") as f:
        f.write("# tetl serializer configuration\n\n")
        yaml.dump(
            data,
            f,
            allow_unicode=True,
            default_flow_style=False,
            sort_keys=False,
        )
    logger.info("Saved serializer config to %s", path)
