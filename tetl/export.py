"""
Columnar exporter for tetl.

Turns a stream of typed records (typically a ``ReadSession``) into
pandas DataFrames and writes them as Parquet or CSV.  This module only
consumes records through forward iteration -- it never reaches into a
session's buffers -- so it works the same on any iterable of records.

Output column names are each descriptor's ``column`` if set, else its
``attribute``.  Column dtypes follow the value type:

    text/char -> string, int32 -> Int32, int64 -> Int64, float -> float64,
    bool -> boolean, datetime -> datetime64[ns], decimal -> object

(nullable pandas extension dtypes, so unset values become <NA>).
Timezone-aware timestamps are converted to UTC and stored naive.  Custom
(non built-in) value types are exported as their ``str()`` text.

Parquet export is streamed: records are gathered ``batch_size`` at a
time and each batch is written as one row group through
``pyarrow.parquet.ParquetWriter``, so the whole file is never held in
memory.  The Arrow schema is derived from the ``RecordSchema`` up front
(see ``arrow_schema``), never inferred from the first batch, so a batch
of all-null values or of decimals with a different scale still fits.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from itertools import islice
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from tetl.exceptions import ExportError
from tetl.schema import RecordSchema

logger = logging.getLogger(__name__)

_SUPPORTED_FORMATS = {"csv", "parquet"}

_PANDAS_DTYPES: dict[str, str] = {
    "text": "string",
    "char": "string",
    "int32": "Int32",
    "int64": "Int64",
    "float": "float64",
    "bool": "boolean",
    "datetime": "datetime64[ns]",
    "decimal": "object",
}

# decimal128(38, 18): 20 integer digits, 18 fractional digits
DECIMAL_TYPE = pa.decimal128(38, 18)

_ARROW_TYPES: dict[str, pa.DataType] = {
    "text": pa.string(),
    "char": pa.string(),
    "int32": pa.int32(),
    "int64": pa.int64(),
    "float": pa.float64(),
    "bool": pa.bool_(),
    "datetime": pa.timestamp("ns"),
    "decimal": DECIMAL_TYPE,
}


def column_names(schema: RecordSchema) -> list[str]:
    """Output column name per descriptor (header name, else attribute)."""
    return [f.column or f.attribute for f in schema.fields]


def arrow_schema(schema: RecordSchema) -> pa.Schema:
    """Arrow schema for *schema*; every column is nullable."""
    return pa.schema(
        [
            pa.field(name, _ARROW_TYPES.get(f.value_type, pa.string()))
            for name, f in zip(column_names(schema), schema.fields)
        ]
    )


def _naive_utc(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def records_to_frame(records: Iterable[Any], schema: RecordSchema) -> pd.DataFrame:
    """Collect records into a DataFrame, one column per descriptor."""
    fields = schema.fields
    values: list[list[Any]] = [[] for _ in fields]
    for record in records:
        for i, descriptor in enumerate(fields):
            values[i].append(descriptor.get(record))

    data = {}
    for name, descriptor, column in zip(column_names(schema), fields, values):
        dtype = _PANDAS_DTYPES.get(descriptor.value_type)
        if dtype is None:
            dtype = "string"
            column = [None if v is None else str(v) for v in column]
        elif descriptor.value_type == "datetime":
            column = [_naive_utc(v) for v in column]
        data[name] = pd.Series(column, dtype=dtype, name=name)
    return pd.DataFrame(data, columns=column_names(schema))


def _frame(batch: list[Any], schema: RecordSchema, path: Path) -> pd.DataFrame:
    try:
        return records_to_frame(batch, schema)
    except (TypeError, ValueError, OverflowError) as exc:
        raise ExportError(f"Cannot build a table for {path.name}: {exc}") from exc


def _batches(records: Iterable[Any], batch_size: int) -> Iterator[list[Any]]:
    it = iter(records)
    while True:
        batch = list(islice(it, batch_size))
        if not batch:
            return
        yield batch


def export_records(
    records: Iterable[Any],
    schema: RecordSchema,
    path: str | Path,
    output_format: Literal["csv", "parquet"] = "parquet",
    batch_size: int = 10_000,
) -> int:
    """Write records to a Parquet or CSV file in batches.

    Errors raised while *producing* records (e.g. ``ConversionError``
    from a read session) propagate unchanged; only write failures are
    wrapped in ``ExportError``.

    Args:
        records: Any iterable of records matching *schema*.
        schema: Descriptors deciding columns and dtypes.
        path: Output file path (parent directories are created).
        output_format: ``"parquet"`` or ``"csv"``.
        batch_size: Records per row group / CSV chunk.

    Returns:
        Number of records written.

    Raises:
        ExportError: If *output_format* is unsupported, or writing fails.
    """
    if output_format not in _SUPPORTED_FORMATS:
        raise ExportError(
            f"Unsupported output format: '{output_format}'. "
            f"Supported formats: {sorted(_SUPPORTED_FORMATS)}"
        )
    if batch_size < 1:
        raise ExportError(f"batch_size must be positive, got {batch_size}")

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if output_format == "parquet":
        total = _export_parquet(records, schema, path, batch_size)
    else:
        total = _export_csv(records, schema, path, batch_size)

    logger.info("Exported %d record(s) -> %s", total, path.name)
    return total


def _export_parquet(
    records: Iterable[Any], schema: RecordSchema, path: Path, batch_size: int
) -> int:
    target = arrow_schema(schema)
    writer: pq.ParquetWriter | None = None
    total = 0
    try:
        for batch in _batches(records, batch_size):
            frame = _frame(batch, schema, path)
            try:
                table = pa.Table.from_pandas(frame, schema=target, preserve_index=False)
                if writer is None:
                    writer = pq.ParquetWriter(path, table.schema)
                writer.write_table(table)
            except Exception as exc:
                raise ExportError(f"Failed to write {path.name} as parquet: {exc}") from exc
            total += len(batch)
            logger.debug("Wrote row group of %d record(s) to %s", len(batch), path.name)

        if writer is None:
            # no records: still produce a file carrying the schema
            frame = _frame([], schema, path)
            try:
                table = pa.Table.from_pandas(frame, schema=target, preserve_index=False)
                pq.write_table(table, path)
            except Exception as exc:
                raise ExportError(f"Failed to write {path.name} as parquet: {exc}") from exc
    finally:
        if writer is not None:
            writer.close()
    return total


def _export_csv(
    records: Iterable[Any], schema: RecordSchema, path: Path, batch_size: int
) -> int:
    total = 0
    first = True
    for batch in _batches(records, batch_size):
        _write_csv(_frame(batch, schema, path), path, append=not first)
        first = False
        total += len(batch)

    if first:
        _write_csv(_frame([], schema, path), path, append=False)
    return total


def _write_csv(frame: pd.DataFrame, path: Path, append: bool) -> None:
    try:
        frame.to_csv(
            path,
            index=False,
            mode="a" if append else "w",
            header=not append,
            encoding="utf-8",
        )
    except Exception as exc:
        raise ExportError(f"Failed to write {path.name} as csv: {exc}") from exc
