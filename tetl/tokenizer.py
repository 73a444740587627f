"""
Line tokenizer for tetl.

Splits one raw line into fields on a (possibly multi-character) delimiter,
and joins fields back into a line for the writer.

Quote-aware mode uses a parity heuristic rather than a full quoted-CSV
grammar:

- Scan left to right, counting quote characters seen since the last
  field boundary.
- A delimiter match is a real boundary only when that count is even,
  i.e. we are not inside an open quoted span.
- At each boundary the buffered field loses at most one leading and one
  trailing quote, and every doubled quote ``""`` collapses to ``"``.

So with delimiter ``;``::

    split_line('Fred;"Hello;World"', ";", quoted=True)  -> ["Fred", "Hello;World"]
    split_line('"say ""hi"" now"', ";", quoted=True)    -> ['say "hi" now']

Fields with unbalanced quotes outside an intended quoted span are handled
on a best-effort basis only.  Line breaks inside quoted fields are not
supported because the line source splits on newlines first.
"""

from __future__ import annotations

_QUOTE = '"'


def split_line(line: str, delimiter: str, quoted: bool = False) -> list[str]:
    """Split *line* into fields.

    Args:
        line: One raw line without its line terminator.
        delimiter: Non-empty field separator.
        quoted: If True, apply the quote-parity rules described above.
            If False, this is a plain ``str.split`` with no trimming.
    """
    if not quoted:
        return line.split(delimiter)
    return _split_quoted(line, delimiter)


def _split_quoted(line: str, delimiter: str) -> list[str]:
    fields: list[str] = []
    buffer: list[str] = []
    quotes_seen = 0
    width = len(delimiter)
    i = 0

    while i < len(line):
        char = line[i]
        if char == _QUOTE:
            quotes_seen += 1

        if quotes_seen % 2 == 0 and line.startswith(delimiter, i):
            fields.append(_unquote("".join(buffer)))
            buffer = []
            quotes_seen = 0
            i += width
            continue

        buffer.append(char)
        i += 1

    fields.append(_unquote("".join(buffer)))
    return fields


def _unquote(field: str) -> str:
    if field.startswith(_QUOTE):
        field = field[1:]
    if field.endswith(_QUOTE):
        field = field[:-1]
    return field.replace(_QUOTE * 2, _QUOTE)


def join_fields(fields: list[str], delimiter: str, quoted: bool = False) -> str:
    """Join encoded fields into one line (inverse of ``split_line``).

    In quoted mode a field containing the delimiter or a quote is wrapped
    in quotes with embedded quotes doubled; other fields are written as-is.
    """
    if not quoted:
        return delimiter.join(fields)
    return delimiter.join(_quote(f, delimiter) for f in fields)


def _quote(field: str, delimiter: str) -> str:
    if delimiter in field or _QUOTE in field:
        return _QUOTE + field.replace(_QUOTE, _QUOTE * 2) + _QUOTE
    return field
