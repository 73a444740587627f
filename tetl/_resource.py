"""
Scoped text resource for tetl sessions.

Wraps whatever the caller hands a serializer -- a file path, a binary
stream, or an already-decoded text stream -- in a single text stream
that one session owns exclusively.

Ownership rules:
- Paths are opened here and closed on ``close()``.
- Binary streams are wrapped in ``io.TextIOWrapper``; on ``close()`` the
  wrapper is flushed and detached so the caller's stream stays open.
- Text streams are used as-is and only flushed on ``close()``.
"""

from __future__ import annotations

import io
import logging
import os
from pathlib import Path
from typing import IO, Iterator, Literal, Union

from tetl.exceptions import ResourceError

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", IO[bytes], IO[str]]


class TextResource:
    """Text stream plus the knowledge of how to release it.

    Args:
        target: Path, binary stream, or text stream.
        mode: ``"r"`` to read, ``"w"`` to create/truncate, ``"a"`` to append.
        encoding: Text encoding for paths and binary streams.
        newline: Line terminator on write; ``None`` translates ``"\\n"``
            to the platform separator.
    """

    def __init__(
        self,
        target: Source,
        mode: Literal["r", "w", "a"],
        encoding: str = "utf-8",
        newline: str | None = None,
    ) -> None:
        self.mode = mode
        self.closed = False
        self._owned = False
        self._wrapped = False

        if isinstance(target, (str, os.PathLike)):
            self.name = str(target)
            self.stream = self._open_path(Path(target), mode, encoding, newline)
            self._owned = True
        elif isinstance(target, io.TextIOBase):
            self.name = getattr(target, "name", "<text stream>")
            self.stream = target
        else:
            self.name = getattr(target, "name", "<stream>")
            self._check_stream(target, mode)
            # newline=None on read gives universal newlines
            self.stream = io.TextIOWrapper(
                target,
                encoding=encoding,
                newline=None if mode == "r" else newline,
            )
            self._wrapped = True

    @staticmethod
    def _open_path(
        path: Path, mode: str, encoding: str, newline: str | None
    ) -> IO[str]:
        try:
            if mode == "r":
                return open(path, "r", encoding=encoding, newline=None)
            return open(path, mode, encoding=encoding, newline=newline)
        except OSError as exc:
            action = "open" if mode == "r" else "create"
            raise ResourceError(f"Cannot {action} text file {path}: {exc}") from exc

    @staticmethod
    def _check_stream(stream: IO[bytes], mode: str) -> None:
        if mode == "r":
            readable = getattr(stream, "readable", None)
            if readable is None or not readable():
                raise ResourceError(f"Stream {stream!r} is not readable")
        else:
            writable = getattr(stream, "writable", None)
            if writable is None or not writable():
                raise ResourceError(f"Stream {stream!r} is not writable")

    def lines(self) -> Iterator[str]:
        """Iterate raw lines with their terminator removed."""
        for line in self.stream:
            if line.endswith("\n"):
                line = line[:-1]
            yield line

    def write_line(self, line: str) -> None:
        self.stream.write(line)
        self.stream.write("\n")

    def close(self) -> None:
        """Release the stream; safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        if self._owned:
            self.stream.close()
        elif self._wrapped:
            if self.mode != "r":
                self.stream.flush()
            self.stream.detach()
        elif self.mode != "r":
            self.stream.flush()
        logger.debug("Released resource %s", self.name)
