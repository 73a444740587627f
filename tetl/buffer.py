"""
Footer lookahead buffer for tetl.

A forward-only stream cannot tell that a line is the last *data* line
until it has seen the K footer lines after it.  ``FooterBuffer`` delays
delivery through a FIFO capped at K+1 raw lines:

1. Top the FIFO up to K+1 lines, or until the source is exhausted.
2. If the source is exhausted and no more than K lines remain buffered,
   those lines are the footer: report end-of-data without yielding them.
3. Otherwise dequeue and return the oldest line.

K = 0 bypasses the FIFO entirely.

The buffer also owns the physical line counter: ``line_no`` is the
1-based line number of the most recently delivered line (skipped rows
and the header included, buffered-but-undelivered lines excluded).
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Iterable, Iterator

logger = logging.getLogger(__name__)


class FooterBuffer:
    """Line source with optional footer exclusion.

    Args:
        lines: Raw lines, without line terminators.
        footer_rows: Number of trailing lines (K) to withhold.
    """

    def __init__(self, lines: Iterable[str], footer_rows: int = 0) -> None:
        if footer_rows < 0:
            raise ValueError(f"footer_rows must be >= 0, got {footer_rows}")
        self.footer_rows = footer_rows
        self.line_no = 0
        self._lines: Iterator[str] = iter(lines)
        self._queue: deque[str] = deque()
        self._exhausted = False

    def _pull(self) -> bool:
        """Move one line from the source into the FIFO."""
        if self._exhausted:
            return False
        try:
            self._queue.append(next(self._lines))
        except StopIteration:
            self._exhausted = True
            return False
        return True

    def at_end(self) -> bool:
        """Whether no unread raw line remains (footer lines count as unread)."""
        if self._queue:
            return False
        return not self._pull()

    def read_raw(self) -> str | None:
        """Read the next raw line, ignoring footer rules.

        Used for skip rows and the header, which precede the data.
        """
        if not self._queue and not self._pull():
            return None
        self.line_no += 1
        return self._queue.popleft()

    def next_line(self) -> str | None:
        """Return the next data line, or ``None`` at end of data."""
        if self.footer_rows == 0:
            return self.read_raw()

        while len(self._queue) < self.footer_rows + 1:
            if not self._pull():
                break

        if self._exhausted and len(self._queue) <= self.footer_rows:
            if self._queue:
                logger.debug("Withholding %d footer line(s)", len(self._queue))
            return None

        self.line_no += 1
        return self._queue.popleft()
