"""Splitting documents into delimiter-separated cells.

A cell starts at a delimiter line (``# %%`` and friends) and runs up to the
line before the next delimiter, or to the end of the document. Text before
the first delimiter forms an implicit cell of its own.

Lines are always split on ``"\\n"`` with terminators kept, so a ``"\\r"``
of CRLF text stays part of its line. Column arithmetic done elsewhere in the
package relies on this.
"""

from __future__ import annotations

import re
from collections import namedtuple
from functools import lru_cache

__all__ = [
    "Cell",
    "Cells",
    "DEFAULT_CELL_MARKER",
    "count_lines",
    "detect_newline",
    "is_cell_marker",
    "split_lines",
]

# Lines are 0-based, lfinal inclusive; text keeps its line terminators
Cell = namedtuple("Cell", ["lfirst", "lfinal", "text"])

DEFAULT_CELL_MARKER = r"#\s*%%|#\s*<codecell>|#\s*In\[\d*\]"


@lru_cache(maxsize=16)
def _compile(marker: str) -> re.Pattern:
    return re.compile(marker)


def split_lines(text: str) -> list[str]:
    """Split text on ``"\\n"``, keeping terminators. Empty text has no lines."""
    parts = text.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def count_lines(code: str) -> int:
    """Number of lines a fragment spans; an empty fragment still spans one."""
    return max(1, len(split_lines(code)))


def detect_newline(text: str) -> str:
    """Return the newline style of the first line break in text."""
    pos = text.find("\n")
    if pos > 0 and text[pos - 1] == "\r":
        return "\r\n"
    return "\n"


def is_cell_marker(line: str, marker: str = DEFAULT_CELL_MARKER) -> bool:
    """Check whether a line is a cell delimiter."""
    return _compile(marker).match(line.strip()) is not None


class Cells:
    """Lazy, restartable sequence of the cells of a document.

    Every iteration re-splits the text, so the object can be iterated any
    number of times and holds no state besides its inputs.

    Args:
        text: Full document text
        marker: Regular expression matched at the start of a stripped line
        newline: Newline style of the document, detected when not given
    """

    def __init__(self, text: str, marker: str = DEFAULT_CELL_MARKER, newline=None):
        self.text = text
        self.marker = marker
        self.newline = newline or detect_newline(text)

    def __iter__(self):
        lines = split_lines(self.text)
        pattern = _compile(self.marker)
        start = 0
        for idx, line in enumerate(lines):
            if idx == 0 or pattern.match(line.strip()) is None:
                continue
            yield from self._cell(lines, start, idx - 1)
            start = idx
        if lines:
            yield from self._cell(lines, start, len(lines) - 1)

    def _cell(self, lines: list[str], lfirst: int, lfinal: int):
        text = "".join(lines[lfirst : lfinal + 1])
        # A leading prefix without delimiter only counts if it has content
        if lfirst == 0 and not is_cell_marker(lines[0], self.marker) and not text.strip():
            return
        yield Cell(lfirst, lfinal, text)

    def __repr__(self):
        return f"Cells({len(self.text)} chars, marker={self.marker!r})"
