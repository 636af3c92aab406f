"""Locating a submitted fragment in the current document text."""

from __future__ import annotations

from collections import namedtuple

from .cells import DEFAULT_CELL_MARKER, Cells, count_lines
from .logging import logger

__all__ = ["Match", "map_hint", "match_fragment", "strip_eol"]

# Half-open 0-based line range; exact is False for a virtual (unmatched) block
Match = namedtuple("Match", ["start_line", "end_line", "exact"])


def strip_eol(text: str) -> str:
    """Remove one trailing line terminator."""
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


def _to_newline(code: str, newline: str) -> str:
    return code.replace("\r\n", "\n").replace("\n", newline)


def _candidates(cells: list, wanted: set[str], longest: int):
    """Yield (start_line, end_line) for every run of cells equal to a wanted text."""
    for i, first in enumerate(cells):
        joined = ""
        for cell in cells[i:]:
            joined += cell.text
            if len(joined) > longest + 2:
                break
            if strip_eol(joined) in wanted:
                yield first.lfirst, cell.lfinal + 1
                break


def match_fragment(
    code: str,
    text: str | None,
    hint: int,
    marker: str = DEFAULT_CELL_MARKER,
    newline: str | None = None,
    line_count: int | None = None,
) -> Match:
    """Find the line range of the cell (or run of cells) whose text is code.

    The match starting closest at or after ``hint`` wins, so that duplicate
    cells elsewhere in the document do not steal the submission. When all
    matches start before the hint, the closest one before it is used.
    Without any match the fragment is placed at the hint as a virtual block
    spanning its own line count. The hint is first clamped to the last line
    of the document; the block's end is not.

    Args:
        code: Exact text of the fragment as submitted
        text: Current document text, or None if the document is unknown
        hint: 0-based line the fragment was reported at
        marker: Cell delimiter regular expression
        newline: Newline style of the document, detected when not given
        line_count: Line count reported by the editor, counted from text
            when not given

    Returns:
        Match with a half-open line range
    """
    lines_needed = count_lines(code)
    if text is None:
        start = max(hint, 0)
        return Match(start, start + lines_needed, False)

    cells = Cells(text, marker, newline)
    wanted = {strip_eol(code), strip_eol(_to_newline(code, cells.newline))}
    longest = max(len(w) for w in wanted)
    found = list(_candidates(list(cells), wanted, longest))
    if found:
        after = [m for m in found if m[0] >= hint]
        start, end = min(after) if after else max(found)
        if not after:
            logger.debug(f"Fragment matched at line {start}, before hint line {hint}")
        return Match(start, end, True)

    last_line = line_count - 1 if line_count else text.count("\n")
    start = max(0, min(hint, last_line))
    logger.debug(f"No cell matches fragment, placing it at line {start}")
    return Match(start, start + lines_needed, False)


def map_hint(hint: int, history, since_version: int | None) -> int:
    """Carry a line number forward through edits recorded after a version.

    ``history`` holds ``(version, edit)`` pairs of resolved edits. Edits that
    end before the line shift it by their line delta. An edit replacing text
    that includes the line moves it to the edit's first line, where the
    replacement text starts.
    """
    if since_version is None:
        return hint
    for version, edit in history:
        if version < since_version:
            continue
        if edit.end.line < hint or (edit.end.line == hint and edit.end.character == 0):
            hint += edit.line_delta
        elif edit.start.line <= hint:
            hint = edit.start.line
    return max(hint, 0)
