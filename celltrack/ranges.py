"""Translating tracked block ranges through document edits.

Everything here is a pure function of (blocks, text, edits): no document
object, tracker or event stream is needed, which keeps the position
bookkeeping testable on its own.

Blocks are located by character offset as well as by line. Offsets decide
whether an edit touches a block's text; lines are what callers see. A block
hit by an edit is only marked deleted and keeps its offset, so that a later
edit restoring the exact text at that offset brings it back (see ``revive``).
An edit that deletes a block starting at or above it also leaves a restore
point, as reinserting the text there pushes the stale offset down past it.
"""

from __future__ import annotations

import dataclasses
import hashlib
from collections import namedtuple
from dataclasses import dataclass

__all__ = [
    "Edit",
    "Position",
    "ResolvedEdit",
    "TrackedBlock",
    "Translation",
    "apply_edits",
    "line_offsets",
    "offset_at",
    "position_at",
    "resolve_edit",
    "revive",
    "translate",
]

# Both 0-based; character may run past the end of its line (see offset_at)
Position = namedtuple("Position", ["line", "character"])

# Replace the text between start and end positions with text
Edit = namedtuple("Edit", ["start", "end", "text"])

ResolvedEdit = namedtuple(
    "ResolvedEdit",
    ["start", "end", "start_offset", "end_offset", "text", "line_delta", "offset_delta"],
)

Translation = namedtuple("Translation", ["blocks", "text", "edits"])

MAX_RESTORE_POINTS = 8


@dataclass
class TrackedBlock:
    """One submitted fragment and where its text currently sits.

    Lines are 0-based and half-open: ``end_line`` is the first line after the
    block. ``source`` is the document text the block covered when it was
    matched and is what the revival check compares against.
    """

    file: str
    code: str
    source: str
    start_line: int
    end_line: int
    start_offset: int
    execution_count: int
    deleted: bool = False
    # (edit start, block offset) for each edit that deleted the block starting
    # at or above it; reinserting text at the edit start puts the block back
    # at that offset
    restore_points: tuple = ()

    @property
    def end_offset(self) -> int:
        return self.start_offset + len(self.source)

    @property
    def line(self) -> int:
        """1-based start line, as shown in editor gutters."""
        return self.start_line + 1

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line

    @property
    def hash(self) -> str:
        return hashlib.sha1(self.code.encode("utf-8")).hexdigest()[:12]

    def overlaps(self, start_line: int, end_line: int) -> bool:
        return self.start_line < end_line and start_line < self.end_line


def line_offsets(text: str) -> list[int]:
    """Offsets at which each line of text starts. Always at least one line."""
    offsets = [0]
    pos = text.find("\n")
    while pos != -1:
        offsets.append(pos + 1)
        pos = text.find("\n", pos + 1)
    return offsets


def offset_at(text: str, position, offsets: list[int] | None = None) -> int:
    """Convert a position to an offset into text.

    The character is added to the line start without clamping it to the
    line, so ``(1, 14)`` on a 13 character line points past its line break.
    The result is clamped to the text.
    """
    if offsets is None:
        offsets = line_offsets(text)
    line, character = position
    if line >= len(offsets):
        return len(text)
    return max(0, min(offsets[max(line, 0)] + character, len(text)))


def position_at(text: str, offset: int) -> Position:
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset)
    return Position(line, offset - (text.rfind("\n", 0, offset) + 1))


def resolve_edit(text: str, edit) -> ResolvedEdit:
    """Pin an edit to offsets in the text it applies to."""
    offsets = line_offsets(text)
    start_offset = offset_at(text, edit.start, offsets)
    end_offset = max(start_offset, offset_at(text, edit.end, offsets))
    replaced = text[start_offset:end_offset]
    return ResolvedEdit(
        start=position_at(text, start_offset),
        end=position_at(text, end_offset),
        start_offset=start_offset,
        end_offset=end_offset,
        text=edit.text,
        line_delta=edit.text.count("\n") - replaced.count("\n"),
        offset_delta=len(edit.text) - len(replaced),
    )


def _apply(text: str, resolved: ResolvedEdit) -> str:
    return text[: resolved.start_offset] + resolved.text + text[resolved.end_offset :]


def apply_edits(text: str, edits) -> tuple[str, list[ResolvedEdit]]:
    """Apply edits in order, each one against the text left by the previous."""
    resolved_edits = []
    for edit in edits:
        resolved = resolve_edit(text, edit)
        text = _apply(text, resolved)
        resolved_edits.append(resolved)
    return text, resolved_edits


def _is_before(block: TrackedBlock, edit: ResolvedEdit, text: str) -> bool:
    if edit.end_offset < block.start_offset:
        return True
    if edit.end_offset > block.start_offset:
        return False
    # The edit ends exactly where the block starts; the block's first line is
    # untouched only if it still begins a line afterwards
    if edit.text:
        return edit.text.endswith("\n")
    return edit.start_offset == 0 or text[edit.start_offset - 1] == "\n"


def _is_after(block: TrackedBlock, edit: ResolvedEdit) -> bool:
    if edit.start_offset > block.end_offset:
        return True
    if edit.start_offset < block.end_offset:
        return False
    # Right at the block end: only a block without a trailing line break can
    # have its last line extended
    return (
        block.source.endswith("\n")
        or not edit.text
        or edit.text.startswith(("\n", "\r\n"))
    )


def _shift_points(points: tuple, edit: ResolvedEdit) -> tuple:
    result = []
    for anchor, offset in points:
        if edit.start_offset >= anchor:
            # Text inserted at the anchor may be the deleted text coming back
            result.append((anchor, offset))
        elif edit.end_offset <= anchor:
            result.append((anchor + edit.offset_delta, offset + edit.offset_delta))
    return tuple(result)


def _translate_one(block: TrackedBlock, edit: ResolvedEdit, text: str) -> TrackedBlock:
    points = _shift_points(block.restore_points, edit)
    if _is_before(block, edit, text):
        return dataclasses.replace(
            block,
            start_line=block.start_line + edit.line_delta,
            end_line=block.end_line + edit.line_delta,
            start_offset=block.start_offset + edit.offset_delta,
            restore_points=points,
        )
    if _is_after(block, edit):
        if points == block.restore_points:
            return block
        return dataclasses.replace(block, restore_points=points)
    if edit.start_offset <= block.start_offset:
        point = (edit.start_offset, block.start_offset)
        if point not in points:
            points = (*points, point)[-MAX_RESTORE_POINTS:]
    return dataclasses.replace(block, deleted=True, restore_points=points)


def translate(blocks: list[TrackedBlock], text: str, edits) -> Translation:
    """Move blocks through a batch of edits.

    Args:
        blocks: Blocks of one document, positioned against ``text``
        text: Document text before the batch
        edits: ``Edit`` tuples, each in the coordinates of the text left by
            the edits before it

    Returns:
        Translation with new block objects, the text after the batch and
        the resolved edits
    """
    blocks = list(blocks)
    resolved_edits = []
    for edit in edits:
        resolved = resolve_edit(text, edit)
        blocks = [_translate_one(b, resolved, text) for b in blocks]
        text = _apply(text, resolved)
        resolved_edits.append(resolved)
    return Translation(blocks, text, resolved_edits)


def _text_at(block: TrackedBlock, text: str, start: int) -> str | None:
    if start < 0 or start > len(text):
        return None
    if start > 0 and text[start - 1] != "\n":
        return None
    end = start + len(block.source)
    # The last line must end where the block ends, not run on past it
    if not block.source.endswith("\n") and end < len(text) and text[end] not in "\r\n":
        return None
    return text[start:end]


def _revival_offset(block: TrackedBlock, text: str, others) -> int | None:
    candidates = [block.start_offset]
    candidates += [offset for _, offset in reversed(block.restore_points)]
    for start in candidates:
        if _text_at(block, text, start) != block.source:
            continue
        start_line = text.count("\n", 0, start)
        end_line = start_line + block.line_count
        if not any(other.overlaps(start_line, end_line) for other in others):
            return start
    return None


def revive(blocks: list[TrackedBlock], text: str) -> list[TrackedBlock]:
    """Bring back deleted blocks whose exact text is in place again.

    The text is looked for at the block's offset, and at the offsets where
    undoing an edit that deleted the block from above would put it.
    """
    result = list(blocks)
    for idx, block in enumerate(result):
        if not block.deleted:
            continue
        others = [b for b in result if b is not block and not b.deleted]
        start = _revival_offset(block, text, others)
        if start is None:
            continue
        start_line = text.count("\n", 0, start)
        result[idx] = dataclasses.replace(
            block,
            deleted=False,
            start_line=start_line,
            end_line=start_line + block.line_count,
            start_offset=start,
            restore_points=(),
        )
    return result
