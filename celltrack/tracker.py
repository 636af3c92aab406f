"""Tracking executed cells across document edits.

``BlockTracker`` owns the tracked state of every document for one execution
session. Submissions create or refresh blocks, edit batches move them, an
engine restart drops everything. Consumers read ``snapshot()``.
"""

from __future__ import annotations

from collections import deque, namedtuple

from .documents import DocumentSource
from .events import EventKind
from .logging import logger
from .matching import map_hint, match_fragment
from .ranges import TrackedBlock, line_offsets, revive, translate
from .settings import Settings

__all__ = ["BlockRange", "BlockTracker", "DocumentState", "TrackedFile"]

# Lines are 0-based, end_line exclusive
BlockRange = namedtuple("BlockRange", ["start_line", "end_line", "execution_count", "hash"])
TrackedFile = namedtuple("TrackedFile", ["file", "blocks"])


class DocumentState:
    """Blocks of one document, plus the tracker's copy of its text."""

    def __init__(self, file: str, text: str | None, history_limit: int):
        self.file = file
        self.text = text
        self.blocks: list[TrackedBlock] = []
        self.version = 0
        self.history: deque = deque(maxlen=history_limit)
        # Newest version with edits that no longer fit the history
        self.dropped_version = -1

    def live_blocks(self) -> list[TrackedBlock]:
        return [b for b in self.blocks if not b.deleted]

    def record(self, edits) -> None:
        """Remember a batch of resolved edits as the next version."""
        for edit in edits:
            if len(self.history) == self.history.maxlen:
                if not self.history:
                    self.dropped_version = self.version
                    continue
                self.dropped_version = self.history.popleft()[0]
            self.history.append((self.version, edit))
        self.version += 1

    def history_complete(self, since_version: int) -> bool:
        return since_version > self.dropped_version


class BlockTracker:
    """Map executed fragments to their current place in edited documents.

    Args:
        documents: Source of document text; its edit notifications are
            subscribed to when it offers ``subscribe``
        settings: Tracker settings, read again on every event
    """

    def __init__(self, documents: DocumentSource, settings: Settings | None = None):
        self.documents = documents
        self.settings = settings or Settings()
        self._states: dict[str, DocumentState] = {}
        self._execution_count = 0
        self._unsubscribe = None
        subscribe = getattr(documents, "subscribe", None)
        if subscribe is not None:
            self._unsubscribe = subscribe(self.document_edited)
        self._handlers = {
            EventKind.SUBMIT: lambda e: self.submit_fragment(e.code, e.file, e.line, e.version),
            EventKind.EDIT: lambda e: self.document_edited(e.file, e.edits),
            EventKind.RESTART: lambda e: self.reset_all(),
        }

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def close(self) -> None:
        """Stop listening to document edits."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle(self, event) -> None:
        """Dispatch an event from ``celltrack.events`` to its entry point."""
        self._handlers[event.kind](event)

    def submit_fragment(self, code: str, file: str, line: int, version: int | None = None) -> None:
        """Record that ``code`` from ``file`` at 0-based ``line`` was executed."""
        if not self.enabled:
            return
        state = self._states.get(file)
        text = self.documents.get_text(file)
        if state is None:
            state = DocumentState(file, text, self.settings.history_limit)
            self._states[file] = state
        elif text is not None and text != state.text:
            if state.text is not None:
                logger.warning(f"Tracked copy of {file} diverged from the document, resyncing")
            state.text = text

        if version is not None and not state.history_complete(version):
            logger.debug(
                f"Edits to {file} since version {version} were dropped from the "
                f"history, using line {line} as given"
            )
            version = None
        hint = map_hint(line, state.history, version)
        match = match_fragment(
            code,
            state.text,
            hint,
            self.settings.cell_marker,
            self.settings.newline,
            line_count=self.documents.get_line_count(file),
        )
        self._execution_count += 1
        block = self._make_block(state, code, match.start_line, match.end_line)
        state.blocks = [
            b
            for b in state.blocks
            if b.code != code and not b.overlaps(block.start_line, block.end_line)
        ]
        state.blocks.append(block)
        state.blocks.sort(key=lambda b: b.start_line)
        logger.debug(
            f"Tracking {file} lines {block.start_line}-{block.end_line} as execution "
            f"{block.execution_count}{'' if match.exact else ' (no matching cell)'}"
        )

    def _make_block(self, state: DocumentState, code: str, start: int, end: int) -> TrackedBlock:
        text = state.text
        if text is None:
            source, start_offset = code, 0
        else:
            offsets = line_offsets(text)
            start_offset = offsets[start] if start < len(offsets) else len(text)
            end_offset = offsets[end] if end < len(offsets) else len(text)
            source = text[start_offset:end_offset]
        return TrackedBlock(
            file=state.file,
            code=code,
            source=source,
            start_line=start,
            end_line=end,
            start_offset=start_offset,
            execution_count=self._execution_count,
        )

    def document_edited(self, file: str, edits) -> None:
        """Move the blocks of ``file`` through a batch of edits."""
        if not self.enabled:
            return
        state = self._states.get(file)
        if state is None:
            return
        if state.text is None:
            logger.debug(f"Ignoring edits to {file}: its text was never available")
            return

        translation = translate(state.blocks, state.text, edits)
        text = translation.text
        current = self.documents.get_text(file)
        if current is not None and current != text:
            logger.warning(f"Tracked copy of {file} diverged from the document, resyncing")
            text = current

        blocks = revive(translation.blocks, text)
        for old, new in zip(state.blocks, blocks):
            if old.deleted != new.deleted:
                change = "deleted" if new.deleted else "restored"
                logger.debug(f"Execution {new.execution_count} in {file} {change}")
        state.blocks = sorted(blocks, key=lambda b: b.start_line)
        state.text = text
        state.record(translation.edits)

    def reset_all(self) -> None:
        """Forget every tracked document, as after an engine restart."""
        if self._states:
            logger.debug(f"Discarding tracked blocks of {len(self._states)} documents")
        self._states.clear()
        self._execution_count = 0

    reset = reset_all

    def version(self, file: str) -> int:
        """Number of edit batches seen for ``file`` since it became tracked."""
        state = self._states.get(file)
        return state.version if state else 0

    def snapshot(self) -> list[TrackedFile]:
        """Live blocks per document, documents without any left out."""
        if not self.enabled:
            return []
        result = []
        for file, state in self._states.items():
            blocks = [
                BlockRange(b.start_line, b.end_line, b.execution_count, b.hash)
                for b in state.live_blocks()
            ]
            if blocks:
                result.append(TrackedFile(file, blocks))
        return result

    def locate(self, file: str, execution_count: int, lineno: int) -> int | None:
        """Map a 1-based line of an executed fragment to its document line.

        Returns the 0-based line in the live document, or None when the block
        executed as ``execution_count`` is not tracked or currently deleted.
        """
        state = self._states.get(file)
        if state is None or not self.enabled:
            return None
        for block in state.live_blocks():
            if block.execution_count == execution_count:
                if not 1 <= lineno <= block.line_count:
                    return None
                return block.start_line + lineno - 1
        return None
