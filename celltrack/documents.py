"""The document side of tracking: what the tracker needs from an editor.

``DocumentSource`` is the whole interface. ``InMemoryDocuments`` implements
it on plain strings, which is enough to drive the tracker from scripts and
tests, or to mirror an editor that only sends change notifications.
"""

from __future__ import annotations

from typing import Callable, Protocol

from .ranges import Edit, Position, apply_edits

__all__ = ["DocumentSource", "EditListener", "InMemoryDocuments", "make_edit"]

EditListener = Callable[[str, list], None]


class DocumentSource(Protocol):
    """Read access to editor documents.

    ``get_line_count`` is the number of lines the editor shows, an empty
    line after a final line break included; fragments that match no cell
    are placed no further down than its last line. ``subscribe`` is only
    used when present.
    """

    def get_text(self, file: str) -> str | None: ...

    def get_line_count(self, file: str) -> int: ...

    def subscribe(self, listener: EditListener) -> Callable[[], None]: ...


def make_edit(start_line: int, start_char: int, end_line: int, end_char: int, text: str) -> Edit:
    """Shorthand for an Edit replacing the given range."""
    return Edit(Position(start_line, start_char), Position(end_line, end_char), text)


class InMemoryDocuments:
    """Documents held as strings, notifying listeners after each change."""

    def __init__(self):
        self._texts: dict[str, str] = {}
        self._listeners: list[EditListener] = []

    def add_document(self, text: str, file: str) -> None:
        self._texts[file] = text

    def remove_document(self, file: str) -> None:
        self._texts.pop(file, None)

    def get_text(self, file: str) -> str | None:
        return self._texts.get(file)

    def get_line_count(self, file: str) -> int:
        text = self._texts.get(file)
        if text is None:
            return 0
        # An editor shows an empty line after a final line break
        return text.count("\n") + 1

    def change_document(self, file: str, edits) -> None:
        """Apply edits in order, then tell every listener about the batch."""
        edits = [Edit(Position(*e.start), Position(*e.end), e.text) for e in edits]
        self._texts[file], _ = apply_edits(self._texts[file], edits)
        for listener in list(self._listeners):
            listener(file, edits)

    def subscribe(self, listener: EditListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
