"""Events a tracker consumes, one payload class per kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

__all__ = [
    "DocumentEdited",
    "EngineRestarted",
    "EventKind",
    "FragmentSubmitted",
]


class EventKind(Enum):
    SUBMIT = "submit"
    EDIT = "edit"
    RESTART = "restart"


@dataclass(frozen=True)
class FragmentSubmitted:
    """Code sent to the execution engine from a document line.

    ``version`` is the document version the line refers to, when the sender
    knows it; the line is then carried through edits made since.
    """

    kind: ClassVar[EventKind] = EventKind.SUBMIT
    code: str
    file: str
    line: int
    version: int | None = None


@dataclass(frozen=True)
class DocumentEdited:
    kind: ClassVar[EventKind] = EventKind.EDIT
    file: str
    edits: list = field(default_factory=list)


@dataclass(frozen=True)
class EngineRestarted:
    kind: ClassVar[EventKind] = EventKind.RESTART
    reason: str = "restart"
