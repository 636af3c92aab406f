from .cells import Cell, Cells, split_lines
from .documents import DocumentSource, InMemoryDocuments, make_edit
from .events import DocumentEdited, EngineRestarted, EventKind, FragmentSubmitted
from .matching import match_fragment
from .ranges import Edit, Position, TrackedBlock, revive, translate
from .settings import Settings
from .tracker import BlockRange, BlockTracker, TrackedFile

__all__ = [
    "BlockTracker",
    "BlockRange",
    "TrackedFile",
    "TrackedBlock",
    "Settings",
    "Cell",
    "Cells",
    "split_lines",
    "match_fragment",
    "translate",
    "revive",
    "Edit",
    "Position",
    "make_edit",
    "DocumentSource",
    "InMemoryDocuments",
    "EventKind",
    "FragmentSubmitted",
    "DocumentEdited",
    "EngineRestarted",
]
