"""Tracker configuration."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields

from .cells import DEFAULT_CELL_MARKER

__all__ = ["Settings"]


@dataclass(frozen=True)
class Settings:
    """Settings read by the tracker on every event.

    Attributes:
        enabled: When False every event is ignored and snapshots are empty
        cell_marker: Regular expression for cell delimiter lines
        newline: Newline style of documents, detected per document if None
        history_limit: Edits remembered per document for mapping stale lines
    """

    enabled: bool = True
    cell_marker: str = DEFAULT_CELL_MARKER
    newline: str | None = None
    history_limit: int = 1000

    def __post_init__(self):
        if not isinstance(self.enabled, bool):
            raise ValueError("Setting 'enabled' must be a boolean.")
        if not isinstance(self.cell_marker, str):
            raise ValueError("Setting 'cell_marker' must be a string.")
        try:
            re.compile(self.cell_marker)
        except re.error as e:
            raise ValueError(f"Setting 'cell_marker' is not a valid pattern: {e}") from None
        if self.newline not in (None, "\n", "\r\n"):
            raise ValueError("Setting 'newline' must be None, '\\n' or '\\r\\n'.")
        if isinstance(self.history_limit, bool) or not isinstance(self.history_limit, int):
            raise ValueError("Setting 'history_limit' must be an integer.")
        if self.history_limit < 0:
            raise ValueError("Setting 'history_limit' must not be negative.")

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> Settings:
        """Build settings from a mapping, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(unknown)}")
        return cls(**payload)  # type: ignore[arg-type]
