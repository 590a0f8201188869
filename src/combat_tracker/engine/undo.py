"""Bounded undo history.

Each mutating command stores a snapshot of the encounter taken before it
ran. Only the most recent snapshots are kept; pushing onto a full stack
drops the oldest one.
"""

from __future__ import annotations

from collections import deque

from combat_tracker.core.constants import MAX_UNDO_STACK
from combat_tracker.core.exceptions import NothingToUndoError
from combat_tracker.core.logging import get_logger
from combat_tracker.models.encounter import EncounterSnapshot


logger = get_logger(__name__)


class UndoStack:
    """LIFO of encounter snapshots with oldest-out eviction."""

    def __init__(self, depth: int = MAX_UNDO_STACK) -> None:
        """Initialize an empty stack.

        Args:
            depth: Maximum number of snapshots kept.
        """
        if depth < 1:
            raise ValueError(f"Undo depth must be positive, got {depth}")
        self._snapshots: deque[EncounterSnapshot] = deque(maxlen=depth)

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def depth(self) -> int:
        return self._snapshots.maxlen or 0

    @property
    def is_empty(self) -> bool:
        return not self._snapshots

    def push(self, snapshot: EncounterSnapshot) -> None:
        """Store a snapshot, evicting the oldest when full."""
        if len(self._snapshots) == self.depth:
            logger.debug("Undo stack full, evicting oldest snapshot", depth=self.depth)
        self._snapshots.append(snapshot)

    def pop(self) -> EncounterSnapshot:
        """Remove and return the most recent snapshot.

        Raises:
            NothingToUndoError: If the stack is empty.
        """
        if not self._snapshots:
            raise NothingToUndoError("Nothing to undo!")
        return self._snapshots.pop()

    def peek(self) -> EncounterSnapshot | None:
        return self._snapshots[-1] if self._snapshots else None

    def clear(self) -> None:
        self._snapshots.clear()


__all__ = [
    "UndoStack",
]
