"""Combat log for an encounter session.

The combat log is the narrated record of the encounter shown to the table.
Entries are immutable once written. Exporting appends the whole log to a
text file and then empties it, so each export holds one stretch of play.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from combat_tracker.core.constants import (
    LOG_EXPORT_BANNER,
    LOG_EXPORT_FOOTER,
    LOG_EXPORT_TITLE,
    LOG_TIMESTAMP_FORMAT,
)
from combat_tracker.core.exceptions import StorageError, ValidationError
from combat_tracker.core.logging import get_logger


logger = get_logger(__name__)


class LogEntry(BaseModel):
    """A single narrated event.

    Attributes:
        round: Round in which the event happened.
        turn_id: ID of the combatant whose turn it was, if any.
        timestamp: Wall-clock time the entry was written.
        message: Narration.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    round: int = Field(ge=1)
    turn_id: int | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
    message: str

    def render(self) -> str:
        """Format the entry as an export line."""
        return f"[R{self.round}] {self.message}"


class CombatLog:
    """Append-only, session-scoped list of log entries."""

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self._entries)

    def __bool__(self) -> bool:
        return bool(self._entries)

    @property
    def entries(self) -> tuple[LogEntry, ...]:
        """All entries in chronological order."""
        return tuple(self._entries)

    def append(self, message: str, *, round_number: int, turn_id: int | None) -> LogEntry:
        """Write one entry.

        Args:
            message: Narration.
            round_number: Current round.
            turn_id: ID of the combatant whose turn it is.

        Returns:
            The stored entry.
        """
        entry = LogEntry(round=round_number, turn_id=turn_id, message=message)
        self._entries.append(entry)
        logger.debug("Combat log entry", round=round_number, message=message)
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def render_export(self, *, exported_at: datetime | None = None) -> str:
        """Render the export block for the current entries.

        Args:
            exported_at: Time printed in the header; defaults to now.

        Returns:
            Banner, timestamp, one line per entry, footer and a blank line.
        """
        stamp = (exported_at or datetime.now()).strftime(LOG_TIMESTAMP_FORMAT)
        lines = [
            LOG_EXPORT_BANNER,
            LOG_EXPORT_TITLE.format(timestamp=stamp),
            LOG_EXPORT_BANNER,
            *(entry.render() for entry in self._entries),
            LOG_EXPORT_FOOTER,
            "",
        ]
        return "\n".join(lines) + "\n"

    def export(self, path: Path, *, exported_at: datetime | None = None) -> int:
        """Append the log to a file and clear it.

        The in-memory log is only cleared once the file has been written
        and closed successfully.

        Args:
            path: File to append to.
            exported_at: Time printed in the header; defaults to now.

        Returns:
            Number of entries exported.

        Raises:
            ValidationError: If the log is empty.
            StorageError: If the file cannot be written.
        """
        if not self._entries:
            raise ValidationError("Combat log is empty")

        block = self.render_export(exported_at=exported_at)
        try:
            with path.open("a", encoding="utf-8") as handle:
                handle.write(block)
        except OSError as exc:
            logger.error("Log export failed", path=str(path), error=str(exc))
            raise StorageError(f"Log export failed: {exc}", path=str(path)) from exc

        exported = len(self._entries)
        self._entries.clear()
        logger.info("Combat log exported", path=str(path), entries=exported)
        return exported


__all__ = [
    "LogEntry",
    "CombatLog",
]
