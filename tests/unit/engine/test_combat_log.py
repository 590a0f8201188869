"""Tests for the combat log."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from combat_tracker.core.constants import LOG_EXPORT_BANNER, LOG_EXPORT_FOOTER
from combat_tracker.core.exceptions import StorageError, ValidationError
from combat_tracker.engine.combat_log import CombatLog, LogEntry


EXPORTED_AT = datetime(2024, 5, 1, 20, 30, 15)


@pytest.fixture
def combat_log() -> CombatLog:
    """Provide a log with two entries."""
    log = CombatLog()
    log.append("Added Aria: Init 15, HP 20.", round_number=1, turn_id=None)
    log.append("Aria's turn.", round_number=2, turn_id=1)
    return log


class TestCombatLog:
    """Tests for appending and reading entries."""

    def test_append(self, combat_log: CombatLog) -> None:
        """Test entries are kept in order with their round."""
        assert len(combat_log) == 2
        assert [e.round for e in combat_log] == [1, 2]
        assert combat_log.entries[1].turn_id == 1

    def test_entries_are_immutable(self, combat_log: CombatLog) -> None:
        """Test written entries cannot be edited."""
        entry = combat_log.entries[0]
        with pytest.raises(ValueError):
            entry.message = "changed"  # type: ignore[misc]

    def test_render(self) -> None:
        """Test the export line format."""
        entry = LogEntry(round=3, message="Orc is DEAD.")

        assert entry.render() == "[R3] Orc is DEAD."

    def test_empty_log_is_falsy(self) -> None:
        """Test truthiness follows content."""
        assert not CombatLog()


class TestExport:
    """Tests for exporting the log to a file."""

    def test_render_export(self, combat_log: CombatLog) -> None:
        """Test the export block layout."""
        block = combat_log.render_export(exported_at=EXPORTED_AT)

        assert block.splitlines() == [
            LOG_EXPORT_BANNER,
            "COMBAT LOG EXPORT: 2024-05-01 20:30:15",
            LOG_EXPORT_BANNER,
            "[R1] Added Aria: Init 15, HP 20.",
            "[R2] Aria's turn.",
            LOG_EXPORT_FOOTER,
            "",
        ]
        assert block.endswith(f"{LOG_EXPORT_FOOTER}\n\n")

    def test_export_appends_and_clears(self, combat_log: CombatLog, tmp_path: Path) -> None:
        """Test export appends to the file and empties the log."""
        target = tmp_path / "log.txt"
        target.write_text("earlier\n", encoding="utf-8")

        exported = combat_log.export(target, exported_at=EXPORTED_AT)

        assert exported == 2
        assert len(combat_log) == 0
        content = target.read_text(encoding="utf-8")
        assert content.startswith("earlier\n" + LOG_EXPORT_BANNER)
        assert "[R2] Aria's turn." in content

    def test_export_empty(self, tmp_path: Path) -> None:
        """Test exporting nothing is rejected."""
        with pytest.raises(ValidationError):
            CombatLog().export(tmp_path / "log.txt")
        assert not (tmp_path / "log.txt").exists()

    def test_failed_export_keeps_log(self, combat_log: CombatLog, tmp_path: Path) -> None:
        """Test the log survives a write failure."""
        with pytest.raises(StorageError):
            combat_log.export(tmp_path / "missing" / "log.txt")

        assert len(combat_log) == 2
