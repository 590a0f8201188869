"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from combat_tracker.core.exceptions import (
    CapacityError,
    CombatError,
    CombatTrackerError,
    ConfigurationError,
    CorruptDataError,
    DeathSaveError,
    DiceRollError,
    NothingToUndoError,
    RecordParseError,
    StorageError,
    TurnManagementError,
    ValidationError,
)


class TestCombatTrackerError:
    """Tests for the base CombatTrackerError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = CombatTrackerError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = CombatTrackerError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(CombatTrackerError("Test", details={"x": 1}))
        assert "CombatTrackerError" in repr_str
        assert "Test" in repr_str
        assert "x" in repr_str


class TestInputExceptions:
    """Tests for validation, capacity and configuration errors."""

    def test_validation_error_with_field(self) -> None:
        """Test ValidationError carries the field and value."""
        exc = ValidationError("Bad HP", field_name="max_hp", invalid_value=0)
        assert exc.details["field_name"] == "max_hp"
        assert exc.details["invalid_value"] == 0
        assert exc.message == "Bad HP"

    def test_capacity_error_with_limit(self) -> None:
        """Test CapacityError records the limit."""
        exc = CapacityError("Roster is full", limit=50)
        assert exc.details["limit"] == 50

    def test_configuration_error_with_key(self) -> None:
        """Test ConfigurationError records the key."""
        exc = ConfigurationError("Bad range", config_key="min_initiative")
        assert exc.details["config_key"] == "min_initiative"


class TestCombatExceptions:
    """Tests for combat engine exceptions."""

    def test_combat_error_context(self) -> None:
        """Test CombatError with combatant and round."""
        exc = CombatError("Invalid", combatant_id=3, round_number=2)
        assert exc.details == {"combatant_id": 3, "round_number": 2}

    @pytest.mark.parametrize(
        "error_class",
        [TurnManagementError, DeathSaveError, NothingToUndoError],
    )
    def test_inheritance(self, error_class: type[CombatError]) -> None:
        """Test combat subclasses share the CombatError base."""
        exc = error_class("Error")
        assert isinstance(exc, CombatError)
        assert isinstance(exc, CombatTrackerError)

    def test_dice_roll_error_expression(self) -> None:
        """Test DiceRollError records the expression."""
        exc = DiceRollError("Invalid", expression="1d")
        assert exc.details["expression"] == "1d"


class TestStorageExceptions:
    """Tests for storage exceptions."""

    def test_storage_error_path(self) -> None:
        """Test StorageError records the path."""
        exc = StorageError("Save failed", path="/tmp/x")
        assert exc.details["path"] == "/tmp/x"

    def test_corrupt_data_error(self) -> None:
        """Test CorruptDataError is a StorageError with a line number."""
        exc = CorruptDataError("Bad header", path="save.txt", line_number=1)
        assert isinstance(exc, StorageError)
        assert exc.details == {"path": "save.txt", "line_number": 1}

    def test_record_parse_error_is_not_storage_error(self) -> None:
        """Test record errors stay outside the storage failure branch."""
        exc = RecordParseError("Bad record", line_number=4)
        assert not isinstance(exc, StorageError)
        assert exc.details["line_number"] == 4
