"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the combat tracker test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from combat_tracker.core.config import Settings, StorageSettings
from combat_tracker.engine.dice import DiceRoller
from combat_tracker.engine.tracker import CombatTracker
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.enums import Faction


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from combat_tracker.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "COMBAT_TRACKER_DEBUG": "true",
        "COMBAT_TRACKER_LOG_LEVEL": "DEBUG",
        "COMBAT_TRACKER_RULES__MAX_COMBATANTS": "5",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Provide settings whose files live in a temporary directory.

    Returns:
        Settings instance.
    """
    return Settings(
        storage=StorageSettings(
            save_file=tmp_path / "encounter.txt",
            log_export_file=tmp_path / "combat_log.txt",
        )
    )


# =============================================================================
# Dice Fixtures
# =============================================================================


class FixedDiceRoller(DiceRoller):
    """DiceRoller that returns queued d20 faces.

    Unqueued rolls come up 10. Initiative is the queued face plus dexterity.
    """

    def __init__(self, faces: list[int] | None = None) -> None:
        super().__init__(seed=0)
        self.faces = list(faces or [])
        self.rolled: list[int] = []

    def queue(self, *faces: int) -> None:
        self.faces.extend(faces)

    def roll_d20(self) -> int:
        face = self.faces.pop(0) if self.faces else 10
        self.rolled.append(face)
        return face

    def roll_initiative(self, dexterity: int) -> int:
        return self.roll_d20() + dexterity


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Create a seeded DiceRoller for testing.

    Returns:
        DiceRoller instance.
    """
    return DiceRoller(seed=42)


@pytest.fixture
def fixed_dice() -> FixedDiceRoller:
    """Create a dice roller with scripted results.

    Returns:
        FixedDiceRoller instance.
    """
    return FixedDiceRoller()


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def make_combatant() -> Callable[..., Combatant]:
    """Provide a factory for combatants with sensible defaults.

    Returns:
        Factory accepting Combatant field overrides.
    """

    def factory(**overrides: Any) -> Combatant:
        data: dict[str, Any] = {
            "id": 1,
            "name": "Aria",
            "faction": Faction.PLAYER,
            "initiative": 15,
            "dexterity": 2,
            "max_hp": 20,
            "hp": 20,
        }
        data.update(overrides)
        return Combatant(**data)

    return factory


# =============================================================================
# Engine Fixtures
# =============================================================================


@pytest.fixture
def tracker(settings: Settings, fixed_dice: FixedDiceRoller) -> CombatTracker:
    """Create an empty tracker with scripted dice.

    Returns:
        CombatTracker instance.
    """
    return CombatTracker(settings, dice=fixed_dice)


@pytest.fixture
def populated_tracker(tracker: CombatTracker) -> CombatTracker:
    """Create a tracker holding Aria (player) and an Orc (enemy).

    Aria has the turn; the Orc, added last, is selected.

    Returns:
        CombatTracker instance.
    """
    tracker.add_combatant("Aria", Faction.PLAYER, initiative=15, dexterity=2, max_hp=20)
    tracker.add_combatant("Orc", Faction.ENEMY, initiative=10, dexterity=0, max_hp=15)
    return tracker


@pytest.fixture
def select() -> Callable[[CombatTracker, str], Combatant]:
    """Provide a helper that points the selection cursor at a named combatant.

    Returns:
        Function taking a tracker and a name.
    """

    def select_by_name(tracker: CombatTracker, name: str) -> Combatant:
        for combatant in tracker.state.combatants:
            if combatant.name == name:
                tracker.state.selected_id = combatant.id
                return combatant
        raise LookupError(name)

    return select_by_name
