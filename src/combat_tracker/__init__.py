"""Combat Tracker - turn-based combat state engine for tabletop encounters.

Keeps an initiative-ordered roster, advances turns and rounds, tracks timed
conditions, resolves death saving throws, and can undo the last command.

ARCHITECTURE:
- models own the data (Combatant, EncounterState) and guard its invariants
- engine owns the rules (turn order, death saves) and the command surface
- storage owns the save file format
- The view layer only issues commands; it never mutates state directly

Example:
    >>> from combat_tracker import CombatTracker, Faction
    >>>
    >>> tracker = CombatTracker()
    >>> tracker.add_combatant("Aria", Faction.PLAYER, initiative=15, dexterity=2, max_hp=20)
    >>> tracker.add_combatant("Orc", Faction.ENEMY, initiative=10, dexterity=0, max_hp=15)
    >>> tracker.next_turn().combatant.name
    'Orc'

Modules:
    core: Configuration, logging, constants and exceptions.
    models: Pydantic V2 schemas for combatants and encounters.
    engine: Turn order, death saves, combat log, undo and commands.
    storage: Save file encoding and decoding.
"""

from __future__ import annotations

# Core
from combat_tracker.core.config import Settings, get_settings
from combat_tracker.core.exceptions import CombatTrackerError
from combat_tracker.core.logging import configure_logging, get_logger

# Models
from combat_tracker.models import (
    Combatant,
    Condition,
    DeathState,
    EncounterState,
    Faction,
)

# Engine
from combat_tracker.engine import (
    CombatTracker,
    CommandResult,
    DiceRoller,
    execute,
    parse_command,
)

# Storage
from combat_tracker.storage import load_encounter, save_encounter


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "CombatTrackerError",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Combatant",
    "Condition",
    "DeathState",
    "EncounterState",
    "Faction",
    # Engine
    "CombatTracker",
    "CommandResult",
    "DiceRoller",
    "execute",
    "parse_command",
    # Storage
    "load_encounter",
    "save_encounter",
]
