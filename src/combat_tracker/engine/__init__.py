"""Combat engine for the initiative tracker.

Submodules:
    dice: Dice rolling (d20 library)
    turn_order: Initiative sorting and the turn/round cursor
    death_saves: The dying-player state machine
    combat_log: Narrated combat log and its text export
    undo: Bounded undo history
    tracker: The CombatTracker that owns an encounter
    commands: Command models and the execute() dispatcher

Example:
    >>> from combat_tracker.engine import CombatTracker, EditHp, NextTurn, execute
    >>> from combat_tracker.models import Faction
    >>>
    >>> tracker = CombatTracker()
    >>> tracker.add_combatant("Orc", Faction.ENEMY, initiative=10, dexterity=0, max_hp=15)
    >>> execute(tracker, NextTurn())
    >>> result = execute(tracker, EditHp(delta=-20))
    >>> tracker.selected.is_dead
    True
"""

from __future__ import annotations

from combat_tracker.engine.combat_log import CombatLog, LogEntry
from combat_tracker.engine.commands import (
    AddCombatant,
    Command,
    CommandResult,
    DuplicateSelected,
    EditHp,
    ExportLog,
    LoadEncounter,
    ManualDeathSave,
    MoveSelection,
    NextTurn,
    PrevTurn,
    RemoveSelected,
    RerollInitiative,
    SaveEncounter,
    SetConditionDuration,
    StabilizeSelected,
    ToggleCondition,
    Undo,
    execute,
    parse_command,
)
from combat_tracker.engine.death_saves import (
    DeathSaveOutcome,
    DeathSaveResolver,
    DeathSaveResult,
    classify_roll,
)
from combat_tracker.engine.dice import DiceRoll, DiceRoller
from combat_tracker.engine.tracker import CombatTracker, split_numbered_name
from combat_tracker.engine.turn_order import (
    ExpiredCondition,
    TurnChange,
    advance_turn,
    move_selection,
    retreat_turn,
    sort_key,
    sort_roster,
    tick_condition_durations,
)
from combat_tracker.engine.undo import UndoStack


__all__ = [
    # Dice
    "DiceRoll",
    "DiceRoller",
    # Turn order
    "ExpiredCondition",
    "TurnChange",
    "sort_key",
    "sort_roster",
    "tick_condition_durations",
    "advance_turn",
    "retreat_turn",
    "move_selection",
    # Death saves
    "DeathSaveResult",
    "DeathSaveOutcome",
    "DeathSaveResolver",
    "classify_roll",
    # Log and history
    "LogEntry",
    "CombatLog",
    "UndoStack",
    # Tracker
    "CombatTracker",
    "split_numbered_name",
    # Commands
    "AddCombatant",
    "RemoveSelected",
    "EditHp",
    "RerollInitiative",
    "ToggleCondition",
    "SetConditionDuration",
    "NextTurn",
    "PrevTurn",
    "MoveSelection",
    "DuplicateSelected",
    "ManualDeathSave",
    "StabilizeSelected",
    "Undo",
    "SaveEncounter",
    "LoadEncounter",
    "ExportLog",
    "Command",
    "CommandResult",
    "parse_command",
    "execute",
]
