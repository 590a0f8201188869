"""Pydantic V2 schemas for the combat tracker.

Submodules:
    enums: Faction and DeathState enumerations
    conditions: The 15-condition registry and bitmask helpers
    combatant: A single participant in combat
    encounter: The live roster with its cursors, plus undo snapshots

Example:
    >>> from combat_tracker.models import Combatant, Condition, Faction
    >>> orc = Combatant(id=1, name="Orc", faction=Faction.ENEMY, max_hp=15, hp=15)
    >>> orc.toggle_condition(Condition.PRONE)
    True
"""

from __future__ import annotations

from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import (
    ALL_CONDITIONS_MASK,
    CONDITION_REGISTRY,
    Condition,
    ConditionInfo,
    conditions_from_mask,
    conditions_to_mask,
)
from combat_tracker.models.encounter import EncounterSnapshot, EncounterState, turn_order_key
from combat_tracker.models.enums import DeathState, Faction


__all__ = [
    # Enums
    "Faction",
    "DeathState",
    # Conditions
    "Condition",
    "ConditionInfo",
    "CONDITION_REGISTRY",
    "ALL_CONDITIONS_MASK",
    "conditions_to_mask",
    "conditions_from_mask",
    # Entities
    "Combatant",
    "EncounterState",
    "EncounterSnapshot",
    "turn_order_key",
]
