"""Rule and format constants for the combat tracker.

This module defines the fixed limits of the engine (roster size, name
length, undo depth), the 5E death-save rules it implements, and the
literal text of the on-disk formats.
"""

from __future__ import annotations

# =============================================================================
# Roster Limits
# =============================================================================

MAX_COMBATANTS = 50
"""Maximum number of combatants in one encounter."""

NAME_LENGTH = 32
"""Name buffer size; names hold at most NAME_LENGTH - 1 characters."""

MAX_COMBATANT_ID = 2**31 - 1
"""Largest id handed out before allocation wraps back to 1."""

NO_ID = -1
"""On-disk marker for an empty turn or selection cursor."""

MAX_UNDO_STACK = 10
"""Number of snapshots kept by the undo stack."""

MIN_INITIATIVE = -99
MAX_INITIATIVE = 999
MIN_DEXTERITY = -99
MAX_DEXTERITY = 99
MIN_MAX_HP = 1
MAX_MAX_HP = 99999

MAX_DUPLICATES = MAX_COMBATANTS - 1
"""Upper bound on copies made by a single duplicate command."""

# =============================================================================
# Conditions
# =============================================================================

NUM_CONDITIONS = 15
"""Number of named conditions tracked per combatant."""

# =============================================================================
# Death Saves (PHB p.197)
# =============================================================================

DEATH_SAVE_THRESHOLD = 3
"""Successes to stabilize, failures to die."""

DEATH_SAVE_DC = 10
"""Lowest d20 result that counts as a success."""

NATURAL_TWENTY = 20
"""A natural 20 restores the creature to 1 HP."""

NATURAL_ONE = 1
"""A natural 1 counts as two failures."""

CRITICAL_DAMAGE_FAILURES = 2
"""Failures recorded when a dying creature takes a critical hit."""

# =============================================================================
# Persistence
# =============================================================================

FIELD_SEPARATOR = "|"
"""Column separator of the save file."""

SAVE_FILE_NAME = ".dnd_tracker_save.txt"
LOG_EXPORT_FILE_NAME = "combat_log_export.txt"

LOG_EXPORT_BANNER = "=" * 48
LOG_EXPORT_TITLE = "COMBAT LOG EXPORT: {timestamp}"
LOG_EXPORT_FOOTER = "--- END OF LOG ---"
LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


__all__ = [
    # Roster
    "MAX_COMBATANTS",
    "NAME_LENGTH",
    "MAX_COMBATANT_ID",
    "NO_ID",
    "MAX_UNDO_STACK",
    "MIN_INITIATIVE",
    "MAX_INITIATIVE",
    "MIN_DEXTERITY",
    "MAX_DEXTERITY",
    "MIN_MAX_HP",
    "MAX_MAX_HP",
    "MAX_DUPLICATES",
    # Conditions
    "NUM_CONDITIONS",
    # Death saves
    "DEATH_SAVE_THRESHOLD",
    "DEATH_SAVE_DC",
    "NATURAL_TWENTY",
    "NATURAL_ONE",
    "CRITICAL_DAMAGE_FAILURES",
    # Persistence
    "FIELD_SEPARATOR",
    "SAVE_FILE_NAME",
    "LOG_EXPORT_FILE_NAME",
    "LOG_EXPORT_BANNER",
    "LOG_EXPORT_TITLE",
    "LOG_EXPORT_FOOTER",
    "LOG_TIMESTAMP_FORMAT",
]
