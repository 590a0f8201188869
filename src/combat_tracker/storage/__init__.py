"""Storage module for encounter persistence.

Provides the pipe-delimited save file format used to carry an encounter
across sessions.
"""

from combat_tracker.storage.save_file import (
    LoadResult,
    SkippedRecord,
    decode_combatant,
    decode_state,
    encode_combatant,
    encode_state,
    load_encounter,
    save_encounter,
)

__all__ = [
    "LoadResult",
    "SkippedRecord",
    "encode_combatant",
    "encode_state",
    "decode_combatant",
    "decode_state",
    "save_encounter",
    "load_encounter",
]
