"""Line-oriented save file for encounters.

Format, one record per line, fields separated by ``|``::

    round|next_id|count|current_turn_id|selected_id
    id|name|faction|initiative|dex|max_hp|hp|conditions|successes|failures|stable|dead|dur_0|...|dur_14

Faction is 0 for players and 1 for enemies; ``conditions`` is a bitmask in
registry order; flags are 0 or 1; an empty cursor is written as -1.

Loading is tolerant of missing trailing columns (they default to 0) and
drops individual malformed combatant records with a warning. A malformed
header aborts the whole load.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from combat_tracker.core.constants import (
    DEATH_SAVE_THRESHOLD,
    FIELD_SEPARATOR,
    MAX_COMBATANT_ID,
    MAX_COMBATANTS,
    NAME_LENGTH,
    NO_ID,
)
from combat_tracker.core.exceptions import CorruptDataError, RecordParseError, StorageError
from combat_tracker.core.logging import get_logger
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition, conditions_from_mask, conditions_to_mask
from combat_tracker.models.encounter import EncounterState
from combat_tracker.models.enums import Faction


logger = get_logger(__name__)

HEADER_FIELDS = 5
REQUIRED_RECORD_FIELDS = 8


@dataclass(frozen=True)
class SkippedRecord:
    """A combatant record the loader dropped.

    Attributes:
        line_number: 1-based line in the save file.
        reason: Why it was dropped.
    """

    line_number: int
    reason: str


@dataclass
class LoadResult:
    """Outcome of parsing a save file.

    Attributes:
        state: The loaded encounter.
        skipped: Records that were dropped.
    """

    state: EncounterState
    skipped: list[SkippedRecord] = field(default_factory=list)


# =============================================================================
# Encoding
# =============================================================================


def _cursor(value: int | None) -> int:
    return NO_ID if value is None else value


def encode_combatant(combatant: Combatant) -> str:
    """Render one combatant record (no trailing newline)."""
    fields: list[object] = [
        combatant.id,
        combatant.name,
        combatant.faction.code,
        combatant.initiative,
        combatant.dexterity,
        combatant.max_hp,
        combatant.hp,
        conditions_to_mask(combatant.conditions),
        combatant.death_save_successes,
        combatant.death_save_failures,
        int(combatant.is_stable),
        int(combatant.is_dead),
    ]
    fields.extend(combatant.duration_of(condition) for condition in Condition)
    return FIELD_SEPARATOR.join(str(value) for value in fields)


def encode_state(state: EncounterState, *, max_combatants: int = MAX_COMBATANTS) -> str:
    """Render a whole encounter as save-file text.

    Args:
        state: Encounter to write.
        max_combatants: Largest roster the file may declare.

    Returns:
        File contents ending in a newline.

    Raises:
        StorageError: If the roster, an ID or a name cannot be written faithfully.
    """
    if state.count > max_combatants:
        raise StorageError(
            f"Refusing to write {state.count} combatants (limit {max_combatants})",
            details={"count": state.count},
        )
    for combatant in state.combatants:
        if not 1 <= combatant.id <= MAX_COMBATANT_ID:
            raise StorageError(
                f"Refusing to write out-of-range id {combatant.id}",
                details={"id": combatant.id},
            )
        if FIELD_SEPARATOR in combatant.name or "\n" in combatant.name:
            raise StorageError(
                f"Name cannot be saved: {combatant.name!r}",
                details={"id": combatant.id},
            )

    header = FIELD_SEPARATOR.join(
        str(value)
        for value in (
            state.round,
            state.next_id,
            state.count,
            _cursor(state.current_turn_id),
            _cursor(state.selected_id),
        )
    )
    lines = [header, *(encode_combatant(c) for c in state.combatants)]
    return "\n".join(lines) + "\n"


# =============================================================================
# Decoding
# =============================================================================


def _parse_header(line: str, *, max_combatants: int, source: str | None) -> tuple[int, int, int, int, int]:
    parts = line.strip().split(FIELD_SEPARATOR)
    if len(parts) < HEADER_FIELDS:
        raise CorruptDataError(
            f"Header has {len(parts)} fields, expected {HEADER_FIELDS}",
            path=source,
            line_number=1,
        )
    try:
        round_number, next_id, count, current_id, selected_id = (
            int(part) for part in parts[:HEADER_FIELDS]
        )
    except ValueError as exc:
        raise CorruptDataError(f"Malformed header: {exc}", path=source, line_number=1) from exc

    if round_number < 1:
        raise CorruptDataError(f"Invalid round {round_number}", path=source, line_number=1)
    if not 0 <= count <= max_combatants:
        raise CorruptDataError(
            f"Combatant count {count} out of range 0..{max_combatants}",
            path=source,
            line_number=1,
        )
    return round_number, next_id, count, current_id, selected_id


def _optional_int(parts: list[str], index: int, line_number: int) -> int:
    if index >= len(parts) or not parts[index].strip():
        return 0
    try:
        return int(parts[index])
    except ValueError:
        logger.warning(
            "Malformed optional field, using 0",
            line_number=line_number,
            column=index + 1,
            value=parts[index],
        )
        return 0


def decode_combatant(line: str, *, line_number: int, max_name_chars: int = NAME_LENGTH - 1) -> Combatant:
    """Parse one combatant record.

    Args:
        line: Record text.
        line_number: 1-based line, for error reporting.
        max_name_chars: Names longer than this are truncated.

    Returns:
        The parsed combatant.

    Raises:
        RecordParseError: If a required field is missing or malformed.
    """
    parts = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(parts) < REQUIRED_RECORD_FIELDS:
        raise RecordParseError(
            f"Record has {len(parts)} fields, expected at least {REQUIRED_RECORD_FIELDS}",
            line_number=line_number,
        )

    name = parts[1].strip()[:max_name_chars].strip()
    if not name:
        raise RecordParseError("Record has an empty name", line_number=line_number)

    try:
        combatant_id = int(parts[0])
        faction = Faction.from_code(int(parts[2]))
        initiative = int(parts[3])
        dexterity = int(parts[4])
        max_hp = int(parts[5])
        hp = int(parts[6])
        mask = int(parts[7])
    except ValueError as exc:
        raise RecordParseError(f"Malformed required field: {exc}", line_number=line_number) from exc

    successes = _optional_int(parts, 8, line_number)
    failures = _optional_int(parts, 9, line_number)
    is_stable = _optional_int(parts, 10, line_number) != 0
    is_dead = _optional_int(parts, 11, line_number) != 0
    durations = {
        condition: max(0, _optional_int(parts, 12 + condition.value, line_number))
        for condition in Condition
    }

    try:
        return Combatant(
            id=combatant_id,
            name=name,
            faction=faction,
            initiative=initiative,
            dexterity=dexterity,
            max_hp=max_hp,
            hp=hp,
            conditions=conditions_from_mask(mask),
            condition_durations=durations,
            death_save_successes=max(0, min(DEATH_SAVE_THRESHOLD, successes)),
            death_save_failures=max(0, min(DEATH_SAVE_THRESHOLD, failures)),
            is_stable=is_stable,
            is_dead=is_dead,
        )
    except PydanticValidationError as exc:
        raise RecordParseError(
            f"Invalid combatant: {exc.errors()[0]['msg']}",
            line_number=line_number,
        ) from exc


def decode_state(
    text: str,
    *,
    max_combatants: int = MAX_COMBATANTS,
    max_name_chars: int = NAME_LENGTH - 1,
    source: str | None = None,
) -> LoadResult:
    """Parse save-file text into an encounter.

    Args:
        text: File contents.
        max_combatants: Largest roster the header may declare.
        max_name_chars: Names longer than this are truncated.
        source: Path shown in errors.

    Returns:
        The loaded encounter and any dropped records.

    Raises:
        CorruptDataError: If the header is missing or malformed.
    """
    lines = text.splitlines()
    if not lines:
        raise CorruptDataError("Save file is empty", path=source, line_number=1)

    round_number, declared_next_id, count, current_id, selected_id = _parse_header(
        lines[0], max_combatants=max_combatants, source=source
    )

    combatants: list[Combatant] = []
    seen_ids: set[int] = set()
    skipped: list[SkippedRecord] = []
    for offset, line in enumerate(lines[1 : 1 + count]):
        line_number = offset + 2
        try:
            combatant = decode_combatant(line, line_number=line_number, max_name_chars=max_name_chars)
            if combatant.id in seen_ids:
                raise RecordParseError(
                    f"Duplicate combatant id {combatant.id}",
                    line_number=line_number,
                )
        except RecordParseError as exc:
            logger.warning("Skipping combatant record", line_number=line_number, reason=exc.message)
            skipped.append(SkippedRecord(line_number=line_number, reason=exc.message))
            continue
        seen_ids.add(combatant.id)
        combatants.append(combatant)

    highest = max(seen_ids, default=0)
    next_id = max(highest + 1, declared_next_id, 1)
    if next_id > MAX_COMBATANT_ID:
        next_id = 1

    state = EncounterState(combatants=combatants, round=round_number, next_id=next_id)
    state.sort_by_turn_order()

    first_id = state.combatants[0].id if state.combatants else None
    state.current_turn_id = current_id if current_id in seen_ids else first_id
    state.selected_id = selected_id if selected_id in seen_ids else state.current_turn_id

    return LoadResult(state=state, skipped=skipped)


# =============================================================================
# Files
# =============================================================================


def save_encounter(
    state: EncounterState,
    path: Path,
    *,
    max_combatants: int = MAX_COMBATANTS,
) -> None:
    """Write an encounter to disk.

    The file is written to a temporary sibling and renamed into place, so a
    failed write never leaves a truncated save behind.

    Args:
        state: Encounter to write.
        path: Destination file.
        max_combatants: Largest roster the file may declare.

    Raises:
        StorageError: If the state cannot be encoded or the file cannot be written.
    """
    text = encode_state(state, max_combatants=max_combatants)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        with tmp_path.open("w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        logger.error("Save failed", path=str(path), error=str(exc))
        raise StorageError(f"Save failed: {exc}", path=str(path)) from exc
    logger.info("Encounter saved", path=str(path), combatants=state.count)


def load_encounter(
    path: Path,
    *,
    max_combatants: int = MAX_COMBATANTS,
    max_name_chars: int = NAME_LENGTH - 1,
) -> LoadResult:
    """Read an encounter from disk.

    Args:
        path: Save file.
        max_combatants: Largest roster the header may declare.
        max_name_chars: Names longer than this are truncated.

    Returns:
        The loaded encounter and any dropped records.

    Raises:
        StorageError: If the file cannot be read.
        CorruptDataError: If the header is malformed.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise StorageError("No save file found", path=str(path)) from exc
    except UnicodeDecodeError as exc:
        raise CorruptDataError(f"Save file is not text: {exc}", path=str(path)) from exc
    except OSError as exc:
        logger.error("Load failed", path=str(path), error=str(exc))
        raise StorageError(f"Load failed: {exc}", path=str(path)) from exc

    result = decode_state(
        text,
        max_combatants=max_combatants,
        max_name_chars=max_name_chars,
        source=str(path),
    )
    logger.info(
        "Encounter loaded",
        path=str(path),
        combatants=result.state.count,
        skipped=len(result.skipped),
    )
    return result


__all__ = [
    "SkippedRecord",
    "LoadResult",
    "encode_combatant",
    "encode_state",
    "decode_combatant",
    "decode_state",
    "save_encounter",
    "load_encounter",
]
