"""Combat tracker engine.

The tracker owns one encounter: the roster and its cursors, the combat log,
the undo history, the dice and the active settings. Every command is
applied through it and is all-or-nothing: a command that fails leaves the
encounter, the log and the undo history exactly as they were.

Example:
    >>> tracker = CombatTracker()
    >>> tracker.add_combatant("Aria", Faction.PLAYER, initiative=15, dexterity=2, max_hp=20)
    >>> tracker.next_turn()
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from combat_tracker.core.config import RulesSettings, Settings, get_settings
from combat_tracker.core.constants import FIELD_SEPARATOR, MAX_DUPLICATES
from combat_tracker.core.exceptions import (
    CapacityError,
    TurnManagementError,
    ValidationError,
)
from combat_tracker.core.logging import get_logger
from combat_tracker.engine.combat_log import CombatLog
from combat_tracker.engine.death_saves import DeathSaveOutcome, DeathSaveResolver
from combat_tracker.engine.dice import DiceRoller
from combat_tracker.engine.turn_order import (
    TurnChange,
    advance_turn,
    move_selection,
    retreat_turn,
)
from combat_tracker.engine.undo import UndoStack
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition
from combat_tracker.models.encounter import EncounterState
from combat_tracker.models.enums import Faction
from combat_tracker.storage.save_file import LoadResult, load_encounter, save_encounter


logger = get_logger(__name__)

_NUMBERED_NAME = re.compile(r"^(?P<base>.*\S) (?P<number>\d+)$")


def split_numbered_name(name: str) -> tuple[str, int | None]:
    """Split a trailing `` <digits>`` suffix off a name.

    Args:
        name: Combatant name, e.g. ``"Goblin 3"``.

    Returns:
        Base name and the suffix number, or None when there is no suffix.
    """
    match = _NUMBERED_NAME.match(name)
    if match is None:
        return name, None
    return match.group("base"), int(match.group("number"))


class CombatTracker:
    """Owner of a single combat encounter.

    Attributes:
        settings: Active settings.
        state: The live encounter.
        log: Narrated combat log.
        undo_stack: Snapshots taken before each command.
        dice: Dice roller for initiative and death saves.
        resolver: Death-save rules.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        dice: DiceRoller | None = None,
        state: EncounterState | None = None,
    ) -> None:
        """Initialize an empty encounter.

        Args:
            settings: Settings to use; defaults to the cached application settings.
            dice: Dice roller; defaults to an unseeded roller.
            state: Starting encounter; defaults to an empty roster at round 1.
        """
        self.settings = settings or get_settings()
        self.state = state or EncounterState()
        self.log = CombatLog()
        self.undo_stack = UndoStack(self.rules.undo_depth)
        self.dice = dice or DiceRoller()
        self.resolver = DeathSaveResolver(instant_death=self.rules.instant_death)
        self._pending: list[tuple[str, int, int | None]] | None = None
        logger.info(
            "CombatTracker initialized",
            max_combatants=self.rules.max_combatants,
            undo_depth=self.rules.undo_depth,
        )

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def rules(self) -> RulesSettings:
        return self.settings.rules

    @property
    def round(self) -> int:
        return self.state.round

    @property
    def combatants(self) -> tuple[Combatant, ...]:
        """Roster in turn order."""
        return tuple(self.state.combatants)

    @property
    def current(self) -> Combatant | None:
        return self.state.current

    @property
    def selected(self) -> Combatant | None:
        return self.state.selected

    @property
    def can_undo(self) -> bool:
        return not self.undo_stack.is_empty

    # =========================================================================
    # Transactions
    # =========================================================================

    def _narrate(self, message: str) -> None:
        """Queue a combat log line stamped with the current round and turn."""
        entry = (message, self.state.round, self.state.current_turn_id)
        if self._pending is None:
            self.log.append(message, round_number=entry[1], turn_id=entry[2])
        else:
            self._pending.append(entry)

    @contextmanager
    def _transaction(self, command: str, *, undoable: bool = True) -> Iterator[None]:
        """Apply a command atomically.

        The pre-command snapshot is pushed onto the undo stack and queued
        log lines are written only if the block completes. On any exception
        the encounter is restored and the exception propagates.

        Nested transactions join the outermost one.
        """
        if self._pending is not None:
            yield
            return

        snapshot = self.state.snapshot()
        next_id = self.state.next_id
        self._pending = []
        try:
            yield
        except Exception:
            self.state.restore(snapshot)
            self.state.next_id = next_id
            self._pending = None
            logger.debug("Command rolled back", command=command)
            raise

        pending, self._pending = self._pending, None
        if undoable:
            self.undo_stack.push(snapshot)
        for message, round_number, turn_id in pending:
            self.log.append(message, round_number=round_number, turn_id=turn_id)
        logger.info("Command applied", command=command, round=self.state.round)

    # =========================================================================
    # Validation
    # =========================================================================

    def _require_selected(self) -> Combatant:
        combatant = self.state.selected
        if combatant is None:
            raise TurnManagementError("No combatant selected", round_number=self.state.round)
        return combatant

    @staticmethod
    def _check_range(field_name: str, value: int, low: int, high: int) -> None:
        if not low <= value <= high:
            raise ValidationError(
                f"{field_name.replace('_', ' ').capitalize()} must be between {low} and {high}",
                field_name=field_name,
                invalid_value=value,
            )

    def _clean_name(self, name: str) -> str:
        if FIELD_SEPARATOR in name or "\n" in name or "\r" in name:
            raise ValidationError(
                f"Name cannot contain '{FIELD_SEPARATOR}' or line breaks",
                field_name="name",
                invalid_value=name,
            )
        cleaned = name.strip()[: self.rules.max_name_chars].strip()
        if not cleaned:
            raise ValidationError("Name cannot be empty", field_name="name", invalid_value=name)
        return cleaned

    def _check_capacity(self, adding: int) -> None:
        limit = self.rules.max_combatants
        if self.state.count + adding > limit:
            raise CapacityError(
                f"Roster is full ({self.state.count}/{limit})",
                limit=limit,
            )

    @staticmethod
    def _coerce_condition(condition: Condition | int | str) -> Condition:
        if isinstance(condition, Condition):
            return condition
        try:
            if isinstance(condition, str):
                return Condition.lookup(condition)
            return Condition(condition)
        except (KeyError, ValueError) as exc:
            raise ValidationError(
                f"Unknown condition: {condition}",
                field_name="condition",
                invalid_value=condition,
            ) from exc

    # =========================================================================
    # Roster
    # =========================================================================

    def add_combatant(
        self,
        name: str,
        faction: Faction,
        *,
        initiative: int,
        dexterity: int,
        max_hp: int,
    ) -> Combatant:
        """Add a fresh combatant at full HP.

        The new combatant is selected, and takes the turn if the roster was empty.

        Args:
            name: Display name; trimmed and truncated to the name limit.
            faction: Player or enemy.
            initiative: Initiative result.
            dexterity: Dexterity tiebreaker.
            max_hp: Maximum HP.

        Returns:
            The new combatant.

        Raises:
            ValidationError: If the name or a number is out of range.
            CapacityError: If the roster is full.
        """
        rules = self.rules
        clean_name = self._clean_name(name)
        self._check_range("initiative", initiative, rules.min_initiative, rules.max_initiative)
        self._check_range("dexterity", dexterity, rules.min_dexterity, rules.max_dexterity)
        self._check_range("max_hp", max_hp, rules.min_max_hp, rules.max_max_hp)
        self._check_capacity(1)

        with self._transaction("add_combatant"):
            combatant = Combatant(
                id=self.state.allocate_id(),
                name=clean_name,
                faction=Faction(faction),
                initiative=initiative,
                dexterity=dexterity,
                max_hp=max_hp,
                hp=max_hp,
            )
            self.state.combatants.append(combatant)
            self.state.sort_by_turn_order()
            if self.state.current_turn_id is None:
                self.state.current_turn_id = combatant.id
            self.state.selected_id = combatant.id
            self._narrate(f"Added {combatant.name}: Init {initiative}, HP {max_hp}.")
        return combatant

    def remove_selected(self) -> Combatant:
        """Remove the selected combatant.

        If it held the turn, the turn passes to the combatant after it. The
        selection stays at the same roster position. Emptying the roster
        resets the round to 1.

        Returns:
            The removed combatant.

        Raises:
            TurnManagementError: If nothing is selected.
        """
        target = self._require_selected()
        with self._transaction("remove_selected"):
            state = self.state
            index = state.index_of(target.id)
            removed = state.combatants.pop(index)

            if not state.combatants:
                state.current_turn_id = None
                state.selected_id = None
                state.round = 1
            else:
                if removed.id == state.current_turn_id:
                    state.current_turn_id = state.combatants[index % state.count].id
                state.selected_id = state.combatants[min(index, state.count - 1)].id
            self._narrate(f"Removed {removed.name}.")
        return removed

    def duplicate_selected(self, count: int) -> list[Combatant]:
        """Add numbered copies of the selected combatant.

        ``Goblin`` duplicated twice becomes ``Goblin 1`` with copies
        ``Goblin 2`` and ``Goblin 3``. Numbering continues past the highest
        existing suffix for the same base name, so copies never collide with
        combatants already on the roster. Copies start at full HP with no
        conditions and roll their own initiative.

        Args:
            count: Number of copies.

        Returns:
            The new copies.

        Raises:
            ValidationError: If count is out of range.
            CapacityError: If the copies would not fit on the roster.
            TurnManagementError: If nothing is selected.
        """
        self._check_range("count", count, 1, MAX_DUPLICATES)
        original = self._require_selected()
        self._check_capacity(count)

        base, suffix = split_numbered_name(original.name)
        highest = 0
        for other in self.state.combatants:
            other_base, number = split_numbered_name(other.name)
            if other_base == base and number is not None:
                highest = max(highest, number)

        with self._transaction("duplicate_selected"):
            if suffix is None:
                highest += 1
                original.name = self._numbered_name(base, highest)

            copies: list[Combatant] = []
            for offset in range(1, count + 1):
                copy = original.fresh_copy(
                    new_id=self.state.allocate_id(),
                    name=self._numbered_name(base, highest + offset),
                    initiative=self.dice.roll_initiative(original.dexterity),
                )
                self.state.combatants.append(copy)
                copies.append(copy)
            self.state.sort_by_turn_order()
            self._narrate(f"Duplicated {original.name}: {count} added.")
        return copies

    def _numbered_name(self, base: str, number: int) -> str:
        suffix = f" {number}"
        room = self.rules.max_name_chars - len(suffix)
        return base[:room].rstrip() + suffix

    # =========================================================================
    # Hit points and initiative
    # =========================================================================

    def edit_hp(self, delta: int, *, critical: bool = False) -> Combatant:
        """Heal (positive delta) or damage (negative delta) the selected combatant.

        Args:
            delta: Signed HP change.
            critical: The damage came from a critical hit; counts as two
                death-save failures against a player already at 0 HP.

        Returns:
            The updated combatant.

        Raises:
            ValidationError: If delta is 0.
            TurnManagementError: If nothing is selected.
            DeathSaveError: If the combatant is dead.
        """
        if delta == 0:
            raise ValidationError("HP change cannot be 0", field_name="delta", invalid_value=delta)
        combatant = self._require_selected()

        with self._transaction("edit_hp"):
            if delta > 0:
                messages = self.resolver.apply_healing(combatant, delta)
                self._narrate(
                    f"{combatant.name} healed {delta} HP ({combatant.hp}/{combatant.max_hp})."
                )
            else:
                messages = self.resolver.apply_damage(combatant, -delta, critical=critical)
                self._narrate(
                    f"{combatant.name} took {-delta} damage ({combatant.hp}/{combatant.max_hp})."
                )
            for message in messages:
                self._narrate(message)
        return combatant

    def reroll_initiative(self, value: int | None = None) -> Combatant:
        """Change the selected combatant's initiative and re-sort.

        Args:
            value: New initiative; rolls 1d20 + dexterity when omitted.

        Returns:
            The updated combatant.

        Raises:
            ValidationError: If the value is out of range.
            TurnManagementError: If nothing is selected.
        """
        combatant = self._require_selected()
        if value is None:
            value = self.dice.roll_initiative(combatant.dexterity)
        self._check_range("initiative", value, self.rules.min_initiative, self.rules.max_initiative)

        with self._transaction("reroll_initiative"):
            old = combatant.initiative
            combatant.initiative = value
            self.state.sort_by_turn_order()
            self._narrate(f"{combatant.name} rerolled initiative from {old} to {value}.")
        return combatant

    # =========================================================================
    # Conditions
    # =========================================================================

    @contextmanager
    def condition_session(self) -> Iterator[Combatant]:
        """Group condition edits on the selected combatant into one undo step.

        Toggles and durations set inside the block share a single snapshot,
        so one undo reverts the whole session.

        Yields:
            The selected combatant.

        Raises:
            TurnManagementError: If nothing is selected.
        """
        combatant = self._require_selected()
        with self._transaction("condition_session"):
            yield combatant

    def toggle_condition(self, condition: Condition | int | str) -> bool:
        """Flip a condition on the selected combatant.

        Turning a condition off clears its duration.

        Args:
            condition: Condition, registry index or name.

        Returns:
            True if the condition is now active.
        """
        resolved = self._coerce_condition(condition)
        combatant = self._require_selected()
        with self._transaction("toggle_condition"):
            active = combatant.toggle_condition(resolved)
            verb = "applied" if active else "removed"
            self._narrate(f"{combatant.name}: {resolved.display_name} {verb}.")
        return active

    def set_condition_duration(self, condition: Condition | int | str, rounds: int) -> None:
        """Time an active condition on the selected combatant.

        Args:
            condition: Condition, registry index or name.
            rounds: Remaining rounds; 0 makes it indefinite.

        Raises:
            ValidationError: If the condition is not active or rounds is negative.
        """
        resolved = self._coerce_condition(condition)
        combatant = self._require_selected()
        with self._transaction("set_condition_duration"):
            combatant.set_condition_duration(resolved, rounds)
            self._narrate(
                f"{combatant.name}: {resolved.display_name} duration set to {rounds}."
            )

    # =========================================================================
    # Turns
    # =========================================================================

    def next_turn(self) -> TurnChange | None:
        """Advance to the next combatant.

        Wrapping past the end starts a new round and counts down timed
        conditions. A dying player rolls a death save as their turn starts
        when automatic death saves are enabled.

        Returns:
            The turn change, or None for an empty roster.
        """
        if not self.state.combatants:
            return None

        with self._transaction("next_turn"):
            change = advance_turn(self.state)
            for expired in change.expired:
                self._narrate(
                    f"{expired.combatant_name}: {expired.condition.display_name} duration ended."
                )
            if change.wrapped:
                self._narrate(f"--- START OF ROUND {self.state.round} ---")
            combatant = change.combatant
            self._narrate(f"{combatant.name}'s turn.")

            if self.rules.auto_death_saves and combatant.is_dying:
                outcome = self.resolver.roll(combatant, self.dice.roll_d20())
                for message in outcome.messages:
                    self._narrate(message)
        return change

    def prev_turn(self) -> TurnChange | None:
        """Step back to the previous combatant.

        Returns:
            The turn change, or None for an empty roster.
        """
        if not self.state.combatants:
            return None

        with self._transaction("prev_turn"):
            change = retreat_turn(self.state)
            if change.round_changed:
                self._narrate(f"--- END OF ROUND {self.state.round} (Revert) ---")
            self._narrate(f"Turn reverted to {change.combatant.name}.")
        return change

    def move_selection(self, direction: int) -> Combatant | None:
        """Move the selection cursor; not recorded in undo or the log."""
        return move_selection(self.state, direction)

    # =========================================================================
    # Death saves
    # =========================================================================

    def manual_death_save(self, roll: int | None = None) -> DeathSaveOutcome:
        """Roll a death save for the selected combatant.

        Args:
            roll: Natural d20 result to use; rolled when omitted.

        Returns:
            The outcome.

        Raises:
            DeathSaveError: If the combatant is not a dying player.
            ValidationError: If the roll is outside 1-20.
        """
        combatant = self._require_selected()
        with self._transaction("manual_death_save"):
            natural = self.dice.roll_d20() if roll is None else roll
            outcome = self.resolver.roll(combatant, natural)
            for message in outcome.messages:
                self._narrate(message)
        return outcome

    def stabilize_selected(self) -> Combatant:
        """Stabilize the selected dying player.

        Raises:
            DeathSaveError: If the combatant is not a dying player.
        """
        combatant = self._require_selected()
        with self._transaction("stabilize_selected"):
            for message in self.resolver.stabilize(combatant):
                self._narrate(message)
        return combatant

    # =========================================================================
    # History and persistence
    # =========================================================================

    def undo(self) -> None:
        """Revert the last command.

        Raises:
            NothingToUndoError: If there is no history.
        """
        snapshot = self.undo_stack.pop()
        self.state.restore(snapshot)
        self._narrate(f"Action UNDONE. Reverted to start of Round {self.state.round}.")
        logger.info("Undo applied", round=self.state.round, remaining=len(self.undo_stack))

    def save(self, path: Path | None = None) -> Path:
        """Write the encounter to the save file.

        Args:
            path: Destination; defaults to the configured save file.

        Returns:
            The path written.

        Raises:
            StorageError: If the file cannot be written.
        """
        target = path or self.settings.storage.save_file
        save_encounter(self.state, target, max_combatants=self.rules.max_combatants)
        return target

    def load(self, path: Path | None = None) -> LoadResult:
        """Replace the encounter with the contents of a save file.

        The combat log and undo history are cleared. On failure the current
        encounter is left untouched.

        Args:
            path: Save file; defaults to the configured save file.

        Returns:
            The load result, including any skipped records.

        Raises:
            StorageError: If the file cannot be read.
            CorruptDataError: If the header is malformed.
        """
        source = path or self.settings.storage.save_file
        result = load_encounter(
            source,
            max_combatants=self.rules.max_combatants,
            max_name_chars=self.rules.max_name_chars,
        )
        self.state = result.state
        self.log.clear()
        self.undo_stack.clear()
        self._narrate(f"Game Loaded from save file. Round set to {self.state.round}.")
        return result

    def export_log(self, path: Path | None = None) -> int:
        """Append the combat log to the export file and clear it.

        Args:
            path: Export file; defaults to the configured log export file.

        Returns:
            Number of entries exported.

        Raises:
            ValidationError: If the log is empty.
            StorageError: If the file cannot be written.
        """
        target = path or self.settings.storage.log_export_file
        return self.log.export(target)


__all__ = [
    "CombatTracker",
    "split_numbered_name",
]
