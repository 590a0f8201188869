"""Command surface for the combat tracker.

Each command is a small pydantic model. A view layer builds one (directly
or from a dict with ``parse_command``) and hands it to ``execute``, which
applies it to a tracker and always answers with a ``CommandResult``.
Domain failures become unsuccessful results carrying the reason; they are
never raised to the caller.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Callable, Literal, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from combat_tracker.core.constants import MAX_DUPLICATES
from combat_tracker.core.exceptions import CombatTrackerError, ValidationError
from combat_tracker.core.logging import get_logger
from combat_tracker.engine.tracker import CombatTracker
from combat_tracker.models.conditions import Condition
from combat_tracker.models.enums import Faction


logger = get_logger(__name__)


# =============================================================================
# Command Models
# =============================================================================


class _Command(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


def _coerce_condition(value: Any) -> Any:
    if isinstance(value, str):
        if value.strip().isdigit():
            return int(value)
        try:
            return Condition.lookup(value)
        except KeyError as exc:
            raise ValueError(f"unknown condition {value!r}") from exc
    return value


ConditionField = Annotated[Condition, BeforeValidator(_coerce_condition)]


class AddCombatant(_Command):
    """Add a new combatant at full HP."""

    kind: Literal["add_combatant"] = "add_combatant"
    name: str
    faction: Faction
    initiative: int
    dexterity: int = 0
    max_hp: int


class RemoveSelected(_Command):
    kind: Literal["remove_selected"] = "remove_selected"


class EditHp(_Command):
    """Heal (positive) or damage (negative) the selected combatant."""

    kind: Literal["edit_hp"] = "edit_hp"
    delta: int
    critical: bool = False


class RerollInitiative(_Command):
    """Set the selected combatant's initiative, or roll it when value is omitted."""

    kind: Literal["reroll_initiative"] = "reroll_initiative"
    value: int | None = None


class ToggleCondition(_Command):
    kind: Literal["toggle_condition"] = "toggle_condition"
    condition: ConditionField


class SetConditionDuration(_Command):
    kind: Literal["set_condition_duration"] = "set_condition_duration"
    condition: ConditionField
    rounds: int = Field(ge=0)


class NextTurn(_Command):
    kind: Literal["next_turn"] = "next_turn"


class PrevTurn(_Command):
    kind: Literal["prev_turn"] = "prev_turn"


class MoveSelection(_Command):
    kind: Literal["move_selection"] = "move_selection"
    direction: Literal[-1, 1]


class DuplicateSelected(_Command):
    kind: Literal["duplicate_selected"] = "duplicate_selected"
    count: int = Field(ge=1, le=MAX_DUPLICATES)


class ManualDeathSave(_Command):
    """Roll a death save for the selected combatant; ``roll`` forces the natural result."""

    kind: Literal["manual_death_save"] = "manual_death_save"
    roll: int | None = Field(default=None, ge=1, le=20)


class StabilizeSelected(_Command):
    kind: Literal["stabilize_selected"] = "stabilize_selected"


class Undo(_Command):
    kind: Literal["undo"] = "undo"


class SaveEncounter(_Command):
    kind: Literal["save"] = "save"
    path: Path | None = None


class LoadEncounter(_Command):
    kind: Literal["load"] = "load"
    path: Path | None = None


class ExportLog(_Command):
    kind: Literal["export_log"] = "export_log"
    path: Path | None = None


Command = Annotated[
    AddCombatant
    | RemoveSelected
    | EditHp
    | RerollInitiative
    | ToggleCondition
    | SetConditionDuration
    | NextTurn
    | PrevTurn
    | MoveSelection
    | DuplicateSelected
    | ManualDeathSave
    | StabilizeSelected
    | Undo
    | SaveEncounter
    | LoadEncounter
    | ExportLog,
    Field(discriminator="kind"),
]

_command_adapter: TypeAdapter[Command] = TypeAdapter(Command)


class CommandResult(BaseModel):
    """Outcome of a command.

    Attributes:
        command: The command kind.
        success: Whether the command was applied.
        message: Status line for the user; the failure reason when unsuccessful.
        data: Extra values a view may want to show.
    """

    command: str
    success: bool
    message: str
    data: dict[str, Any] = Field(default_factory=dict)


def parse_command(payload: dict[str, Any]) -> Command:
    """Build a command from a plain dict keyed by ``kind``.

    Args:
        payload: Command fields, e.g. ``{"kind": "edit_hp", "delta": -5}``.

    Returns:
        The command model.

    Raises:
        ValidationError: If the payload does not describe a valid command.
    """
    try:
        return _command_adapter.validate_python(payload)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Invalid command: {exc}",
            field_name="kind",
            invalid_value=payload.get("kind"),
        ) from exc


# =============================================================================
# Handlers
# =============================================================================

Handler = Callable[[CombatTracker, Any], CommandResult]
H = TypeVar("H", bound=Handler)

_handlers: dict[type[_Command], Handler] = {}


def _handles(command_type: type[_Command]) -> Callable[[H], H]:
    def decorator(func: H) -> H:
        _handlers[command_type] = func
        return func

    return decorator


def _ok(command: _Command, message: str, **data: Any) -> CommandResult:
    return CommandResult(command=command.kind, success=True, message=message, data=data)


@_handles(AddCombatant)
def _add(tracker: CombatTracker, command: AddCombatant) -> CommandResult:
    combatant = tracker.add_combatant(
        command.name,
        command.faction,
        initiative=command.initiative,
        dexterity=command.dexterity,
        max_hp=command.max_hp,
    )
    return _ok(command, f"Added {combatant.name}.", combatant_id=combatant.id)


@_handles(RemoveSelected)
def _remove(tracker: CombatTracker, command: RemoveSelected) -> CommandResult:
    removed = tracker.remove_selected()
    return _ok(command, f"Removed {removed.name}.", combatant_id=removed.id)


@_handles(EditHp)
def _edit_hp(tracker: CombatTracker, command: EditHp) -> CommandResult:
    combatant = tracker.edit_hp(command.delta, critical=command.critical)
    return _ok(
        command,
        f"{combatant.name}: {combatant.hp}/{combatant.max_hp} HP.",
        combatant_id=combatant.id,
        hp=combatant.hp,
        state=str(combatant.death_state),
    )


@_handles(RerollInitiative)
def _reroll(tracker: CombatTracker, command: RerollInitiative) -> CommandResult:
    combatant = tracker.reroll_initiative(command.value)
    return _ok(
        command,
        f"{combatant.name} initiative is now {combatant.initiative}.",
        initiative=combatant.initiative,
    )


@_handles(ToggleCondition)
def _toggle(tracker: CombatTracker, command: ToggleCondition) -> CommandResult:
    active = tracker.toggle_condition(command.condition)
    verb = "applied" if active else "removed"
    return _ok(command, f"{command.condition.display_name} {verb}.", active=active)


@_handles(SetConditionDuration)
def _set_duration(tracker: CombatTracker, command: SetConditionDuration) -> CommandResult:
    tracker.set_condition_duration(command.condition, command.rounds)
    return _ok(
        command,
        f"{command.condition.display_name} duration set to {command.rounds}.",
        rounds=command.rounds,
    )


@_handles(NextTurn)
def _next_turn(tracker: CombatTracker, command: NextTurn) -> CommandResult:
    change = tracker.next_turn()
    if change is None:
        return _ok(command, "No combatants.")
    return _ok(
        command,
        f"{change.combatant.name}'s turn.",
        combatant_id=change.combatant.id,
        round=tracker.round,
        new_round=change.wrapped,
    )


@_handles(PrevTurn)
def _prev_turn(tracker: CombatTracker, command: PrevTurn) -> CommandResult:
    change = tracker.prev_turn()
    if change is None:
        return _ok(command, "No combatants.")
    return _ok(
        command,
        f"Turn reverted to {change.combatant.name}.",
        combatant_id=change.combatant.id,
        round=tracker.round,
    )


@_handles(MoveSelection)
def _move(tracker: CombatTracker, command: MoveSelection) -> CommandResult:
    combatant = tracker.move_selection(command.direction)
    if combatant is None:
        return _ok(command, "No combatants.")
    return _ok(command, f"Selected {combatant.name}.", combatant_id=combatant.id)


@_handles(DuplicateSelected)
def _duplicate(tracker: CombatTracker, command: DuplicateSelected) -> CommandResult:
    copies = tracker.duplicate_selected(command.count)
    return _ok(
        command,
        f"Added {len(copies)} copies.",
        names=[copy.name for copy in copies],
    )


@_handles(ManualDeathSave)
def _death_save(tracker: CombatTracker, command: ManualDeathSave) -> CommandResult:
    outcome = tracker.manual_death_save(command.roll)
    return _ok(
        command,
        " ".join(outcome.messages),
        roll=outcome.roll,
        result=str(outcome.result),
        state=str(outcome.state),
    )


@_handles(StabilizeSelected)
def _stabilize(tracker: CombatTracker, command: StabilizeSelected) -> CommandResult:
    combatant = tracker.stabilize_selected()
    return _ok(command, f"{combatant.name} has been STABILIZED.")


@_handles(Undo)
def _undo(tracker: CombatTracker, command: Undo) -> CommandResult:
    tracker.undo()
    return _ok(command, "Action undone.", round=tracker.round)


@_handles(SaveEncounter)
def _save(tracker: CombatTracker, command: SaveEncounter) -> CommandResult:
    path = tracker.save(command.path)
    return _ok(command, "Game Saved.", path=str(path))


@_handles(LoadEncounter)
def _load(tracker: CombatTracker, command: LoadEncounter) -> CommandResult:
    result = tracker.load(command.path)
    message = "Game Loaded."
    if result.skipped:
        message = f"Game Loaded. Skipped {len(result.skipped)} malformed record(s)."
    return _ok(
        command,
        message,
        round=tracker.round,
        skipped=[record.line_number for record in result.skipped],
    )


@_handles(ExportLog)
def _export(tracker: CombatTracker, command: ExportLog) -> CommandResult:
    exported = tracker.export_log(command.path)
    return _ok(command, f"Exported {exported} log entries.", entries=exported)


# =============================================================================
# Dispatch
# =============================================================================


def execute(tracker: CombatTracker, command: Command) -> CommandResult:
    """Apply a command to a tracker.

    Args:
        tracker: Tracker to act on.
        command: The command.

    Returns:
        The result; unsuccessful when the command was rejected, in which
        case the tracker is unchanged.
    """
    handler = _handlers[type(command)]
    try:
        return handler(tracker, command)
    except CombatTrackerError as exc:
        logger.info("Command rejected", command=command.kind, reason=exc.message)
        return CommandResult(command=command.kind, success=False, message=exc.message)


__all__ = [
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
