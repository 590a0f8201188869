"""Turn order for combat encounters.

The roster is kept sorted by initiative (highest first), then dexterity
(highest first), then combatant ID (lowest first). The ID tiebreak makes
the order total, so re-sorting never shuffles combatants that tie.

Advancing past the last combatant wraps to the top of the order and starts
a new round, which counts one round off every timed condition.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from combat_tracker.core.logging import get_logger
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition
from combat_tracker.models.encounter import EncounterState, turn_order_key


logger = get_logger(__name__)


@dataclass(frozen=True)
class ExpiredCondition:
    """A condition removed because its duration ran out.

    Attributes:
        combatant_id: ID of the affected combatant.
        combatant_name: Name at the time of expiry.
        condition: The expired condition.
    """

    combatant_id: int
    combatant_name: str
    condition: Condition


@dataclass
class TurnChange:
    """What a next/previous turn step did.

    Attributes:
        combatant: Combatant whose turn it now is.
        wrapped: Whether the step crossed the top of the order.
        round_changed: Whether the round number moved.
        expired: Conditions that ran out at the start of a new round.
    """

    combatant: Combatant
    wrapped: bool = False
    round_changed: bool = False
    expired: list[ExpiredCondition] = field(default_factory=list)


def sort_key(combatant: Combatant) -> tuple[int, int, int]:
    """Build the ascending sort key for turn order.

    Args:
        combatant: Combatant to rank.

    Returns:
        Tuple ordering higher initiative, then higher dexterity, then lower ID first.
    """
    return turn_order_key(combatant)


def sort_roster(state: EncounterState) -> None:
    """Re-establish turn order in place. Cursors are IDs and stay valid."""
    state.sort_by_turn_order()


def tick_condition_durations(state: EncounterState) -> list[ExpiredCondition]:
    """Count one round off every timed condition on the roster.

    Args:
        state: Encounter to update.

    Returns:
        Conditions that expired, in roster order.
    """
    expired: list[ExpiredCondition] = []
    for combatant in state.combatants:
        for condition in combatant.tick_condition_durations():
            expired.append(
                ExpiredCondition(
                    combatant_id=combatant.id,
                    combatant_name=combatant.name,
                    condition=condition,
                )
            )
    return expired


def advance_turn(state: EncounterState) -> TurnChange | None:
    """Move the turn cursor to the next combatant.

    With no current turn, or from the last combatant, the cursor wraps to
    the top of the order, the round increments and condition durations tick.
    The selection follows the turn cursor.

    Args:
        state: Encounter to update.

    Returns:
        The turn change, or None for an empty roster.
    """
    if not state.combatants:
        return None

    index = state.index_of(state.current_turn_id)
    next_index = 0 if index is None else index + 1

    wrapped = index is None or next_index >= state.count
    expired: list[ExpiredCondition] = []
    if wrapped:
        next_index = 0
        state.round += 1
        expired = tick_condition_durations(state)
        logger.info("New round started", round=state.round, expired=len(expired))

    combatant = state.combatants[next_index]
    state.current_turn_id = combatant.id
    state.selected_id = combatant.id
    logger.info("Next turn", combatant=combatant.name, round=state.round)

    return TurnChange(
        combatant=combatant,
        wrapped=wrapped,
        round_changed=wrapped,
        expired=expired,
    )


def retreat_turn(state: EncounterState) -> TurnChange | None:
    """Move the turn cursor back to the previous combatant.

    Wrapping backwards from the top lands on the last combatant and
    decrements the round, which never drops below 1. Durations are not
    restored; use undo for that.

    Args:
        state: Encounter to update.

    Returns:
        The turn change, or None for an empty roster.
    """
    if not state.combatants:
        return None

    index = state.index_of(state.current_turn_id)
    prev_index = 0 if index is None else index - 1

    wrapped = prev_index < 0
    round_changed = False
    if wrapped:
        prev_index = state.count - 1
        if state.round > 1:
            state.round -= 1
            round_changed = True

    combatant = state.combatants[prev_index]
    state.current_turn_id = combatant.id
    state.selected_id = combatant.id
    logger.info("Turn reverted", combatant=combatant.name, round=state.round)

    return TurnChange(combatant=combatant, wrapped=wrapped, round_changed=round_changed)


def move_selection(state: EncounterState, direction: int) -> Combatant | None:
    """Move the selection cursor up or down the order, wrapping at the ends.

    Args:
        state: Encounter to update.
        direction: Positions to move; negative moves up.

    Returns:
        The newly selected combatant, or None for an empty roster.
    """
    if not state.combatants:
        return None

    index = state.index_of(state.selected_id)
    if index is None:
        combatant = state.combatants[0]
    else:
        combatant = state.combatants[(index + direction) % state.count]
    state.selected_id = combatant.id
    return combatant


__all__ = [
    "ExpiredCondition",
    "TurnChange",
    "sort_key",
    "sort_roster",
    "tick_condition_durations",
    "advance_turn",
    "retreat_turn",
    "move_selection",
]
