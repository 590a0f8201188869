"""Encounter state and undo snapshots.

The encounter owns the roster in turn order plus the cursors that point
into it. Cursors hold combatant IDs, never list positions, so re-sorting
or removing entries cannot leave them pointing at the wrong combatant.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from combat_tracker.core.constants import MAX_COMBATANT_ID
from combat_tracker.models.combatant import Combatant


def turn_order_key(combatant: Combatant) -> tuple[int, int, int]:
    """Ascending sort key: higher initiative, then higher dexterity, then lower ID."""
    return (-combatant.initiative, -combatant.dexterity, combatant.id)


class EncounterSnapshot(BaseModel):
    """Deep copy of everything undo restores.

    The ID allocator is deliberately absent: undoing an add never hands the
    removed combatant's ID out again.

    Attributes:
        combatants: Roster copy in turn order.
        current_turn_id: Whose turn it was.
        selected_id: Which combatant was selected.
        round: Round number.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    combatants: tuple[Combatant, ...]
    current_turn_id: int | None
    selected_id: int | None
    round: int

    @property
    def count(self) -> int:
        return len(self.combatants)


class EncounterState(BaseModel):
    """The live encounter.

    Attributes:
        combatants: Roster in turn order.
        round: Current round, starting at 1.
        next_id: Next ID to hand out.
        current_turn_id: ID of the combatant whose turn it is.
        selected_id: ID of the combatant commands act on.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    combatants: list[Combatant] = Field(default_factory=list)
    round: Annotated[int, Field(ge=1)] = 1
    next_id: Annotated[int, Field(ge=1, le=MAX_COMBATANT_ID)] = 1
    current_turn_id: int | None = None
    selected_id: int | None = None

    @property
    def count(self) -> int:
        """Number of combatants on the roster."""
        return len(self.combatants)

    def index_of(self, combatant_id: int | None) -> int | None:
        """Find a combatant's roster position.

        Args:
            combatant_id: ID to look for.

        Returns:
            Position in turn order, or None if absent.
        """
        if combatant_id is None:
            return None
        for index, combatant in enumerate(self.combatants):
            if combatant.id == combatant_id:
                return index
        return None

    def get(self, combatant_id: int | None) -> Combatant | None:
        index = self.index_of(combatant_id)
        return None if index is None else self.combatants[index]

    @property
    def current(self) -> Combatant | None:
        """The combatant whose turn it is."""
        return self.get(self.current_turn_id)

    @property
    def selected(self) -> Combatant | None:
        """The selected combatant."""
        return self.get(self.selected_id)

    def sort_by_turn_order(self) -> None:
        """Re-sort the roster in place. Cursors are IDs and stay valid."""
        self.combatants.sort(key=turn_order_key)

    def names(self) -> list[str]:
        return [combatant.name for combatant in self.combatants]

    def allocate_id(self) -> int:
        """Hand out the next free combatant ID.

        IDs increase monotonically. After MAX_COMBATANT_ID the counter wraps
        to 1 and skips any ID still on the roster.

        Returns:
            An ID not used by any live combatant.
        """
        live = {combatant.id for combatant in self.combatants}
        candidate = self.next_id
        while candidate in live:
            candidate = 1 if candidate >= MAX_COMBATANT_ID else candidate + 1
        self.next_id = 1 if candidate >= MAX_COMBATANT_ID else candidate + 1
        return candidate

    def snapshot(self) -> EncounterSnapshot:
        """Capture a deep copy for the undo stack."""
        return EncounterSnapshot(
            combatants=tuple(c.model_copy(deep=True) for c in self.combatants),
            current_turn_id=self.current_turn_id,
            selected_id=self.selected_id,
            round=self.round,
        )

    def restore(self, snapshot: EncounterSnapshot) -> None:
        """Overwrite roster, cursors and round from a snapshot.

        The snapshot is copied again so later mutations never reach it.
        """
        self.combatants = [c.model_copy(deep=True) for c in snapshot.combatants]
        self.current_turn_id = snapshot.current_turn_id
        self.selected_id = snapshot.selected_id
        self.round = snapshot.round


__all__ = [
    "turn_order_key",
    "EncounterSnapshot",
    "EncounterState",
]
