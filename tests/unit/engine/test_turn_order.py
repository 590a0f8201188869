"""Tests for turn order and the turn cursor."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from combat_tracker.engine.turn_order import (
    advance_turn,
    move_selection,
    retreat_turn,
    sort_key,
    sort_roster,
    tick_condition_durations,
)
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition
from combat_tracker.models.encounter import EncounterState


@pytest.fixture
def state(make_combatant: Callable[..., Combatant]) -> EncounterState:
    """Provide a three-combatant encounter in turn order, no turn started."""
    encounter = EncounterState(
        combatants=[
            make_combatant(id=1, name="Aria", initiative=15),
            make_combatant(id=2, name="Borin", initiative=12),
            make_combatant(id=3, name="Orc", initiative=10),
        ],
        next_id=4,
    )
    sort_roster(encounter)
    return encounter


class TestSorting:
    """Tests for the turn order comparator."""

    def test_sort_key(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test key favours initiative, then dexterity, then lower id."""
        high = make_combatant(id=5, initiative=20, dexterity=0)
        quick = make_combatant(id=6, initiative=10, dexterity=4)
        slow = make_combatant(id=2, initiative=10, dexterity=1)
        tie = make_combatant(id=3, initiative=10, dexterity=1)

        ordered = sorted([tie, slow, quick, high], key=sort_key)

        assert [c.id for c in ordered] == [5, 6, 2, 3]

    def test_resort_is_stable(self, state: EncounterState) -> None:
        """Test sorting an already sorted roster changes nothing."""
        before = [c.id for c in state.combatants]
        sort_roster(state)
        sort_roster(state)

        assert [c.id for c in state.combatants] == before


class TestAdvanceTurn:
    """Tests for next turn."""

    def test_empty_roster(self) -> None:
        """Test advancing an empty roster is a no-op."""
        state = EncounterState()

        assert advance_turn(state) is None
        assert state.round == 1

    def test_first_turn_starts_new_round(self, state: EncounterState) -> None:
        """Test advancing with no current turn wraps to the top."""
        change = advance_turn(state)

        assert change is not None
        assert change.combatant.name == "Aria"
        assert change.wrapped
        assert state.round == 2

    def test_moves_to_next(self, state: EncounterState) -> None:
        """Test advancing moves down the order and carries the selection."""
        state.current_turn_id = 1

        change = advance_turn(state)

        assert change is not None and not change.wrapped
        assert state.current_turn_id == 2
        assert state.selected_id == 2
        assert state.round == 1

    def test_full_cycle(self, state: EncounterState) -> None:
        """Test count advances return to the start one round later."""
        state.current_turn_id = 2

        for _ in range(state.count):
            advance_turn(state)

        assert state.current_turn_id == 2
        assert state.round == 2

    def test_wrap_ticks_durations(self, state: EncounterState) -> None:
        """Test conditions count down when a new round starts."""
        orc = state.combatants[2]
        orc.toggle_condition(Condition.FRIGHTENED)
        orc.set_condition_duration(Condition.FRIGHTENED, 1)
        state.current_turn_id = 3

        change = advance_turn(state)

        assert change is not None
        assert [(e.combatant_name, e.condition) for e in change.expired] == [
            ("Orc", Condition.FRIGHTENED)
        ]
        assert not orc.has_condition(Condition.FRIGHTENED)


class TestRetreatTurn:
    """Tests for previous turn."""

    def test_moves_back(self, state: EncounterState) -> None:
        """Test retreating moves up the order."""
        state.current_turn_id = 3

        change = retreat_turn(state)

        assert change is not None
        assert change.combatant.name == "Borin"
        assert state.selected_id == 2

    def test_wrap_decrements_round(self, state: EncounterState) -> None:
        """Test wrapping backwards lowers the round."""
        state.current_turn_id = 1
        state.round = 3

        change = retreat_turn(state)

        assert change is not None and change.round_changed
        assert state.current_turn_id == 3
        assert state.round == 2

    def test_round_never_below_one(self, state: EncounterState) -> None:
        """Test the round floor."""
        state.current_turn_id = 1

        change = retreat_turn(state)

        assert change is not None and change.wrapped and not change.round_changed
        assert state.round == 1
        assert state.current_turn_id == 3

    def test_empty_roster(self) -> None:
        """Test retreating an empty roster is a no-op."""
        assert retreat_turn(EncounterState()) is None


class TestMoveSelection:
    """Tests for the selection cursor."""

    def test_wraps_both_ways(self, state: EncounterState) -> None:
        """Test selection wraps at both ends."""
        state.selected_id = 3
        assert move_selection(state, 1).name == "Aria"  # type: ignore[union-attr]
        assert move_selection(state, -1).name == "Orc"  # type: ignore[union-attr]

    def test_missing_selection_goes_to_top(self, state: EncounterState) -> None:
        """Test an unset selection lands on the first combatant."""
        assert move_selection(state, 1).id == 1  # type: ignore[union-attr]

    def test_does_not_move_turn(self, state: EncounterState) -> None:
        """Test selection and turn are separate cursors."""
        state.current_turn_id = 1
        state.selected_id = 1

        move_selection(state, 1)

        assert state.current_turn_id == 1
        assert state.selected_id == 2


class TestTickConditionDurations:
    """Tests for round-start duration bookkeeping."""

    def test_reports_in_roster_order(self, state: EncounterState) -> None:
        """Test expiries across several combatants."""
        for combatant in state.combatants:
            combatant.toggle_condition(Condition.PRONE)
            combatant.set_condition_duration(Condition.PRONE, 1)

        expired = tick_condition_durations(state)

        assert [e.combatant_id for e in expired] == [1, 2, 3]
