"""Tests for encounter state and snapshots."""

from __future__ import annotations

from collections.abc import Callable

from combat_tracker.core.constants import MAX_COMBATANT_ID
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition
from combat_tracker.models.encounter import EncounterState


class TestEncounterLookup:
    """Tests for id-based lookups."""

    def test_get_and_index(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test combatants are found by id."""
        state = EncounterState(
            combatants=[make_combatant(id=4, name="A"), make_combatant(id=7, name="B")],
            current_turn_id=7,
            selected_id=4,
        )

        assert state.index_of(7) == 1
        assert state.index_of(99) is None
        assert state.index_of(None) is None
        assert state.current is not None and state.current.name == "B"
        assert state.selected is not None and state.selected.name == "A"
        assert state.names() == ["A", "B"]

    def test_sort_by_turn_order(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test initiative, dexterity then id ordering."""
        state = EncounterState(
            combatants=[
                make_combatant(id=3, name="C", initiative=10, dexterity=1),
                make_combatant(id=2, name="B", initiative=10, dexterity=1),
                make_combatant(id=1, name="A", initiative=10, dexterity=3),
                make_combatant(id=4, name="D", initiative=18, dexterity=0),
            ]
        )

        state.sort_by_turn_order()

        assert state.names() == ["D", "A", "B", "C"]


class TestAllocateId:
    """Tests for id allocation."""

    def test_monotonic(self) -> None:
        """Test ids increase."""
        state = EncounterState()

        assert [state.allocate_id() for _ in range(3)] == [1, 2, 3]
        assert state.next_id == 4

    def test_wraps_and_skips_live(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test the counter wraps to 1 and skips ids in use."""
        state = EncounterState(
            combatants=[make_combatant(id=1), make_combatant(id=2, name="B")],
            next_id=MAX_COMBATANT_ID,
        )

        assert state.allocate_id() == MAX_COMBATANT_ID
        assert state.next_id == 1
        assert state.allocate_id() == 3


class TestSnapshot:
    """Tests for undo snapshots."""

    def test_snapshot_is_independent(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test later mutations do not reach the snapshot."""
        state = EncounterState(combatants=[make_combatant()], current_turn_id=1, selected_id=1)
        snapshot = state.snapshot()

        state.combatants[0].hp = 5
        state.combatants[0].toggle_condition(Condition.PRONE)
        state.round = 3

        assert snapshot.combatants[0].hp == 20
        assert snapshot.combatants[0].conditions == set()
        assert snapshot.round == 1
        assert snapshot.count == 1

    def test_restore(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test restore overwrites roster, cursors and round but not next_id."""
        state = EncounterState(
            combatants=[make_combatant()], current_turn_id=1, selected_id=1, next_id=2
        )
        snapshot = state.snapshot()
        state.combatants.append(make_combatant(id=state.allocate_id(), name="B"))
        state.round = 4
        state.selected_id = 2

        state.restore(snapshot)

        assert state.names() == ["Aria"]
        assert state.round == 1
        assert state.selected_id == 1
        assert state.next_id == 3

    def test_restored_roster_is_a_copy(self, make_combatant: Callable[..., Combatant]) -> None:
        """Test restoring twice from one snapshot gives fresh objects."""
        state = EncounterState(combatants=[make_combatant()])
        snapshot = state.snapshot()

        state.restore(snapshot)
        state.combatants[0].hp = 1

        assert snapshot.combatants[0].hp == 20
