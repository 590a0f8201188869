"""Tests for dice rolling."""

from __future__ import annotations

import pytest

from combat_tracker.core.exceptions import DiceRollError
from combat_tracker.engine.dice import DiceRoll, DiceRoller


class TestDiceRoller:
    """Tests for the DiceRoller class."""

    def test_simple_d20_roll(self, dice_roller: DiceRoller) -> None:
        """Test simple d20 roll."""
        result = dice_roller.roll("1d20")

        assert isinstance(result, DiceRoll)
        assert 1 <= result.total <= 20
        assert result.dice == [result.total]
        assert result.modifier == 0

    def test_roll_with_modifier(self, dice_roller: DiceRoller) -> None:
        """Test roll with positive modifier."""
        result = dice_roller.roll("1d20+5")

        assert result.modifier == 5
        assert 6 <= result.total <= 25

    def test_roll_with_negative_modifier(self, dice_roller: DiceRoller) -> None:
        """Test roll with negative modifier."""
        assert dice_roller.roll("1d20-3").modifier == -3

    def test_multiple_dice(self, dice_roller: DiceRoller) -> None:
        """Test rolling multiple dice."""
        result = dice_roller.roll("3d6")

        assert 3 <= result.total <= 18
        assert len(result.dice) == 3

    def test_dropped_dice_excluded(self, dice_roller: DiceRoller) -> None:
        """Test only kept dice are reported for keep-highest rolls."""
        result = dice_roller.roll("2d20kh1+2")

        assert len(result.dice) == 1
        assert result.total == result.dice[0] + 2
        assert result.modifier == 2

    def test_invalid_expression(self, dice_roller: DiceRoller) -> None:
        """Test invalid expression raises error."""
        with pytest.raises(DiceRollError):
            dice_roller.roll("not a roll")

    def test_empty_expression(self, dice_roller: DiceRoller) -> None:
        """Test empty expression raises error."""
        with pytest.raises(DiceRollError):
            dice_roller.roll("   ")

    def test_seeded_rolls_repeat(self) -> None:
        """Test the same seed gives the same sequence."""
        roller = DiceRoller(seed=7)
        first = [roller.roll_d20() for _ in range(5)]
        roller = DiceRoller(seed=7)
        second = [roller.roll_d20() for _ in range(5)]

        assert first == second


class TestInitiative:
    """Tests for initiative rolls."""

    @pytest.mark.parametrize("dexterity", [-3, 0, 4])
    def test_range(self, dice_roller: DiceRoller, dexterity: int) -> None:
        """Test initiative is 1d20 plus dexterity."""
        for _ in range(20):
            value = dice_roller.roll_initiative(dexterity)
            assert 1 + dexterity <= value <= 20 + dexterity

    def test_d20_range(self, dice_roller: DiceRoller) -> None:
        """Test natural d20 stays in 1-20."""
        assert all(1 <= dice_roller.roll_d20() <= 20 for _ in range(50))
