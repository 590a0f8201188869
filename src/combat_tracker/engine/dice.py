"""Dice rolling for initiative and death saves.

This module wraps the d20 library. The engine only ever needs a plain d20
(death saves) and a d20 plus a flat bonus (initiative), but any dice
expression the library understands can be rolled.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any

import d20

from combat_tracker.core.exceptions import DiceRollError
from combat_tracker.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class DiceRoll:
    """Result of rolling a dice expression.

    Attributes:
        expression: The expression that was rolled.
        total: The total result.
        dice: Faces of the kept dice.
    """

    expression: str
    total: int
    dice: list[int]

    @property
    def modifier(self) -> int:
        """Flat bonus included in the total."""
        return self.total - sum(self.dice)


class DiceRoller:
    """Dice rolling backed by the d20 library.

    Example:
        >>> roller = DiceRoller(seed=7)
        >>> 1 <= roller.roll_d20() <= 20
        True
    """

    def __init__(self, *, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            seed: Optional random seed for reproducible rolls.
        """
        self._seed = seed
        if seed is not None:
            random.seed(seed)
        logger.debug("DiceRoller initialized", seed=seed)

    def roll(self, expression: str) -> DiceRoll:
        """Roll a dice expression.

        Args:
            expression: Dice expression (e.g., '1d20', '1d20+3').

        Returns:
            DiceRoll with the total and kept faces.

        Raises:
            DiceRollError: If the expression is empty or invalid.
        """
        if not expression or not expression.strip():
            raise DiceRollError("Empty dice expression", expression=expression)

        try:
            result = d20.roll(expression)
        except d20.RollError as exc:
            raise DiceRollError(
                f"Invalid dice expression: {exc}",
                expression=expression,
            ) from exc

        outcome = DiceRoll(
            expression=expression,
            total=result.total,
            dice=self._kept_faces(result.expr),
        )
        logger.debug("Dice rolled", expression=expression, total=outcome.total)
        return outcome

    def roll_d20(self) -> int:
        """Roll a single d20.

        Returns:
            The natural result, 1-20.
        """
        return self.roll("1d20").total

    def roll_initiative(self, dexterity: int) -> int:
        """Roll initiative as 1d20 plus the dexterity tiebreaker.

        Args:
            dexterity: Flat bonus added to the roll.

        Returns:
            The initiative total.
        """
        if dexterity == 0:
            expression = "1d20"
        else:
            expression = f"1d20{dexterity:+d}"
        return self.roll(expression).total

    def _kept_faces(self, expr: Any) -> list[int]:
        """Collect the faces of kept dice from a d20 expression tree."""
        faces: list[int] = []

        def traverse(node: Any) -> None:
            if isinstance(node, d20.Dice):
                for die in node.values:
                    if die.kept:
                        faces.append(int(die.number))
            elif hasattr(node, "children"):
                for child in node.children:
                    traverse(child)

        traverse(expr)
        return faces


__all__ = [
    "DiceRoll",
    "DiceRoller",
]
