"""Enumeration types for the combat tracker.

This module defines the small closed sets the engine branches on: which
side a combatant fights for and where a combatant stands in the dying
state machine.
"""

from __future__ import annotations

from enum import StrEnum


class Faction(StrEnum):
    """Side a combatant fights for.

    Only players make death saving throws; enemies die at 0 HP.
    """

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def code(self) -> int:
        """Get the numeric code used by the save file.

        Returns:
            0 for players, 1 for enemies.
        """
        return 0 if self is Faction.PLAYER else 1

    @classmethod
    def from_code(cls, code: int) -> Faction:
        """Look up a faction by its save-file code.

        Args:
            code: 0 (player) or 1 (enemy).

        Returns:
            The matching Faction.

        Raises:
            ValueError: If the code is not 0 or 1.
        """
        if code == 0:
            return cls.PLAYER
        if code == 1:
            return cls.ENEMY
        raise ValueError(f"Unknown faction code: {code}")


class DeathState(StrEnum):
    """Position of a combatant in the dying state machine."""

    ACTIVE = "active"
    DYING = "dying"
    STABLE = "stable"
    DEAD = "dead"

    @property
    def is_down(self) -> bool:
        """Whether the combatant is at 0 HP."""
        return self is not DeathState.ACTIVE


__all__ = [
    "Faction",
    "DeathState",
]
