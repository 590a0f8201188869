"""Condition registry.

The fifteen conditions the tracker knows about, in the fixed order used by
the save file's bitmask and duration columns. Names and bit positions both
derive from the single registry below so they cannot drift apart.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import IntEnum


class Condition(IntEnum):
    """A named status effect. The value is the registry index."""

    BLINDED = 0
    CHARMED = 1
    DEAFENED = 2
    FRIGHTENED = 3
    GRAPPLED = 4
    INCAPACITATED = 5
    POISONED = 6
    PRONE = 7
    RESTRAINED = 8
    STUNNED = 9
    INVISIBLE = 10
    PARALYZED = 11
    PETRIFIED = 12
    UNCONSCIOUS = 13
    EXHAUSTION = 14

    @property
    def info(self) -> ConditionInfo:
        """Registry metadata for this condition."""
        return CONDITION_REGISTRY[self]

    @property
    def key(self) -> str:
        """Stable lowercase identifier, e.g. ``"unconscious"``."""
        return self.info.key

    @property
    def display_name(self) -> str:
        """Name shown to players, e.g. ``"Unconscious"``."""
        return self.info.display_name

    @property
    def bit(self) -> int:
        """Bit of this condition in the save-file mask."""
        return 1 << self.value

    @classmethod
    def lookup(cls, name: str) -> Condition:
        """Find a condition by key, display name or enum name.

        Args:
            name: Case-insensitive condition name.

        Returns:
            The matching Condition.

        Raises:
            KeyError: If no condition has that name.
        """
        wanted = name.strip().lower()
        for condition in cls:
            if wanted in (condition.key, condition.display_name.lower()):
                return condition
        raise KeyError(name)


@dataclass(frozen=True)
class ConditionInfo:
    """Static metadata for one condition.

    Attributes:
        key: Stable lowercase identifier.
        display_name: Name shown to players.
    """

    key: str
    display_name: str


CONDITION_REGISTRY: dict[Condition, ConditionInfo] = {
    condition: ConditionInfo(key=condition.name.lower(), display_name=condition.name.title())
    for condition in Condition
}

ALL_CONDITIONS_MASK = (1 << len(Condition)) - 1


def conditions_to_mask(conditions: Iterable[Condition]) -> int:
    """Pack a set of conditions into the save-file bitmask.

    Args:
        conditions: Active conditions.

    Returns:
        Integer with one bit set per active condition.
    """
    mask = 0
    for condition in conditions:
        mask |= condition.bit
    return mask


def conditions_from_mask(mask: int) -> set[Condition]:
    """Unpack a save-file bitmask.

    Bits above the registry are ignored.

    Args:
        mask: Bitmask as written by conditions_to_mask.

    Returns:
        Set of active conditions.
    """
    return {condition for condition in Condition if mask & condition.bit}


__all__ = [
    "Condition",
    "ConditionInfo",
    "CONDITION_REGISTRY",
    "ALL_CONDITIONS_MASK",
    "conditions_to_mask",
    "conditions_from_mask",
]
