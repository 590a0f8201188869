"""Pydantic V2 schema for a single combatant.

A combatant carries its identity, initiative tiebreakers, hit points,
active conditions with their remaining durations, and death-save progress.
The model guards its own invariants; the rules that move a combatant
between dying states live in the death-save resolver.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from combat_tracker.core.constants import DEATH_SAVE_THRESHOLD
from combat_tracker.core.exceptions import ValidationError
from combat_tracker.models.conditions import Condition
from combat_tracker.models.enums import DeathState, Faction


def _empty_durations() -> dict[Condition, int]:
    return {condition: 0 for condition in Condition}


class Combatant(BaseModel):
    """Entity participating in combat.

    Attributes:
        id: Unique combatant ID, stable for the combatant's lifetime.
        name: Display name.
        faction: Player or enemy; decides what happens at 0 HP.
        initiative: Initiative result, the primary sort key.
        dexterity: Dexterity tiebreaker.
        max_hp: Maximum hit points.
        hp: Current hit points, always within 0..max_hp.
        conditions: Active conditions.
        condition_durations: Remaining rounds per condition, 0 = indefinite.
        death_save_successes: Successful death saves (0-3).
        death_save_failures: Failed death saves (0-3).
        is_stable: Stabilized at 0 HP.
        is_dead: Dead; terminal.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    id: Annotated[int, Field(ge=1, description="Unique combatant ID")]
    name: str = Field(min_length=1, description="Display name")
    faction: Faction = Field(description="Player or enemy")
    initiative: int = Field(default=0, description="Initiative result")
    dexterity: int = Field(default=0, description="Dexterity tiebreaker")
    max_hp: Annotated[int, Field(ge=1, description="Maximum HP")]
    hp: Annotated[int, Field(ge=0, description="Current HP")]
    conditions: set[Condition] = Field(default_factory=set, description="Active conditions")
    condition_durations: dict[Condition, int] = Field(default_factory=_empty_durations)
    death_save_successes: Annotated[int, Field(ge=0, le=DEATH_SAVE_THRESHOLD)] = 0
    death_save_failures: Annotated[int, Field(ge=0, le=DEATH_SAVE_THRESHOLD)] = 0
    is_stable: bool = False
    is_dead: bool = False

    @model_validator(mode="after")
    def check_invariants(self) -> "Combatant":
        """Reject impossible combinations of HP and dying flags.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If hp exceeds max_hp or the combatant is both stable and dead.
        """
        if self.hp > self.max_hp:
            raise ValueError(f"hp ({self.hp}) exceeds max_hp ({self.max_hp})")
        if self.is_stable and self.is_dead:
            raise ValueError("a combatant cannot be both stable and dead")
        return self

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def is_player(self) -> bool:
        """Whether this combatant uses the death-save rules."""
        return self.faction is Faction.PLAYER

    @property
    def death_state(self) -> DeathState:
        """Current position in the dying state machine."""
        if self.is_dead:
            return DeathState.DEAD
        if self.hp > 0:
            return DeathState.ACTIVE
        if self.is_stable:
            return DeathState.STABLE
        return DeathState.DYING

    @property
    def is_dying(self) -> bool:
        """Whether this is a player rolling death saves."""
        return self.is_player and self.death_state is DeathState.DYING

    # -------------------------------------------------------------------------
    # Hit points
    # -------------------------------------------------------------------------

    def clamp_hp(self, value: int) -> int:
        """Clamp a hit point value to 0..max_hp."""
        return max(0, min(self.max_hp, value))

    def reset_death_saves(self) -> None:
        """Clear both death-save counters."""
        self.death_save_successes = 0
        self.death_save_failures = 0

    # -------------------------------------------------------------------------
    # Conditions
    # -------------------------------------------------------------------------

    def has_condition(self, condition: Condition) -> bool:
        return condition in self.conditions

    def add_condition(self, condition: Condition) -> bool:
        """Activate a condition.

        Returns:
            True if the condition was not already active.
        """
        if condition in self.conditions:
            return False
        self.conditions = self.conditions | {condition}
        return True

    def remove_condition(self, condition: Condition) -> bool:
        """Deactivate a condition and clear its duration.

        Returns:
            True if the condition was active.
        """
        if condition not in self.conditions:
            return False
        self.conditions = self.conditions - {condition}
        self.condition_durations = {**self.condition_durations, condition: 0}
        return True

    def toggle_condition(self, condition: Condition) -> bool:
        """Flip a condition.

        Returns:
            True if the condition is now active.
        """
        if self.remove_condition(condition):
            return False
        self.add_condition(condition)
        return True

    def set_condition_duration(self, condition: Condition, rounds: int) -> None:
        """Set the remaining rounds of an active condition.

        Args:
            condition: The condition to time.
            rounds: Remaining rounds; 0 makes the condition indefinite.

        Raises:
            ValidationError: If the condition is inactive or rounds is negative.
        """
        if condition not in self.conditions:
            raise ValidationError(
                f"{condition.display_name}: condition must be enabled first",
                field_name="condition",
                invalid_value=condition.display_name,
            )
        if rounds < 0:
            raise ValidationError(
                "Duration cannot be negative",
                field_name="rounds",
                invalid_value=rounds,
            )
        self.condition_durations = {**self.condition_durations, condition: rounds}

    def duration_of(self, condition: Condition) -> int:
        return self.condition_durations.get(condition, 0)

    def tick_condition_durations(self) -> list[Condition]:
        """Count one round off every timed condition.

        Conditions whose duration reaches 0 are removed. Durations left
        behind on inactive conditions still count down but expire silently.

        Returns:
            Conditions that expired, in registry order.
        """
        durations = dict(self.condition_durations)
        expired: list[Condition] = []
        for condition in Condition:
            remaining = durations.get(condition, 0)
            if remaining <= 0:
                continue
            durations[condition] = remaining - 1
            if remaining == 1 and condition in self.conditions:
                expired.append(condition)
        self.condition_durations = durations
        if expired:
            self.conditions = self.conditions - set(expired)
        return expired

    # -------------------------------------------------------------------------
    # Duplication
    # -------------------------------------------------------------------------

    def fresh_copy(self, *, new_id: int, name: str, initiative: int) -> Combatant:
        """Clone the stat block into a new, unharmed combatant.

        Args:
            new_id: ID for the copy.
            name: Name for the copy.
            initiative: Initiative for the copy.

        Returns:
            Copy at full HP with no conditions and no death-save state.
        """
        return Combatant(
            id=new_id,
            name=name,
            faction=self.faction,
            initiative=initiative,
            dexterity=self.dexterity,
            max_hp=self.max_hp,
            hp=self.max_hp,
        )


__all__ = [
    "Combatant",
]
