"""Death saving throws for player characters.

A player dropped to 0 HP is dying. From there three sources move the
death-save counters: a d20 roll (automatic at turn start or requested
manually), damage taken while down, and the stabilize action. All of them
funnel into the same threshold checks: three successes make the player
stable, three failures kill them. Any healing above 0 HP brings a dying or
stable player back; death is final.

Enemies skip all of this and die as soon as they reach 0 HP.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from combat_tracker.core.constants import (
    CRITICAL_DAMAGE_FAILURES,
    DEATH_SAVE_DC,
    DEATH_SAVE_THRESHOLD,
    NATURAL_ONE,
    NATURAL_TWENTY,
)
from combat_tracker.core.exceptions import DeathSaveError, ValidationError
from combat_tracker.core.logging import get_logger
from combat_tracker.models.combatant import Combatant
from combat_tracker.models.conditions import Condition
from combat_tracker.models.enums import DeathState


logger = get_logger(__name__)


class DeathSaveResult(StrEnum):
    """How a single death-save roll counts."""

    REVIVED = "revived"
    SUCCESS = "success"
    FAILURE = "failure"
    DOUBLE_FAILURE = "double_failure"


@dataclass
class DeathSaveOutcome:
    """Result of a death-save roll.

    Attributes:
        roll: The natural d20 result.
        result: How the roll counted.
        state: Death state after the roll.
        messages: Narration for the combat log, in order.
    """

    roll: int
    result: DeathSaveResult
    state: DeathState
    messages: list[str] = field(default_factory=list)


def classify_roll(roll: int) -> DeathSaveResult:
    """Classify a natural d20 death-save roll.

    Args:
        roll: Natural d20 result, 1-20.

    Returns:
        The result category.

    Raises:
        ValidationError: If the roll is outside 1-20.
    """
    if not 1 <= roll <= 20:
        raise ValidationError("Death save roll must be 1-20", field_name="roll", invalid_value=roll)
    if roll == NATURAL_TWENTY:
        return DeathSaveResult.REVIVED
    if roll == NATURAL_ONE:
        return DeathSaveResult.DOUBLE_FAILURE
    if roll >= DEATH_SAVE_DC:
        return DeathSaveResult.SUCCESS
    return DeathSaveResult.FAILURE


class DeathSaveResolver:
    """Apply damage, healing and death saves to a combatant.

    Every method returns narration lines for the combat log; the caller
    decides where they go.
    """

    def __init__(self, *, instant_death: bool = True) -> None:
        """Initialize the resolver.

        Args:
            instant_death: Kill outright when damage left over after reaching
                0 HP is at least the combatant's maximum HP.
        """
        self._instant_death = instant_death

    # -------------------------------------------------------------------------
    # Hit point changes
    # -------------------------------------------------------------------------

    def apply_damage(
        self,
        combatant: Combatant,
        amount: int,
        *,
        critical: bool = False,
    ) -> list[str]:
        """Apply damage and any resulting dying transition.

        Args:
            combatant: Combatant taking damage.
            amount: Positive damage amount.
            critical: Whether the hit was a critical hit; counts double
                against a player who is already down.

        Returns:
            Narration lines beyond the damage itself.

        Raises:
            DeathSaveError: If the combatant is already dead.
        """
        self._require_alive(combatant)
        if amount <= 0:
            return []

        old_hp = combatant.hp
        if old_hp > 0:
            excess = amount - old_hp
            combatant.hp = combatant.clamp_hp(old_hp - amount)
            if combatant.hp > 0:
                return []
            return self._drop_to_zero(combatant, excess)

        if not combatant.is_player:
            combatant.is_dead = True
            return [f"{combatant.name} is DEAD."]

        messages: list[str] = []
        if combatant.is_stable:
            combatant.is_stable = False
            combatant.reset_death_saves()
            messages.append(f"{combatant.name} is no longer stable.")
        failures = CRITICAL_DAMAGE_FAILURES if critical else 1
        messages.extend(self._record_failures(combatant, failures, reason="damage"))
        return messages

    def apply_healing(self, combatant: Combatant, amount: int) -> list[str]:
        """Apply healing and bring a downed player back.

        Args:
            combatant: Combatant being healed.
            amount: Positive healing amount.

        Returns:
            Narration lines beyond the healing itself.

        Raises:
            DeathSaveError: If the combatant is dead.
        """
        self._require_alive(combatant)
        if amount <= 0:
            return []

        old_hp = combatant.hp
        combatant.hp = combatant.clamp_hp(old_hp + amount)
        if old_hp > 0 or combatant.hp == 0:
            return []
        return self._revive(combatant)

    # -------------------------------------------------------------------------
    # Death saves
    # -------------------------------------------------------------------------

    def roll(self, combatant: Combatant, roll: int) -> DeathSaveOutcome:
        """Resolve one death-save roll.

        Args:
            combatant: A dying player.
            roll: Natural d20 result.

        Returns:
            The outcome, including narration.

        Raises:
            DeathSaveError: If the combatant is not dying.
            ValidationError: If the roll is outside 1-20.
        """
        self._require_dying(combatant)
        result = classify_roll(roll)
        messages = [f"{combatant.name} rolls a death save: {roll}."]

        if result is DeathSaveResult.REVIVED:
            combatant.hp = 1
            messages.extend(self._revive(combatant))
        elif result is DeathSaveResult.SUCCESS:
            messages.extend(self._record_success(combatant))
        elif result is DeathSaveResult.DOUBLE_FAILURE:
            messages.extend(self._record_failures(combatant, 2, reason="natural 1"))
        else:
            messages.extend(self._record_failures(combatant, 1, reason="roll"))

        logger.info(
            "Death save rolled",
            combatant=combatant.name,
            roll=roll,
            result=str(result),
            successes=combatant.death_save_successes,
            failures=combatant.death_save_failures,
        )
        return DeathSaveOutcome(
            roll=roll,
            result=result,
            state=combatant.death_state,
            messages=messages,
        )

    def stabilize(self, combatant: Combatant) -> list[str]:
        """Stabilize a dying player without rolling.

        Args:
            combatant: A dying player.

        Returns:
            Narration lines.

        Raises:
            DeathSaveError: If the combatant is not a dying player.
        """
        self._require_dying(combatant)
        combatant.reset_death_saves()
        combatant.is_stable = True
        logger.info("Combatant stabilized", combatant=combatant.name)
        return [f"{combatant.name} has been STABILIZED."]

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def _drop_to_zero(self, combatant: Combatant, excess: int) -> list[str]:
        if not combatant.is_player:
            combatant.is_dead = True
            return [f"{combatant.name} is DEAD."]

        combatant.is_stable = False
        combatant.reset_death_saves()
        combatant.add_condition(Condition.UNCONSCIOUS)

        if self._instant_death and excess >= combatant.max_hp:
            combatant.is_dead = True
            logger.info("Instant death", combatant=combatant.name, excess=excess)
            return [f"{combatant.name} is killed outright by massive damage ({excess} excess)."]

        logger.info("Player down", combatant=combatant.name)
        return [f"{combatant.name} is UNCONSCIOUS and dying."]

    def _revive(self, combatant: Combatant) -> list[str]:
        combatant.is_stable = False
        combatant.reset_death_saves()
        if combatant.remove_condition(Condition.UNCONSCIOUS):
            return [f"{combatant.name} is no longer unconscious."]
        return []

    def _record_success(self, combatant: Combatant) -> list[str]:
        combatant.death_save_successes = min(
            DEATH_SAVE_THRESHOLD, combatant.death_save_successes + 1
        )
        messages = [
            f"{combatant.name}: death save success "
            f"({combatant.death_save_successes}/{DEATH_SAVE_THRESHOLD})."
        ]
        if combatant.death_save_successes >= DEATH_SAVE_THRESHOLD:
            combatant.is_stable = True
            messages.append(f"{combatant.name} is STABLE.")
        return messages

    def _record_failures(self, combatant: Combatant, count: int, *, reason: str) -> list[str]:
        combatant.death_save_failures = min(
            DEATH_SAVE_THRESHOLD, combatant.death_save_failures + count
        )
        messages = [
            f"{combatant.name}: {count} death save failure(s) from {reason} "
            f"({combatant.death_save_failures}/{DEATH_SAVE_THRESHOLD})."
        ]
        if combatant.death_save_failures >= DEATH_SAVE_THRESHOLD:
            combatant.is_stable = False
            combatant.is_dead = True
            logger.info("Player died", combatant=combatant.name)
            messages.append(f"{combatant.name} has DIED.")
        return messages

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def _require_alive(self, combatant: Combatant) -> None:
        if combatant.is_dead:
            raise DeathSaveError(f"{combatant.name} is dead", combatant_id=combatant.id)

    def _require_dying(self, combatant: Combatant) -> None:
        if not combatant.is_player:
            raise DeathSaveError(
                f"{combatant.name} is not a player; only players make death saves",
                combatant_id=combatant.id,
            )
        state = combatant.death_state
        if state is DeathState.ACTIVE:
            raise DeathSaveError(f"{combatant.name} is not at 0 HP", combatant_id=combatant.id)
        if state is DeathState.DEAD:
            raise DeathSaveError(f"{combatant.name} is dead", combatant_id=combatant.id)
        if state is DeathState.STABLE:
            raise DeathSaveError(f"{combatant.name} is already stable", combatant_id=combatant.id)


__all__ = [
    "DeathSaveResult",
    "DeathSaveOutcome",
    "DeathSaveResolver",
    "classify_roll",
]
