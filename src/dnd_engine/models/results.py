"""Pydantic V2 schemas for rules-resolution outcomes.

Check and attack results are immutable value objects created fresh for
each resolution and handed back to the caller.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CheckResult(BaseModel):
    """Outcome of an ability check or saving throw.

    Natural 20/1 only set the critical/fumble flags; success is always
    ``total >= difficulty_class``.

    Attributes:
        total: Die plus all modifiers.
        roll: The d20 result that counted.
        ability_modifier: Modifier from the ability score.
        proficiency_bonus: Proficiency added (0 when not proficient).
        difficulty_class: Target DC.
        success: Whether the check met the DC.
        is_critical: Natural 20 on the counted die.
        is_fumble: Natural 1 on the counted die.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    total: int = Field(description="Roll plus modifiers")
    roll: int = Field(ge=1, le=20, description="Counted d20")
    ability_modifier: int = Field(description="Ability modifier")
    proficiency_bonus: int = Field(default=0, ge=0, description="Proficiency added")
    difficulty_class: int = Field(description="Target DC")
    success: bool = Field(description="Check succeeded")
    is_critical: bool = Field(default=False, description="Natural 20")
    is_fumble: bool = Field(default=False, description="Natural 1")

    @property
    def margin(self) -> int:
        """Amount by which the check beat (or missed) the DC.

        Returns:
            ``total - difficulty_class``.
        """
        return self.total - self.difficulty_class


class AttackResult(BaseModel):
    """Outcome of an attack roll, optionally with damage attached.

    Attributes:
        attack_roll: Die plus attack bonus.
        roll: The d20 result that counted.
        attack_bonus: Bonus added to the die.
        target_ac: Defender armor class.
        hit: Whether the attack hit.
        is_critical: Natural 20 (always a hit).
        is_fumble: Natural 1 (always a miss).
        damage: Damage dealt; 0 on a miss.
        damage_type: Optional damage type label.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attack_roll: int = Field(description="Roll plus attack bonus")
    roll: int = Field(ge=1, le=20, description="Counted d20")
    attack_bonus: int = Field(description="Attack bonus")
    target_ac: int = Field(description="Target armor class")
    hit: bool = Field(description="Attack hit")
    is_critical: bool = Field(default=False, description="Natural 20")
    is_fumble: bool = Field(default=False, description="Natural 1")
    damage: int = Field(default=0, ge=0, description="Damage dealt")
    damage_type: str | None = Field(default=None, description="Damage type")

    def with_damage(self, damage: int, damage_type: str | None = None) -> "AttackResult":
        """Return a copy of this result carrying rolled damage.

        Args:
            damage: Damage dealt.
            damage_type: Optional damage type label.

        Returns:
            New AttackResult with damage attached.
        """
        return self.model_copy(update={"damage": damage, "damage_type": damage_type})


__all__ = [
    "CheckResult",
    "AttackResult",
]
