"""D&D 5E rules resolution.

Ability checks, saving throws, attack rolls and damage, all driven by a
DiceRoller. The engine holds no state beyond the roller and is safe to
share between threads.
"""

from __future__ import annotations

from dnd_engine.core.constants import NATURAL_CRITICAL, NATURAL_FUMBLE
from dnd_engine.core.exceptions import ValidationError
from dnd_engine.core.logging import get_logger
from dnd_engine.engine.dice import DiceFormula, DiceRoller
from dnd_engine.models.character import (
    Character,
    ability_modifier,
    proficiency_bonus_for_level,
)
from dnd_engine.models.enums import AbilityType, AdvantageType
from dnd_engine.models.results import AttackResult, CheckResult


logger = get_logger(__name__)

_D20 = DiceFormula(count=1, sides=20)


class RulesEngine:
    """Resolves checks, saves, attacks and damage.

    Example:
        >>> rules = RulesEngine(DiceRoller())
        >>> result = rules.resolve_attack(attack_bonus=5, target_ac=13)
        >>> result.hit in (True, False)
        True
    """

    def __init__(self, dice_roller: DiceRoller) -> None:
        """Initialize the rules engine.

        Args:
            dice_roller: Roller used for every die.
        """
        self._dice = dice_roller

    @staticmethod
    def ability_modifier(score: int) -> int:
        """Modifier for a raw ability score, truncated toward zero."""
        return ability_modifier(score)

    @staticmethod
    def proficiency_bonus(level: int) -> int:
        """Proficiency bonus for a character level."""
        return proficiency_bonus_for_level(level)

    def resolve_ability_check(
        self,
        ability_score: int,
        dc: int,
        proficient: bool = False,
        proficiency_bonus: int = 0,
        advantage: AdvantageType = AdvantageType.NORMAL,
    ) -> CheckResult:
        """Resolve an ability check against a DC.

        A natural 20 or 1 only sets the critical/fumble flags; success is
        decided by ``total >= dc`` alone.

        Args:
            ability_score: Raw ability score.
            dc: Difficulty class.
            proficient: Whether the proficiency bonus applies.
            proficiency_bonus: Bonus added when proficient.
            advantage: Roll mode.

        Returns:
            The check result.
        """
        modifier = ability_modifier(ability_score)
        bonus = proficiency_bonus if proficient else 0

        roll = self._dice.roll(_D20, advantage).selected_roll
        total = roll + modifier + bonus

        result = CheckResult(
            total=total,
            roll=roll,
            ability_modifier=modifier,
            proficiency_bonus=bonus,
            difficulty_class=dc,
            success=total >= dc,
            is_critical=roll == NATURAL_CRITICAL,
            is_fumble=roll == NATURAL_FUMBLE,
        )
        logger.debug(
            "Ability check resolved",
            roll=roll,
            total=total,
            dc=dc,
            success=result.success,
        )
        return result

    def resolve_saving_throw(
        self,
        character: Character,
        ability: AbilityType,
        dc: int,
        advantage: AdvantageType = AdvantageType.NORMAL,
    ) -> CheckResult:
        """Resolve a saving throw for a character.

        Saving-throw proficiency is not modeled; saves never add the
        proficiency bonus.

        Args:
            character: The character making the save.
            ability: Ability the save is made with.
            dc: Difficulty class.
            advantage: Roll mode.

        Returns:
            The check result.

        Raises:
            ValidationError: If ability is not a known ability.
        """
        try:
            ability = AbilityType(ability)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid ability type: {ability}",
                field_name="ability",
                invalid_value=ability,
            ) from exc

        score = character.ability_scores.score(ability)
        return self.resolve_ability_check(
            score,
            dc,
            proficient=False,
            proficiency_bonus=character.proficiency_bonus,
            advantage=advantage,
        )

    def resolve_attack(
        self,
        attack_bonus: int,
        target_ac: int,
        advantage: AdvantageType = AdvantageType.NORMAL,
    ) -> AttackResult:
        """Resolve an attack roll against an armor class.

        A natural 20 always hits and a natural 1 always misses; otherwise
        the attack hits when ``roll + attack_bonus >= target_ac``.

        Args:
            attack_bonus: Bonus added to the d20.
            target_ac: Defender armor class.
            advantage: Roll mode.

        Returns:
            The attack result, without damage.
        """
        roll = self._dice.roll(_D20, advantage).selected_roll
        attack_roll = roll + attack_bonus
        is_critical = roll == NATURAL_CRITICAL
        is_fumble = roll == NATURAL_FUMBLE
        hit = is_critical or (not is_fumble and attack_roll >= target_ac)

        logger.debug(
            "Attack resolved",
            roll=roll,
            attack_roll=attack_roll,
            target_ac=target_ac,
            hit=hit,
        )
        return AttackResult(
            attack_roll=attack_roll,
            roll=roll,
            attack_bonus=attack_bonus,
            target_ac=target_ac,
            hit=hit,
            is_critical=is_critical,
            is_fumble=is_fumble,
        )

    def calculate_damage(self, formula: str | DiceFormula, critical: bool = False) -> int:
        """Roll damage.

        On a critical the dice count is doubled but the modifier is not
        (2d6+3 becomes 4d6+3), and the doubled formula is rolled once.

        Args:
            formula: Damage formula.
            critical: Whether the attack was a critical hit.

        Returns:
            Damage dealt.

        Raises:
            DiceFormulaError: If the formula is invalid.
        """
        parsed = formula if isinstance(formula, DiceFormula) else DiceFormula.parse(formula)
        if critical:
            parsed = parsed.with_doubled_dice()
        return self._dice.roll(parsed).total


__all__ = [
    "RulesEngine",
]
