"""Dice rolling mechanics for D&D 5E.

Parses ``NdM``, ``NdM+K`` and ``NdM-K`` formulas and rolls them with a
cryptographically secure random source, with support for advantage and
disadvantage on single d20 rolls.

Example:
    >>> roller = DiceRoller()
    >>> result = roller.roll("1d20+5")
    >>> 6 <= result.total <= 25
    True
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from dnd_engine.core.constants import D20_SIDES, MAX_DICE_COUNT, NATURAL_CRITICAL, NATURAL_FUMBLE
from dnd_engine.core.exceptions import DiceFormulaError
from dnd_engine.core.logging import get_logger
from dnd_engine.models.enums import AdvantageType


logger = get_logger(__name__)

_FORMULA_PATTERN = re.compile(r"^(\d{1,9})d(\d{1,9})([+-]\d{1,9})?$", re.IGNORECASE | re.ASCII)


class RandomSource(Protocol):
    """Anything that can draw a uniform integer in ``[a, b]``."""

    def randint(self, a: int, b: int) -> int: ...


@dataclass(frozen=True)
class DiceFormula:
    """A parsed dice formula.

    Attributes:
        count: Number of dice (at least 1).
        sides: Sides per die (at least 2).
        modifier: Flat modifier added to the sum.
    """

    count: int
    sides: int
    modifier: int = 0

    def __post_init__(self) -> None:
        if self.count < 1:
            raise DiceFormulaError("Dice count must be at least 1", expression=str(self))
        if self.sides < 2:
            raise DiceFormulaError("Dice sides must be at least 2", expression=str(self))

    @classmethod
    def parse(cls, text: str) -> DiceFormula:
        """Parse a formula string.

        Surrounding whitespace is ignored and the ``d`` is case-insensitive.
        At most ``MAX_DICE_COUNT`` dice are accepted; critical doubling may
        exceed it.

        Args:
            text: Formula such as '2d6+3', '1d20' or '3d8-1'.

        Returns:
            The parsed formula.

        Raises:
            DiceFormulaError: If the text is not a valid formula.
        """
        if not text or not text.strip():
            raise DiceFormulaError("Dice formula cannot be empty", expression=text)

        match = _FORMULA_PATTERN.match(text.strip())
        if match is None:
            raise DiceFormulaError(f"Invalid dice formula: {text}", expression=text)

        count = int(match.group(1))
        sides = int(match.group(2))
        modifier = int(match.group(3)) if match.group(3) else 0
        if count > MAX_DICE_COUNT:
            raise DiceFormulaError(
                f"Dice count must be at most {MAX_DICE_COUNT}",
                expression=text,
            )
        return cls(count=count, sides=sides, modifier=modifier)

    @classmethod
    def try_parse(cls, text: str) -> DiceFormula | None:
        """Parse a formula string, returning None instead of raising.

        Args:
            text: Formula string.

        Returns:
            The parsed formula or None.
        """
        try:
            return cls.parse(text)
        except DiceFormulaError:
            return None

    @property
    def is_single_d20(self) -> bool:
        """Whether this is exactly one d20 (with any modifier)."""
        return self.count == 1 and self.sides == D20_SIDES

    def with_doubled_dice(self) -> DiceFormula:
        """Double the dice count, keeping the modifier.

        Returns:
            The critical-hit version of this formula (2d6+3 -> 4d6+3).
        """
        return DiceFormula(count=self.count * 2, sides=self.sides, modifier=self.modifier)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.count}d{self.sides}+{self.modifier}"
        if self.modifier < 0:
            return f"{self.count}d{self.sides}{self.modifier}"
        return f"{self.count}d{self.sides}"


@dataclass(frozen=True)
class DiceRollResult:
    """The outcome of one roll.

    For advantage/disadvantage, ``individual_rolls`` holds both raw d20s and
    ``total`` is the kept die plus the modifier. Otherwise ``total`` is the
    sum of all dice plus the modifier.

    Attributes:
        formula: Canonical formula that was rolled.
        individual_rolls: Raw die results.
        modifier: Flat modifier applied.
        total: Final result.
        is_critical: Natural 20 on a single d20.
        is_fumble: Natural 1 on a single d20.
        advantage: Roll mode actually applied.
        timestamp: When the roll happened (UTC).
    """

    formula: str
    individual_rolls: tuple[int, ...]
    modifier: int
    total: int
    is_critical: bool = False
    is_fumble: bool = False
    advantage: AdvantageType = AdvantageType.NORMAL
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def selected_roll(self) -> int:
        """The die that counted.

        Returns:
            The kept d20 for advantage/disadvantage, otherwise the first die.
        """
        if self.advantage is AdvantageType.ADVANTAGE:
            return max(self.individual_rolls)
        if self.advantage is AdvantageType.DISADVANTAGE:
            return min(self.individual_rolls)
        return self.individual_rolls[0]


class DiceRoller:
    """Dice rolling with D&D 5E mechanics.

    Uses ``secrets.SystemRandom`` so outcomes cannot be predicted from
    earlier rolls. A different random source can be injected for tests.

    Example:
        >>> roller = DiceRoller()
        >>> result = roller.roll("1d20", AdvantageType.ADVANTAGE)
        >>> len(result.individual_rolls)
        2
    """

    def __init__(self, rng: RandomSource | None = None) -> None:
        """Initialize the dice roller.

        Args:
            rng: Random source; defaults to the system CSPRNG.
        """
        self._rng: RandomSource = rng if rng is not None else secrets.SystemRandom()

    def parse(self, text: str) -> DiceFormula:
        """Parse a formula string.

        Args:
            text: Formula string.

        Returns:
            The parsed formula.

        Raises:
            DiceFormulaError: If the text is not a valid formula.
        """
        return DiceFormula.parse(text)

    def roll(
        self,
        formula: str | DiceFormula,
        advantage: AdvantageType = AdvantageType.NORMAL,
    ) -> DiceRollResult:
        """Roll a formula.

        Advantage and disadvantage only apply to a single d20; for any other
        formula they are ignored and a normal roll is made.

        Args:
            formula: Formula string or parsed formula.
            advantage: Roll mode.

        Returns:
            The roll result.

        Raises:
            DiceFormulaError: If the formula is invalid. No dice are rolled.
        """
        parsed = formula if isinstance(formula, DiceFormula) else DiceFormula.parse(formula)

        if advantage is not AdvantageType.NORMAL and parsed.is_single_d20:
            result = self._roll_with_mode(parsed, advantage)
        else:
            rolls = self._draw(parsed.count, parsed.sides)
            first = rolls[0]
            result = DiceRollResult(
                formula=str(parsed),
                individual_rolls=rolls,
                modifier=parsed.modifier,
                total=sum(rolls) + parsed.modifier,
                is_critical=parsed.is_single_d20 and first == NATURAL_CRITICAL,
                is_fumble=parsed.is_single_d20 and first == NATURAL_FUMBLE,
            )

        logger.debug(
            "Dice rolled",
            formula=result.formula,
            rolls=list(result.individual_rolls),
            total=result.total,
            advantage=str(result.advantage),
            is_critical=result.is_critical,
            is_fumble=result.is_fumble,
        )
        return result

    def roll_with_advantage(self, formula: str | DiceFormula) -> DiceRollResult:
        """Roll with advantage (two d20s, keep the higher)."""
        return self.roll(formula, AdvantageType.ADVANTAGE)

    def roll_with_disadvantage(self, formula: str | DiceFormula) -> DiceRollResult:
        """Roll with disadvantage (two d20s, keep the lower)."""
        return self.roll(formula, AdvantageType.DISADVANTAGE)

    def _roll_with_mode(self, formula: DiceFormula, advantage: AdvantageType) -> DiceRollResult:
        first = self._rng.randint(1, D20_SIDES)
        second = self._rng.randint(1, D20_SIDES)
        kept = max(first, second) if advantage is AdvantageType.ADVANTAGE else min(first, second)
        return DiceRollResult(
            formula=str(formula),
            individual_rolls=(first, second),
            modifier=formula.modifier,
            total=kept + formula.modifier,
            is_critical=kept == NATURAL_CRITICAL,
            is_fumble=kept == NATURAL_FUMBLE,
            advantage=advantage,
        )

    def _draw(self, count: int, sides: int) -> tuple[int, ...]:
        return tuple(self._rng.randint(1, sides) for _ in range(count))


__all__ = [
    "RandomSource",
    "DiceFormula",
    "DiceRollResult",
    "DiceRoller",
]
