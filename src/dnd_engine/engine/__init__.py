"""Game engine: dice, rules resolution and combat orchestration.

Exports:
    DiceFormula, DiceRollResult, DiceRoller: Formula parsing and rolling.
    RulesEngine: Checks, saves, attacks and damage.
    CombatOrchestrator: Initiative, attacks and hit-point changes.
    CharacterRepository, SessionRepository: Persistence ports.
"""

from __future__ import annotations

from dnd_engine.engine.combat import CombatOrchestrator
from dnd_engine.engine.dice import DiceFormula, DiceRoller, DiceRollResult, RandomSource
from dnd_engine.engine.ports import CharacterRepository, SessionRepository
from dnd_engine.engine.rules import RulesEngine


__all__ = [
    "DiceFormula",
    "DiceRollResult",
    "DiceRoller",
    "RandomSource",
    "RulesEngine",
    "CombatOrchestrator",
    "CharacterRepository",
    "SessionRepository",
]
