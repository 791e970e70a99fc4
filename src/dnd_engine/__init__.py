"""D&D Rules & Narration Engine.

Resolves D&D 5E mechanics and narrates sessions through an LLM Dungeon
Master with content moderation.

ARCHITECTURE:
- Python owns TRUTH (dice from a CSPRNG, rules resolution, hit points)
- The LLM handles NARRATION only, behind moderation on both sides
- Persistence, transport and UI are the host application's job

Example:
    >>> from dnd_engine import DiceRoller, RulesEngine
    >>>
    >>> rules = RulesEngine(DiceRoller())
    >>> attack = rules.resolve_attack(attack_bonus=6, target_ac=13)
    >>> if attack.hit:
    ...     damage = rules.calculate_damage("1d8+3", critical=attack.is_critical)

Modules:
    core: Configuration, logging, and base exceptions.
    models: Pydantic V2 schemas.
    engine: Dice, rules resolution and combat orchestration.
    dm: Moderation, prompts, LLM providers and the narration pipeline.
"""

from __future__ import annotations

# Core
from dnd_engine.core.config import Settings, get_settings
from dnd_engine.core.exceptions import DndEngineError
from dnd_engine.core.logging import configure_logging, get_logger

# Narration
from dnd_engine.dm import (
    ContentModerator,
    LLMProvider,
    NarrationOrchestrator,
    OpenAIProvider,
    PromptAssembler,
)

# Engine
from dnd_engine.engine import (
    CombatOrchestrator,
    DiceFormula,
    DiceRoller,
    DiceRollResult,
    RulesEngine,
)

# Models
from dnd_engine.models import (
    AbilityScores,
    AbilityType,
    AdvantageType,
    Character,
    DmResponse,
    Message,
    ModerationResult,
    Session,
    SessionContext,
)


__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Core
    "Settings",
    "get_settings",
    "DndEngineError",
    "configure_logging",
    "get_logger",
    # Engine
    "DiceFormula",
    "DiceRollResult",
    "DiceRoller",
    "RulesEngine",
    "CombatOrchestrator",
    # Narration
    "ContentModerator",
    "PromptAssembler",
    "LLMProvider",
    "OpenAIProvider",
    "NarrationOrchestrator",
    # Models
    "AbilityScores",
    "AbilityType",
    "AdvantageType",
    "Character",
    "Session",
    "Message",
    "SessionContext",
    "ModerationResult",
    "DmResponse",
]
