"""Engine-wide constants for the D&D rules and narration engine.

D&D 5E rules constants and narration defaults shared across modules.
"""

from __future__ import annotations

# =============================================================================
# D&D 5E Rules Constants
# =============================================================================

MIN_ABILITY_SCORE = 1
"""Minimum raw ability score."""

MAX_ABILITY_SCORE = 30
"""Maximum raw ability score (monsters and deities)."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

BASE_PROFICIENCY_BONUS = 2
"""Proficiency bonus at level 1."""

D20_SIDES = 20
"""Sides on the die used for checks, saves, attacks and initiative."""

NATURAL_CRITICAL = 20
"""Natural roll that counts as a critical."""

NATURAL_FUMBLE = 1
"""Natural roll that counts as a fumble."""

MAX_DICE_COUNT = 100
"""Most dice a single parsed formula may roll."""

# =============================================================================
# Narration Constants
# =============================================================================

CONTEXT_MESSAGE_TAIL = 5
"""Most recent messages included in the formatted prompt context."""

COMBAT_HEURISTIC_WINDOW = 3
"""Most recent messages scanned for combat keywords."""

COMBAT_KEYWORDS = ("attack", "combat", "initiative", "damage")
"""Keywords that imply an ongoing fight when no InCombat flag is set."""

IN_COMBAT_FLAG = "InCombat"
"""World flag holding the authoritative combat state."""

MAX_SUGGESTED_ACTIONS = 3
"""Maximum suggested actions extracted from a DM response."""

REDACTION_MARKER = "[REDACTED]"
"""Replacement text for blocked keywords in sanitized output."""

DEFAULT_COST_PER_TOKEN = "0.00003"
"""Approximate blended price per token (USD), as a decimal string."""


__all__ = [
    "MIN_ABILITY_SCORE",
    "MAX_ABILITY_SCORE",
    "MIN_CHARACTER_LEVEL",
    "MAX_CHARACTER_LEVEL",
    "BASE_PROFICIENCY_BONUS",
    "D20_SIDES",
    "NATURAL_CRITICAL",
    "NATURAL_FUMBLE",
    "MAX_DICE_COUNT",
    "CONTEXT_MESSAGE_TAIL",
    "COMBAT_HEURISTIC_WINDOW",
    "COMBAT_KEYWORDS",
    "IN_COMBAT_FLAG",
    "MAX_SUGGESTED_ACTIONS",
    "REDACTION_MARKER",
    "DEFAULT_COST_PER_TOKEN",
]
