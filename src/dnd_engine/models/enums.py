"""Enumeration types for the D&D rules and narration engine.

Abilities, roll modes, session and message kinds, and the narration
scenario used to pick a supplemental prompt.
"""

from __future__ import annotations

from enum import StrEnum


class AbilityType(StrEnum):
    """The six D&D 5E ability scores."""

    STRENGTH = "strength"
    DEXTERITY = "dexterity"
    CONSTITUTION = "constitution"
    INTELLIGENCE = "intelligence"
    WISDOM = "wisdom"
    CHARISMA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the display name of the ability.

        Returns:
            Capitalized ability name (e.g., 'Strength').
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name[:3]


class AdvantageType(StrEnum):
    """How a d20 is rolled.

    Advantage and disadvantage roll two d20s and keep the higher or lower.
    """

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


class CharacterClass(StrEnum):
    """Player character classes."""

    BARBARIAN = "barbarian"
    BARD = "bard"
    CLERIC = "cleric"
    DRUID = "druid"
    FIGHTER = "fighter"
    MONK = "monk"
    PALADIN = "paladin"
    RANGER = "ranger"
    ROGUE = "rogue"
    SORCERER = "sorcerer"
    WARLOCK = "warlock"
    WIZARD = "wizard"

    @property
    def display_name(self) -> str:
        """Get the display name of the class.

        Returns:
            Capitalized class name (e.g., 'Wizard').
        """
        return self.value.capitalize()


class SessionMode(StrEnum):
    """Whether a session is run for one player or a party."""

    SOLO = "solo"
    MULTIPLAYER = "multiplayer"


class SessionState(StrEnum):
    """Lifecycle of a game session."""

    CREATED = "created"
    WAITING_FOR_PLAYERS = "waiting_for_players"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class MessageRole(StrEnum):
    """Who authored a chat message."""

    PLAYER = "player"
    DUNGEON_MASTER = "dungeon_master"
    SYSTEM = "system"

    @property
    def label(self) -> str:
        """Get the speaker tag used in prompt transcripts.

        Returns:
            'PLAYER', 'DM' or 'SYSTEM'.
        """
        if self is MessageRole.DUNGEON_MASTER:
            return "DM"
        return self.name


class Scenario(StrEnum):
    """Narrative situation that selects the supplemental DM prompt."""

    COMBAT = "combat"
    EXPLORATION = "exploration"


__all__ = [
    "AbilityType",
    "AdvantageType",
    "CharacterClass",
    "SessionMode",
    "SessionState",
    "MessageRole",
    "Scenario",
]
