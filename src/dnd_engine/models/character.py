"""Pydantic V2 schemas for characters, sessions and chat messages.

These are the plain records exchanged with the persistence collaborator.
The engine reads them and, for combat, writes back hit points only.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from dnd_engine.core.constants import (
    BASE_PROFICIENCY_BONUS,
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
)
from dnd_engine.models.enums import (
    AbilityType,
    CharacterClass,
    MessageRole,
    SessionMode,
    SessionState,
)


AbilityScore = Annotated[int, Field(ge=MIN_ABILITY_SCORE, le=MAX_ABILITY_SCORE)]


def ability_modifier(score: int) -> int:
    """Calculate the modifier for a raw ability score.

    Uses ``(score - 10) / 2`` truncated toward zero, so odd scores below 10
    round up: score 1 gives -4 where a true floor would give -5.

    Args:
        score: Raw ability score.

    Returns:
        The ability modifier.
    """
    delta = score - 10
    if delta >= 0:
        return delta // 2
    return -(-delta // 2)


def proficiency_bonus_for_level(level: int) -> int:
    """Calculate the proficiency bonus for a character level.

    Levels 1-4 give +2, 5-8 give +3, up to +6 at 17-20.

    Args:
        level: Character level.

    Returns:
        The proficiency bonus.
    """
    return BASE_PROFICIENCY_BONUS + (level - 1) // 4


class AbilityScores(BaseModel):
    """The six raw ability scores of a character.

    Attributes:
        strength: Physical power.
        dexterity: Agility and reflexes.
        constitution: Health and stamina.
        intelligence: Reasoning and memory.
        wisdom: Awareness and insight.
        charisma: Force of personality.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: AbilityScore = 10
    dexterity: AbilityScore = 10
    constitution: AbilityScore = 10
    intelligence: AbilityScore = 10
    wisdom: AbilityScore = 10
    charisma: AbilityScore = 10

    def score(self, ability: AbilityType) -> int:
        """Get the raw score for an ability.

        Args:
            ability: The ability to look up.

        Returns:
            The raw score.
        """
        return getattr(self, AbilityType(ability).value)

    def modifier(self, ability: AbilityType) -> int:
        """Get the modifier for an ability.

        Args:
            ability: The ability to look up.

        Returns:
            The ability modifier.
        """
        return ability_modifier(self.score(ability))

    @property
    def strength_modifier(self) -> int:
        return ability_modifier(self.strength)

    @property
    def dexterity_modifier(self) -> int:
        return ability_modifier(self.dexterity)

    @property
    def constitution_modifier(self) -> int:
        return ability_modifier(self.constitution)

    @property
    def intelligence_modifier(self) -> int:
        return ability_modifier(self.intelligence)

    @property
    def wisdom_modifier(self) -> int:
        return ability_modifier(self.wisdom)

    @property
    def charisma_modifier(self) -> int:
        return ability_modifier(self.charisma)


class Character(BaseModel):
    """A character record as loaded from the persistence collaborator.

    Hit points are the only field the engine changes; assignment is
    validated so they never leave ``[0, max_hit_points]``.

    Attributes:
        id: Character identifier.
        player_id: Owning player identifier.
        name: Character name.
        character_class: Character class.
        level: Character level (1-20).
        ability_scores: Raw ability scores.
        hit_points: Current hit points.
        max_hit_points: Maximum hit points.
        armor_class: Armor class.
        skills: Proficient skills.
        inventory: Carried items.
        personality_traits: Free-text personality notes.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    id: int = Field(description="Character ID")
    player_id: int = Field(default=0, description="Owning player ID")
    name: str = Field(min_length=1, max_length=100, description="Character name")
    character_class: CharacterClass = Field(
        default=CharacterClass.FIGHTER,
        description="Character class",
    )
    level: int = Field(
        default=MIN_CHARACTER_LEVEL,
        ge=MIN_CHARACTER_LEVEL,
        le=MAX_CHARACTER_LEVEL,
        description="Character level",
    )
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    hit_points: int = Field(ge=0, description="Current HP")
    max_hit_points: int = Field(ge=1, description="Maximum HP")
    armor_class: int = Field(default=10, ge=1, le=30, description="Armor class")
    skills: list[str] = Field(default_factory=list, description="Proficient skills")
    inventory: list[str] = Field(default_factory=list, description="Carried items")
    personality_traits: str | None = Field(default=None, description="Personality notes")

    @model_validator(mode="after")
    def validate_hit_points(self) -> "Character":
        """Ensure current hit points do not exceed the maximum.

        Returns:
            Self if validation passes.

        Raises:
            ValueError: If hit_points > max_hit_points.
        """
        if self.hit_points > self.max_hit_points:
            raise ValueError(
                f"hit_points ({self.hit_points}) cannot exceed "
                f"max_hit_points ({self.max_hit_points})"
            )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def proficiency_bonus(self) -> int:
        """Proficiency bonus derived from level."""
        return proficiency_bonus_for_level(self.level)

    @property
    def is_conscious(self) -> bool:
        """Check whether the character is above 0 HP.

        Returns:
            True if hit points are positive.
        """
        return self.hit_points > 0


class SessionParticipant(BaseModel):
    """A character's membership in a session.

    Attributes:
        character_id: Participating character.
        is_active: Whether the character is currently playing.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    character_id: int = Field(description="Character ID")
    is_active: bool = Field(default=True, description="Participant is active")


class Session(BaseModel):
    """A game session record.

    Attributes:
        id: Session identifier.
        title: Session title.
        mode: Solo or multiplayer.
        state: Lifecycle state.
        current_scene: Free-text description of the current scene.
        world_flags: Story flags, including ``InCombat``.
        participants: Characters enrolled in the session.
    """

    model_config = ConfigDict(extra="forbid")

    id: int = Field(description="Session ID")
    title: str = Field(default="Untitled Session", max_length=200, description="Title")
    mode: SessionMode = Field(default=SessionMode.MULTIPLAYER, description="Session mode")
    state: SessionState = Field(default=SessionState.CREATED, description="Session state")
    current_scene: str | None = Field(default=None, description="Current scene")
    world_flags: dict[str, Any] = Field(default_factory=dict, description="World flags")
    participants: list[SessionParticipant] = Field(
        default_factory=list,
        description="Enrolled characters",
    )

    @property
    def active_character_ids(self) -> list[int]:
        """Get ids of active participants, in enrollment order.

        Returns:
            List of character ids.
        """
        return [p.character_id for p in self.participants if p.is_active]


class Message(BaseModel):
    """A chat message in a session transcript."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_id: int = Field(default=0, description="Session ID")
    author_id: str = Field(default="", description="Author identifier")
    role: MessageRole = Field(description="Speaker role")
    content: str = Field(description="Message text")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="When sent",
    )


__all__ = [
    "ability_modifier",
    "proficiency_bonus_for_level",
    "AbilityScores",
    "Character",
    "SessionParticipant",
    "Session",
    "Message",
]
