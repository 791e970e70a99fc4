"""Pydantic V2 request schemas for the narration operations.

The web layer parses incoming payloads into these before calling the
orchestrator, so malformed requests fail fast with a pydantic
``ValidationError`` instead of reaching the LLM.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from dnd_engine.models.narration import LocationContext, NpcContext


PositiveId = Annotated[int, Field(gt=0)]


class GenerateDmResponseRequest(BaseModel):
    """Request for a Dungeon Master response to a player action.

    Attributes:
        session_id: Session providing context.
        player_message: The player's action or utterance.
        character_id: Acting character, if any.
        stream: Whether the caller wants streamed chunks.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    session_id: PositiveId = Field(description="Session ID")
    player_message: str = Field(min_length=1, max_length=5000, description="Player action")
    character_id: PositiveId | None = Field(default=None, description="Acting character")
    stream: bool = Field(default=False, description="Stream the response")


class GenerateNpcDialogueRequest(BaseModel):
    """Request for an NPC's reply to the player."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    session_id: PositiveId = Field(description="Session ID")
    npc_name: str = Field(min_length=1, max_length=100, description="NPC name")
    personality: str = Field(min_length=1, max_length=500, description="NPC personality")
    player_message: str = Field(min_length=1, max_length=2000, description="What the player said")
    occupation: str | None = Field(default=None, max_length=100, description="NPC occupation")
    mood: str | None = Field(default=None, max_length=100, description="NPC mood")
    metadata: dict[str, str] = Field(default_factory=dict, description="Extra details")

    def to_npc_context(self) -> NpcContext:
        """Convert the request into an NPC context.

        Returns:
            The NPC context.
        """
        return NpcContext(
            name=self.npc_name,
            personality_traits=self.personality,
            occupation=self.occupation or None,
            current_mood=self.mood or None,
            metadata=dict(self.metadata),
        )


class GenerateSceneDescriptionRequest(BaseModel):
    """Request for a description of a location."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    session_id: PositiveId = Field(description="Session ID")
    location_name: str = Field(min_length=1, max_length=200, description="Location name")
    location_type: str = Field(min_length=1, max_length=100, description="Location type")
    description: str | None = Field(default=None, max_length=1000, description="Background")
    features: list[str] = Field(default_factory=list, max_length=20, description="Features")
    npcs_present: list[str] = Field(default_factory=list, max_length=20, description="NPCs")
    details: dict[str, str] = Field(default_factory=dict, description="Extra details")

    def to_location_context(self) -> LocationContext:
        """Convert the request into a location context.

        Returns:
            The location context.
        """
        return LocationContext(
            name=self.location_name,
            location_type=self.location_type,
            description=self.description or None,
            visible_features=list(self.features),
            present_npcs=list(self.npcs_present),
            additional_details=dict(self.details),
        )


__all__ = [
    "GenerateDmResponseRequest",
    "GenerateNpcDialogueRequest",
    "GenerateSceneDescriptionRequest",
]
