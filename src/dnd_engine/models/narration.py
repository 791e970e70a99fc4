"""Pydantic V2 schemas consumed and produced by the narration pipeline.

SessionContext is the read-only projection of a game session the AI
Dungeon Master works from. NpcContext and LocationContext feed the two
secondary narration modes. ModerationResult and DmResponse are the
pipeline's outputs.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field

from dnd_engine.core.config import get_settings
from dnd_engine.core.constants import DEFAULT_COST_PER_TOKEN
from dnd_engine.models.character import Character, Message, Session
from dnd_engine.models.enums import MessageRole, SessionMode


# =============================================================================
# Context Projections
# =============================================================================


class SessionContext(BaseModel):
    """Everything the DM needs to narrate the next beat of a session.

    Attributes:
        session_id: Session identifier.
        recent_messages: Most recent messages, oldest first.
        active_characters: Characters currently playing.
        current_scene: Free-text scene description, if any.
        world_flags: Story flags such as ``InCombat``.
        mode: Explicit session mode; derived from party size when None.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_id: int = Field(description="Session ID")
    recent_messages: list[Message] = Field(default_factory=list, description="Recent messages")
    active_characters: list[Character] = Field(
        default_factory=list,
        description="Active characters",
    )
    current_scene: str | None = Field(default=None, description="Current scene")
    world_flags: dict[str, Any] = Field(default_factory=dict, description="World flags")
    mode: SessionMode | None = Field(default=None, description="Session mode override")

    @classmethod
    def from_session(
        cls,
        session: Session,
        characters: Iterable[Character],
        messages: Iterable[Message],
        *,
        window: int | None = None,
    ) -> "SessionContext":
        """Build a context from session records.

        Keeps only the ``window`` most recent messages, in chronological
        order. Characters are filtered to the session's active participants.

        Args:
            session: The session record.
            characters: Candidate characters.
            messages: Session messages in any order.
            window: Maximum number of messages to keep; defaults to the
                configured ``recent_message_window``.

        Returns:
            The session context.
        """
        if window is None:
            window = get_settings().game.recent_message_window
        active_ids = set(session.active_character_ids)
        ordered = sorted(messages, key=lambda message: message.timestamp)
        recent = ordered[-window:] if window > 0 else []
        return cls(
            session_id=session.id,
            recent_messages=recent,
            active_characters=[c for c in characters if c.id in active_ids],
            current_scene=session.current_scene,
            world_flags=dict(session.world_flags),
        )

    @property
    def last_message(self) -> Message | None:
        return self.recent_messages[-1] if self.recent_messages else None

    @property
    def message_count(self) -> int:
        return len(self.recent_messages)

    @property
    def character_count(self) -> int:
        return len(self.active_characters)

    def has_world_flag(self, key: str) -> bool:
        """Check whether a world flag is set.

        Args:
            key: Flag name.

        Returns:
            True if the flag exists.
        """
        return key in self.world_flags

    def get_world_flag(self, key: str, default: Any = None) -> Any:
        """Get a world flag value.

        Args:
            key: Flag name.
            default: Value returned when the flag is absent.

        Returns:
            The flag value or the default.
        """
        return self.world_flags.get(key, default)


class NpcContext(BaseModel):
    """An NPC the player is talking to.

    Attributes:
        name: NPC name.
        personality_traits: How the NPC behaves.
        occupation: Optional occupation.
        current_mood: Optional mood.
        metadata: Free-form extra details.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="NPC name")
    personality_traits: str = Field(default="", description="Personality")
    occupation: str | None = Field(default=None, description="Occupation")
    current_mood: str | None = Field(default=None, description="Current mood")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Extra details")

    @property
    def has_occupation(self) -> bool:
        return bool(self.occupation)

    @property
    def has_mood(self) -> bool:
        return bool(self.current_mood)


class LocationContext(BaseModel):
    """A location to describe.

    Attributes:
        name: Location name.
        location_type: Kind of place (tavern, dungeon, forest...).
        description: Optional background description.
        visible_features: Notable features.
        present_npcs: NPCs present.
        additional_details: Free-form extra details.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Location name")
    location_type: str = Field(description="Location type")
    description: str | None = Field(default=None, description="Background")
    visible_features: list[str] = Field(default_factory=list, description="Notable features")
    present_npcs: list[str] = Field(default_factory=list, description="NPCs present")
    additional_details: dict[str, Any] = Field(default_factory=dict, description="Extra details")

    @property
    def has_description(self) -> bool:
        return bool(self.description)

    @property
    def has_features(self) -> bool:
        return bool(self.visible_features)

    @property
    def has_npcs(self) -> bool:
        return bool(self.present_npcs)


# =============================================================================
# Pipeline Outputs
# =============================================================================


class ModerationResult(BaseModel):
    """Outcome of a moderation pass.

    Three flavors:

    * safe: no violations.
    * unsafe: violations and no usable substitute; the caller must reject.
    * sanitized: violations, but ``sanitized_content`` may be used instead.

    Attributes:
        is_safe: Whether the caller may proceed.
        violations: Human-readable violation categories.
        sanitized_content: Cleaned substitute text, if any.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_safe: bool = Field(description="Caller may proceed")
    violations: list[str] = Field(default_factory=list, description="Violations")
    sanitized_content: str | None = Field(default=None, description="Sanitized text")

    @classmethod
    def safe(cls) -> "ModerationResult":
        return cls(is_safe=True)

    @classmethod
    def unsafe(cls, *violations: str) -> "ModerationResult":
        return cls(is_safe=False, violations=list(violations))

    @classmethod
    def sanitized(cls, sanitized_content: str, *violations: str) -> "ModerationResult":
        return cls(is_safe=True, violations=list(violations), sanitized_content=sanitized_content)

    @property
    def has_violations(self) -> bool:
        return bool(self.violations)

    @property
    def was_sanitized(self) -> bool:
        return bool(self.sanitized_content)


class DmResponse(BaseModel):
    """A narrated response from the AI Dungeon Master.

    Attributes:
        content: Narrative text (sanitized if moderation intervened).
        role: Always the Dungeon Master.
        tokens_used: Tokens reported by the provider.
        response_time: Wall-clock time of the pipeline.
        suggested_actions: Up to three actions offered to the player.
        was_moderated: Whether output moderation replaced the text.
        cost_per_token: Price used for the cost estimate.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    content: str = Field(description="Narrative text")
    role: MessageRole = Field(default=MessageRole.DUNGEON_MASTER, description="Speaker")
    tokens_used: int = Field(default=0, ge=0, description="Tokens used")
    response_time: timedelta = Field(default=timedelta(0), description="Response time")
    suggested_actions: list[str] = Field(default_factory=list, description="Suggested actions")
    was_moderated: bool = Field(default=False, description="Output was sanitized")
    cost_per_token: Decimal = Field(
        default=Decimal(DEFAULT_COST_PER_TOKEN),
        ge=0,
        description="Price per token",
    )

    @classmethod
    def create(
        cls,
        content: str,
        tokens_used: int,
        response_time: timedelta,
        suggested_actions: list[str] | None = None,
        *,
        was_moderated: bool = False,
        cost_per_token: Decimal | None = None,
    ) -> "DmResponse":
        """Create a Dungeon Master response.

        Args:
            content: Narrative text.
            tokens_used: Tokens reported by the provider.
            response_time: Pipeline duration.
            suggested_actions: Extracted suggestions.
            was_moderated: Whether the text was sanitized.
            cost_per_token: Override of the default price per token.

        Returns:
            The response.
        """
        extra: dict[str, Any] = {}
        if cost_per_token is not None:
            extra["cost_per_token"] = cost_per_token
        return cls(
            content=content,
            tokens_used=tokens_used,
            response_time=response_time,
            suggested_actions=list(suggested_actions or []),
            was_moderated=was_moderated,
            **extra,
        )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def estimated_cost(self) -> Decimal:
        """Approximate cost of the response in USD."""
        return self.tokens_used * self.cost_per_token

    @property
    def response_time_ms(self) -> float:
        return self.response_time.total_seconds() * 1000

    @property
    def has_suggested_actions(self) -> bool:
        return bool(self.suggested_actions)


__all__ = [
    "SessionContext",
    "NpcContext",
    "LocationContext",
    "ModerationResult",
    "DmResponse",
]
