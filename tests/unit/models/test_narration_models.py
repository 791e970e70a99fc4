"""Tests for narration context, output and request schemas."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from pydantic import ValidationError

from dnd_engine.models.character import Character, Message, Session, SessionParticipant
from dnd_engine.models.enums import MessageRole
from dnd_engine.models.narration import (
    DmResponse,
    LocationContext,
    ModerationResult,
    NpcContext,
    SessionContext,
)
from dnd_engine.models.requests import (
    GenerateDmResponseRequest,
    GenerateNpcDialogueRequest,
    GenerateSceneDescriptionRequest,
)


class TestSessionContext:
    """Tests for SessionContext."""

    def test_from_session(self, session: Session, fighter: Character, rogue: Character) -> None:
        """Test the projection keeps active characters and recent messages."""
        session.world_flags["InCombat"] = False
        session.participants.append(SessionParticipant(character_id=99, is_active=False))
        stranger = Character(id=99, name="Ghost", hit_points=1, max_hit_points=1)
        messages = [
            Message(
                role=MessageRole.PLAYER,
                content=f"m{n}",
                timestamp=datetime(2024, 5, 1, 10, n, tzinfo=UTC),
            )
            for n in (4, 1, 3, 0, 2)
        ]

        context = SessionContext.from_session(
            session,
            [fighter, rogue, stranger],
            messages,
            window=3,
        )

        assert context.session_id == 7
        assert [c.name for c in context.active_characters] == ["Thorin", "Vex"]
        assert [m.content for m in context.recent_messages] == ["m2", "m3", "m4"]
        assert context.current_scene == "A collapsed mine entrance"
        assert context.get_world_flag("InCombat") is False
        assert context.mode is None

    def test_from_session_uses_configured_window(
        self,
        session: Session,
        fighter: Character,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Test the default window comes from the game settings."""
        monkeypatch.setenv("DND_ENGINE_GAME_RECENT_MESSAGE_WINDOW", "2")
        messages = [
            Message(
                role=MessageRole.PLAYER,
                content=f"m{n}",
                timestamp=datetime(2024, 5, 1, 10, n, tzinfo=UTC),
            )
            for n in range(5)
        ]

        context = SessionContext.from_session(session, [fighter], messages)

        assert [m.content for m in context.recent_messages] == ["m3", "m4"]

    def test_accessors(self, session_context: SessionContext) -> None:
        """Test convenience accessors."""
        assert session_context.message_count == 3
        assert session_context.character_count == 2
        assert session_context.last_message is not None
        assert session_context.last_message.content == "I look for tracks."
        assert not session_context.has_world_flag("InCombat")
        assert session_context.get_world_flag("Weather", "rain") == "rain"

    def test_empty(self) -> None:
        """Test an empty context."""
        context = SessionContext(session_id=1)

        assert context.last_message is None
        assert context.character_count == 0


class TestNpcAndLocation:
    """Tests for NpcContext and LocationContext."""

    def test_npc_flags(self) -> None:
        """Test occupation and mood presence checks."""
        npc = NpcContext(name="Grimble", occupation="Blacksmith")

        assert npc.has_occupation
        assert not npc.has_mood

    def test_location_flags(self) -> None:
        """Test optional location sections."""
        location = LocationContext(name="Inn", location_type="Tavern", present_npcs=["Barkeep"])

        assert location.has_npcs
        assert not location.has_features
        assert not location.has_description


class TestModerationResult:
    """Tests for ModerationResult factories."""

    def test_safe(self) -> None:
        """Test the safe result."""
        result = ModerationResult.safe()

        assert result.is_safe
        assert not result.has_violations
        assert not result.was_sanitized

    def test_unsafe(self) -> None:
        """Test the unsafe result."""
        result = ModerationResult.unsafe("NSFW content detected")

        assert not result.is_safe
        assert result.violations == ["NSFW content detected"]
        assert result.sanitized_content is None

    def test_sanitized(self) -> None:
        """Test the sanitized result stays usable."""
        result = ModerationResult.sanitized("clean", "Potentially harmful content in LLM response")

        assert result.is_safe
        assert result.has_violations
        assert result.was_sanitized
        assert result.sanitized_content == "clean"


class TestDmResponse:
    """Tests for DmResponse."""

    def test_create(self) -> None:
        """Test the factory fills role and cost."""
        response = DmResponse.create(
            "The gate groans open.",
            tokens_used=100,
            response_time=timedelta(milliseconds=250),
            suggested_actions=["What do you do"],
        )

        assert response.role == MessageRole.DUNGEON_MASTER
        assert response.estimated_cost == Decimal("0.003")
        assert response.response_time_ms == pytest.approx(250.0)
        assert response.has_suggested_actions
        assert response.was_moderated is False

    def test_custom_cost(self) -> None:
        """Test the price per token can be overridden."""
        response = DmResponse.create(
            "Hm.",
            tokens_used=4,
            response_time=timedelta(0),
            cost_per_token=Decimal("0.5"),
        )

        assert response.estimated_cost == Decimal("2.0")
        assert response.suggested_actions == []

    def test_serializes_cost(self) -> None:
        """Test the computed cost appears in dumps."""
        response = DmResponse.create("Hm.", tokens_used=0, response_time=timedelta(0))

        assert response.model_dump()["estimated_cost"] == Decimal("0")

    def test_negative_tokens_rejected(self) -> None:
        """Test token counts cannot be negative."""
        with pytest.raises(ValidationError):
            DmResponse.create("Hm.", tokens_used=-1, response_time=timedelta(0))


class TestRequests:
    """Tests for request schemas."""

    def test_dm_request_strips_and_bounds(self) -> None:
        """Test whitespace is stripped and the message bounded."""
        request = GenerateDmResponseRequest(session_id=1, player_message="  I open the door.  ")

        assert request.player_message == "I open the door."
        assert request.stream is False

        with pytest.raises(ValidationError):
            GenerateDmResponseRequest(session_id=1, player_message="x" * 5001)
        with pytest.raises(ValidationError):
            GenerateDmResponseRequest(session_id=1, player_message="   ")

    def test_dm_request_ids_positive(self) -> None:
        """Test identifiers must be positive."""
        with pytest.raises(ValidationError):
            GenerateDmResponseRequest(session_id=0, player_message="Hi")

    def test_dm_request_rejects_unknown_fields(self) -> None:
        """Test extra fields are forbidden."""
        with pytest.raises(ValidationError):
            GenerateDmResponseRequest(session_id=1, player_message="Hi", admin=True)

    def test_npc_request_to_context(self) -> None:
        """Test NPC request conversion."""
        request = GenerateNpcDialogueRequest(
            session_id=1,
            npc_name="Grimble",
            personality="Gruff",
            player_message="Hello",
            occupation="",
            mood="Tired",
        )

        npc = request.to_npc_context()

        assert npc.name == "Grimble"
        assert npc.personality_traits == "Gruff"
        assert npc.occupation is None
        assert npc.current_mood == "Tired"

    def test_scene_request_to_context(self) -> None:
        """Test scene request conversion and list bounds."""
        request = GenerateSceneDescriptionRequest(
            session_id=1,
            location_name="Old Mill",
            location_type="Ruin",
            features=["Broken wheel"],
        )

        location = request.to_location_context()

        assert location.name == "Old Mill"
        assert location.visible_features == ["Broken wheel"]
        assert location.description is None

        with pytest.raises(ValidationError):
            GenerateSceneDescriptionRequest(
                session_id=1,
                location_name="Hoard",
                location_type="Cave",
                features=[f"coin {n}" for n in range(21)],
            )
