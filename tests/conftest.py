"""Pytest configuration and shared fixtures.

This module provides common fixtures and test doubles for the D&D rules
and narration engine test suite: a scripted random source for forcing
dice, in-memory repositories and a scripted LLM provider.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable
from typing import TYPE_CHECKING

import pytest

from dnd_engine.core.config import ModerationSettings, NarrationSettings
from dnd_engine.dm.moderation import ContentModerator
from dnd_engine.dm.orchestrator import NarrationOrchestrator
from dnd_engine.dm.provider import Completion
from dnd_engine.engine.combat import CombatOrchestrator
from dnd_engine.engine.dice import DiceRoller
from dnd_engine.engine.rules import RulesEngine
from dnd_engine.models.character import (
    AbilityScores,
    Character,
    Message,
    Session,
    SessionParticipant,
)
from dnd_engine.models.enums import CharacterClass, MessageRole
from dnd_engine.models.narration import SessionContext


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Test Doubles
# =============================================================================


class ScriptedRandom:
    """Random source that returns pre-scripted values in order."""

    def __init__(self, values: Iterable[int] = ()) -> None:
        self.values = list(values)
        self.calls: list[tuple[int, int]] = []

    def push(self, *values: int) -> None:
        self.values.extend(values)

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if not self.values:
            raise AssertionError(f"ScriptedRandom exhausted (randint({a}, {b}))")
        value = self.values.pop(0)
        if not a <= value <= b:
            raise AssertionError(f"Scripted value {value} outside [{a}, {b}]")
        return value


class InMemoryCharacterRepository:
    """CharacterRepository backed by a dict."""

    def __init__(self, characters: Iterable[Character] = ()) -> None:
        self.characters = {c.id: c for c in characters}
        self.updates: list[tuple[int, int]] = []

    def add(self, character: Character) -> None:
        self.characters[character.id] = character

    def get_character(self, character_id: int) -> Character | None:
        return self.characters.get(character_id)

    def update_character(self, character: Character) -> None:
        self.updates.append((character.id, character.hit_points))
        self.characters[character.id] = character


class InMemorySessionRepository:
    """SessionRepository backed by a dict."""

    def __init__(self, sessions: Iterable[Session] = ()) -> None:
        self.sessions = {s.id: s for s in sessions}

    def add(self, session: Session) -> None:
        self.sessions[session.id] = session

    def get_session(self, session_id: int) -> Session | None:
        return self.sessions.get(session_id)


class ScriptedProvider:
    """LLMProvider that replays scripted outcomes.

    Each ``complete`` call consumes one entry of ``completions``: a
    Completion to return or an exception to raise. Each ``stream_complete``
    call consumes one entry of ``streams``: a list of chunks, optionally
    ending with an exception to raise after them.
    """

    provider_name = "scripted"
    model_name = "scripted-model"

    def __init__(
        self,
        completions: Iterable[Completion | BaseException] = (),
        streams: Iterable[list[str | BaseException]] = (),
    ) -> None:
        self.completions = list(completions)
        self.streams = list(streams)
        self.calls: list[tuple[str, str]] = []
        self.stream_calls: list[tuple[str, str]] = []
        self.closed_streams = 0
        self.hang = asyncio.Event()
        self.hang_after: int | None = None
        self.started = asyncio.Event()

    async def complete(self, system_prompt: str, user_message: str) -> Completion:
        self.calls.append((system_prompt, user_message))
        self.started.set()
        if not self.completions:
            raise AssertionError("ScriptedProvider has no completion left")
        outcome = self.completions.pop(0)
        if self.hang_after is not None:
            await self.hang.wait()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def stream_complete(self, system_prompt: str, user_message: str) -> AsyncIterator[str]:
        self.stream_calls.append((system_prompt, user_message))
        if not self.streams:
            raise AssertionError("ScriptedProvider has no stream left")
        script = self.streams.pop(0)
        try:
            for index, item in enumerate(script):
                if self.hang_after is not None and index == self.hang_after:
                    self.started.set()
                    await self.hang.wait()
                if isinstance(item, BaseException):
                    raise item
                yield item
        finally:
            self.closed_streams += 1


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_engine.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def mock_env_vars(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set up mock environment variables for testing.

    Returns:
        Dictionary of environment variables that were set.
    """
    env_vars = {
        "DND_ENGINE_LLM_API_KEY": "test-openai-key",
        "DND_ENGINE_DEBUG": "true",
        "DND_ENGINE_LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def narration_settings() -> NarrationSettings:
    """Narration settings with zero backoff so retries run instantly."""
    return NarrationSettings(
        max_retries=3,
        retry_base_delay_seconds=0,
        retry_max_delay_seconds=0,
    )


# =============================================================================
# Dice & Rules Fixtures
# =============================================================================


@pytest.fixture
def scripted_rng() -> ScriptedRandom:
    """Provide an empty scripted random source; push values per test."""
    return ScriptedRandom()


@pytest.fixture
def scripted_roller(scripted_rng: ScriptedRandom) -> DiceRoller:
    """Provide a DiceRoller driven by the scripted random source."""
    return DiceRoller(rng=scripted_rng)


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Provide a DiceRoller using the system CSPRNG."""
    return DiceRoller()


@pytest.fixture
def rules(scripted_roller: DiceRoller) -> RulesEngine:
    """Provide a RulesEngine with forced dice."""
    return RulesEngine(scripted_roller)


# =============================================================================
# Character & Session Fixtures
# =============================================================================


@pytest.fixture
def fighter() -> Character:
    """Provide a level 5 fighter (STR 16, DEX 14, AC 16, 25/30 HP)."""
    return Character(
        id=1,
        player_id=10,
        name="Thorin",
        character_class=CharacterClass.FIGHTER,
        level=5,
        ability_scores=AbilityScores(
            strength=16,
            dexterity=14,
            constitution=15,
            intelligence=10,
            wisdom=12,
            charisma=8,
        ),
        hit_points=25,
        max_hit_points=30,
        armor_class=16,
        skills=["Athletics", "Perception"],
    )


@pytest.fixture
def rogue() -> Character:
    """Provide a level 3 rogue (DEX 18, AC 13, 18/18 HP)."""
    return Character(
        id=2,
        player_id=11,
        name="Vex",
        character_class=CharacterClass.ROGUE,
        level=3,
        ability_scores=AbilityScores(strength=10, dexterity=18, wisdom=13),
        hit_points=18,
        max_hit_points=18,
        armor_class=13,
        skills=["Stealth"],
    )


@pytest.fixture
def session(fighter: Character, rogue: Character) -> Session:
    """Provide a session with both characters active."""
    return Session(
        id=7,
        title="Lost Mines",
        current_scene="A collapsed mine entrance",
        participants=[
            SessionParticipant(character_id=fighter.id),
            SessionParticipant(character_id=rogue.id),
        ],
    )


@pytest.fixture
def character_repo(fighter: Character, rogue: Character) -> InMemoryCharacterRepository:
    """Provide a character repository holding the fighter and the rogue."""
    return InMemoryCharacterRepository([fighter, rogue])


@pytest.fixture
def session_repo(session: Session) -> InMemorySessionRepository:
    """Provide a session repository holding the sample session."""
    return InMemorySessionRepository([session])


@pytest.fixture
def combat(
    character_repo: InMemoryCharacterRepository,
    session_repo: InMemorySessionRepository,
    rules: RulesEngine,
    scripted_roller: DiceRoller,
) -> CombatOrchestrator:
    """Provide a CombatOrchestrator wired to in-memory repositories."""
    return CombatOrchestrator(character_repo, session_repo, rules, scripted_roller)


# =============================================================================
# Narration Fixtures
# =============================================================================


@pytest.fixture
def messages() -> list[Message]:
    """Provide a short exploration transcript."""
    return [
        Message(session_id=7, role=MessageRole.PLAYER, content="We enter the mine."),
        Message(
            session_id=7,
            role=MessageRole.DUNGEON_MASTER,
            content="Dust hangs in the lantern light.",
        ),
        Message(session_id=7, role=MessageRole.PLAYER, content="I look for tracks."),
    ]


@pytest.fixture
def session_context(
    fighter: Character,
    rogue: Character,
    messages: list[Message],
) -> SessionContext:
    """Provide a multiplayer exploration context."""
    return SessionContext(
        session_id=7,
        recent_messages=messages,
        active_characters=[fighter, rogue],
        current_scene="A collapsed mine entrance",
    )


@pytest.fixture
def moderator() -> ContentModerator:
    """Provide a moderator with default settings."""
    return ContentModerator(ModerationSettings())


@pytest.fixture
def provider() -> ScriptedProvider:
    """Provide an empty scripted provider; script outcomes per test."""
    return ScriptedProvider()


@pytest.fixture
def orchestrator(
    provider: ScriptedProvider,
    moderator: ContentModerator,
    narration_settings: NarrationSettings,
) -> NarrationOrchestrator:
    """Provide a NarrationOrchestrator with instant retries."""
    return NarrationOrchestrator(provider, moderator, settings=narration_settings)
