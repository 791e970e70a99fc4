"""Tests for Dungeon Master prompt assembly."""

from __future__ import annotations

from datetime import UTC, datetime

from dnd_engine.dm.prompts import BASE_SYSTEM_PROMPT, PromptAssembler
from dnd_engine.models.character import Character, Message
from dnd_engine.models.enums import MessageRole, Scenario, SessionMode
from dnd_engine.models.narration import LocationContext, NpcContext, SessionContext


class TestSystemPrompt:
    """Tests for the mode-dependent system prompt."""

    def test_solo(self) -> None:
        """Test solo sessions get solo guidance."""
        prompt = PromptAssembler().system_prompt(SessionMode.SOLO)

        assert prompt.startswith(BASE_SYSTEM_PROMPT)
        assert "This is a solo adventure." in prompt
        assert "multiplayer" not in prompt

    def test_multiplayer(self) -> None:
        """Test multiplayer sessions get party guidance."""
        prompt = PromptAssembler().system_prompt(SessionMode.MULTIPLAYER)

        assert "This is a multiplayer adventure." in prompt
        assert "Encourage party cooperation" in prompt


class TestScenarioPrompts:
    """Tests for combat and exploration prompts."""

    def test_combat_lists_vitals(self, session_context: SessionContext) -> None:
        """Test the combat prompt shows each character's HP and AC."""
        prompt = PromptAssembler().scenario_prompt(session_context, Scenario.COMBAT)

        assert prompt.startswith("COMBAT SCENARIO")
        assert "Active Characters:" in prompt
        assert "- Thorin (Level 5 Fighter)" in prompt
        assert "  HP: 25/30, AC: 16" in prompt
        assert "- Vex (Level 3 Rogue)" in prompt
        assert "Combat Location: A collapsed mine entrance" in prompt

    def test_exploration_lists_party(self, session_context: SessionContext) -> None:
        """Test the exploration prompt lists the party without vitals."""
        prompt = PromptAssembler().scenario_prompt(session_context, Scenario.EXPLORATION)

        assert prompt.startswith("EXPLORATION SCENARIO")
        assert "Current Location: A collapsed mine entrance" in prompt
        assert "Party Members:" in prompt
        assert "- Vex (Level 3 Rogue)" in prompt
        assert "HP:" not in prompt

    def test_sections_omitted_when_empty(self) -> None:
        """Test empty scene and party produce no headings."""
        context = SessionContext(session_id=1)
        assembler = PromptAssembler()

        combat = assembler.combat_prompt(context)
        exploration = assembler.exploration_prompt(context)

        assert "Active Characters:" not in combat
        assert "Combat Location:" not in combat
        assert "Current Location:" not in exploration
        assert "Party Members:" not in exploration


class TestNpcAndScenePrompts:
    """Tests for the NPC dialogue and scene description prompts."""

    def test_npc_prompt(self) -> None:
        """Test the NPC prompt includes persona and the quoted player line."""
        npc = NpcContext(
            name="Grimble",
            personality_traits="Grumpy but honest",
            occupation="Blacksmith",
            current_mood="Irritated",
        )

        prompt = PromptAssembler().npc_prompt(npc, "Can you fix my sword?")

        assert "You are roleplaying as Grimble, an NPC in a D&D game." in prompt
        assert "Personality: Grumpy but honest" in prompt
        assert "Occupation: Blacksmith" in prompt
        assert "Current Mood: Irritated" in prompt
        assert 'The player says: "Can you fix my sword?"' in prompt
        assert prompt.rstrip().endswith("Respond as this NPC:")

    def test_npc_prompt_optional_fields(self) -> None:
        """Test occupation and mood lines are omitted when unset."""
        prompt = PromptAssembler().npc_prompt(NpcContext(name="Stranger"), "Hello?")

        assert "Occupation:" not in prompt
        assert "Current Mood:" not in prompt

    def test_scene_prompt(self) -> None:
        """Test the scene prompt lists background, features and NPCs."""
        location = LocationContext(
            name="The Prancing Pony",
            location_type="Tavern",
            description="A busy roadside inn",
            visible_features=["Roaring hearth", "Bar counter"],
            present_npcs=["Barliman"],
        )

        prompt = PromptAssembler().scene_prompt(location)

        assert prompt.startswith("Describe the location: The Prancing Pony\nType: Tavern")
        assert "Background: A busy roadside inn" in prompt
        assert "Notable Features:\n- Roaring hearth\n- Bar counter" in prompt
        assert "NPCs Present:\n- Barliman" in prompt

    def test_scene_prompt_minimal(self) -> None:
        """Test optional scene sections are omitted."""
        prompt = PromptAssembler().scene_prompt(LocationContext(name="Cave", location_type="Cave"))

        assert "Background:" not in prompt
        assert "Notable Features:" not in prompt
        assert "NPCs Present:" not in prompt


class TestFormatContext:
    """Tests for the running game context block."""

    def test_full_context(self, fighter: Character, messages: list[Message]) -> None:
        """Test scene, party, flags and transcript all appear."""
        context = SessionContext(
            session_id=7,
            recent_messages=messages,
            active_characters=[fighter],
            current_scene="A collapsed mine entrance",
            world_flags={"MetTheDragon": True},
        )

        block = PromptAssembler().format_context(context)

        assert block.startswith("=== GAME CONTEXT ===")
        assert block.rstrip().endswith("=== END CONTEXT ===")
        assert "Current Scene: A collapsed mine entrance" in block
        assert "- Thorin: Level 5 Fighter" in block
        assert "  Proficient Skills: Athletics, Perception" in block
        assert "Important Story Flags:\n- MetTheDragon: True" in block
        assert "[PLAYER] We enter the mine." in block
        assert "[DM] Dust hangs in the lantern light." in block

    def test_only_last_messages(self) -> None:
        """Test only the most recent messages are rendered."""
        history = [
            Message(
                role=MessageRole.PLAYER,
                content=f"step {n}",
                timestamp=datetime(2024, 1, 1, 12, n, tzinfo=UTC),
            )
            for n in range(8)
        ]
        context = SessionContext(session_id=1, recent_messages=history)

        block = PromptAssembler().format_context(context)

        assert "step 2" not in block
        assert "[PLAYER] step 3" in block
        assert "[PLAYER] step 7" in block

    def test_system_message_label(self) -> None:
        """Test system messages are tagged distinctly."""
        context = SessionContext(
            session_id=1,
            recent_messages=[Message(role=MessageRole.SYSTEM, content="Round 2 begins")],
        )

        assert "[SYSTEM] Round 2 begins" in PromptAssembler().format_context(context)

    def test_empty_context(self) -> None:
        """Test an empty context renders only the frame."""
        block = PromptAssembler().format_context(SessionContext(session_id=1))

        assert block == "=== GAME CONTEXT ===\n\n=== END CONTEXT ===\n"

    def test_deterministic(self, session_context: SessionContext) -> None:
        """Test the same context always yields the same prompt."""
        assembler = PromptAssembler()

        first = assembler.user_message(session_context, Scenario.EXPLORATION, "I listen.")
        second = assembler.user_message(session_context, Scenario.EXPLORATION, "I listen.")

        assert first == second


class TestUserMessage:
    """Tests for the full user-turn prompt."""

    def test_layout(self, session_context: SessionContext) -> None:
        """Test context, scenario and action appear in order."""
        prompt = PromptAssembler().user_message(
            session_context,
            Scenario.EXPLORATION,
            "I light a torch.",
        )

        context_at = prompt.index("=== GAME CONTEXT ===")
        scenario_at = prompt.index("EXPLORATION SCENARIO")
        action_at = prompt.index("=== PLAYER ACTION ===")

        assert context_at < scenario_at < action_at
        assert prompt.endswith("=== PLAYER ACTION ===\nI light a torch.")
