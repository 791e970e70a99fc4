"""Prompt assembly for the AI Dungeon Master.

Every method is a pure function of its arguments: the same context always
yields the same prompt text.
"""

from __future__ import annotations

from dnd_engine.core.constants import CONTEXT_MESSAGE_TAIL
from dnd_engine.models.character import Character
from dnd_engine.models.enums import Scenario, SessionMode
from dnd_engine.models.narration import LocationContext, NpcContext, SessionContext


# =============================================================================
# System Prompts
# =============================================================================


BASE_SYSTEM_PROMPT = """You are an expert Dungeon Master for a Dungeons & Dragons 5th Edition game.
You create immersive, engaging narratives while following D&D rules accurately.

Guidelines:
- Describe scenes vividly using all five senses
- Give players meaningful choices and consequences
- Never control player characters' actions or thoughts
- Maintain consistency with established facts
- Use appropriate D&D terminology
- Keep responses concise (2-3 paragraphs maximum)
- End with a clear question or prompt for player action"""

SOLO_GUIDANCE = """This is a solo adventure. You should:
- Focus deeply on the single player character's experience
- Provide more detailed descriptions and internal moments
- Adjust difficulty to maintain challenge without overwhelming"""

MULTIPLAYER_GUIDANCE = """This is a multiplayer adventure. You should:
- Give each player character opportunities to shine
- Encourage party cooperation and teamwork
- Balance attention across all characters
- Create challenges that require different skills"""

NPC_SYSTEM_PROMPT = (
    "You are a skilled actor playing an NPC in a D&D game. "
    "Stay in character and respond naturally to the player."
)

SCENE_SYSTEM_PROMPT = (
    "You are an expert at creating vivid, immersive scene descriptions for D&D games. "
    "Paint a picture with words that engages all the senses."
)

NPC_GUIDELINES = """Guidelines:
- Stay in character at all times
- Speak with a distinct voice matching your personality
- React realistically to what the player says
- Keep responses conversational (1-2 paragraphs)
- Don't break the fourth wall or reference game mechanics"""

SCENE_GUIDELINES = """Guidelines:
- Create a vivid, immersive description (2-3 paragraphs)
- Engage multiple senses (sight, sound, smell, touch)
- Establish atmosphere and mood
- Highlight interesting details for player exploration
- Don't dictate player actions or feelings"""


def _summary(character: Character) -> str:
    return f"{character.name} (Level {character.level} {character.character_class.display_name})"


def _vitals(character: Character) -> str:
    return f"HP: {character.hit_points}/{character.max_hit_points}, AC: {character.armor_class}"


class PromptAssembler:
    """Builds system and user prompts from session context.

    Example:
        >>> assembler = PromptAssembler()
        >>> "solo adventure" in assembler.system_prompt(SessionMode.SOLO)
        True
    """

    def __init__(self, message_tail: int = CONTEXT_MESSAGE_TAIL) -> None:
        """Initialize the assembler.

        Args:
            message_tail: Most recent messages included in the context block.
        """
        self.message_tail = message_tail

    def system_prompt(self, mode: SessionMode) -> str:
        """Build the Dungeon Master system prompt for a session mode.

        Args:
            mode: Solo or multiplayer.

        Returns:
            The system prompt.
        """
        guidance = SOLO_GUIDANCE if mode is SessionMode.SOLO else MULTIPLAYER_GUIDANCE
        return f"{BASE_SYSTEM_PROMPT}\n\n{guidance}\n"

    def combat_prompt(self, context: SessionContext) -> str:
        """Build the supplemental prompt for a fight."""
        lines = [
            "COMBAT SCENARIO",
            "The party is currently in combat. Narrate the action dramatically.",
            "",
        ]
        if context.active_characters:
            lines.append("Active Characters:")
            for character in context.active_characters:
                lines.append(f"- {_summary(character)}")
                lines.append(f"  {_vitals(character)}")
            lines.append("")

        if context.current_scene:
            lines.append(f"Combat Location: {context.current_scene}")
            lines.append("")

        lines.append("Describe combat outcomes, environmental effects, and tactical options.")
        lines.append("Keep the action moving and exciting!")
        return "\n".join(lines) + "\n"

    def exploration_prompt(self, context: SessionContext) -> str:
        """Build the supplemental prompt for exploration."""
        lines = [
            "EXPLORATION SCENARIO",
            "The party is exploring and discovering their surroundings.",
            "",
        ]
        if context.current_scene:
            lines.append(f"Current Location: {context.current_scene}")
            lines.append("")

        if context.active_characters:
            lines.append("Party Members:")
            lines.extend(f"- {_summary(character)}" for character in context.active_characters)
            lines.append("")

        lines.append("Describe the environment in vivid detail.")
        lines.append("Include interesting points of interaction and potential discoveries.")
        lines.append("Hint at dangers or opportunities without revealing everything.")
        return "\n".join(lines) + "\n"

    def scenario_prompt(self, context: SessionContext, scenario: Scenario) -> str:
        """Build the supplemental prompt for a scenario.

        Args:
            context: Session context.
            scenario: Combat or exploration.

        Returns:
            The matching supplemental prompt.
        """
        if scenario is Scenario.COMBAT:
            return self.combat_prompt(context)
        return self.exploration_prompt(context)

    def npc_prompt(self, npc: NpcContext, player_message: str) -> str:
        """Build the user prompt for an NPC's reply.

        Args:
            npc: The NPC being addressed.
            player_message: What the player said.

        Returns:
            The NPC prompt.
        """
        lines = [
            f"You are roleplaying as {npc.name}, an NPC in a D&D game.",
            "",
            f"Personality: {npc.personality_traits}",
        ]
        if npc.has_occupation:
            lines.append(f"Occupation: {npc.occupation}")
        if npc.has_mood:
            lines.append(f"Current Mood: {npc.current_mood}")

        lines.append("")
        lines.append(NPC_GUIDELINES)
        lines.append("")
        lines.append(f'The player says: "{player_message}"')
        lines.append("")
        lines.append("Respond as this NPC:")
        return "\n".join(lines) + "\n"

    def scene_prompt(self, location: LocationContext) -> str:
        """Build the user prompt for a location description.

        Args:
            location: The location to describe.

        Returns:
            The scene prompt.
        """
        lines = [
            f"Describe the location: {location.name}",
            f"Type: {location.location_type}",
            "",
        ]
        if location.has_description:
            lines.append(f"Background: {location.description}")
            lines.append("")

        if location.has_features:
            lines.append("Notable Features:")
            lines.extend(f"- {feature}" for feature in location.visible_features)
            lines.append("")

        if location.has_npcs:
            lines.append("NPCs Present:")
            lines.extend(f"- {npc_name}" for npc_name in location.present_npcs)
            lines.append("")

        lines.append(SCENE_GUIDELINES)
        return "\n".join(lines) + "\n"

    def format_context(self, context: SessionContext) -> str:
        """Render the running game context as a single block.

        Includes the scene, the party roster, world flags and the last few
        messages tagged by speaker.

        Args:
            context: Session context.

        Returns:
            The context block.
        """
        lines = ["=== GAME CONTEXT ===", ""]

        if context.current_scene:
            lines.append(f"Current Scene: {context.current_scene}")
            lines.append("")

        if context.active_characters:
            lines.append("Party:")
            for character in context.active_characters:
                lines.append(
                    f"- {character.name}: Level {character.level} "
                    f"{character.character_class.display_name}"
                )
                lines.append(f"  {_vitals(character)}")
                if character.skills:
                    lines.append(f"  Proficient Skills: {', '.join(character.skills)}")
            lines.append("")

        if context.world_flags:
            lines.append("Important Story Flags:")
            lines.extend(f"- {key}: {value}" for key, value in context.world_flags.items())
            lines.append("")

        if context.recent_messages and self.message_tail > 0:
            lines.append("Recent Events:")
            for message in context.recent_messages[-self.message_tail:]:
                lines.append(f"[{message.role.label}] {message.content}")
            lines.append("")

        lines.append("=== END CONTEXT ===")
        return "\n".join(lines) + "\n"

    def user_message(self, context: SessionContext, scenario: Scenario, player_action: str) -> str:
        """Build the full user-turn prompt for a player action.

        Args:
            context: Session context.
            scenario: Combat or exploration.
            player_action: The player's (already moderated) action.

        Returns:
            Context block, scenario prompt and the player action.
        """
        return (
            f"{self.format_context(context)}\n"
            f"{self.scenario_prompt(context, scenario)}\n"
            f"=== PLAYER ACTION ===\n"
            f"{player_action}"
        )


__all__ = [
    "BASE_SYSTEM_PROMPT",
    "NPC_SYSTEM_PROMPT",
    "SCENE_SYSTEM_PROMPT",
    "PromptAssembler",
]
