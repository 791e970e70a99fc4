"""Pydantic V2 data models for the D&D rules and narration engine.

Exports:
    Enums: AbilityType, AdvantageType, CharacterClass, SessionMode,
        SessionState, MessageRole, Scenario.
    Records: AbilityScores, Character, Session, SessionParticipant, Message.
    Results: CheckResult, AttackResult, InitiativeEntry, InitiativeOrder.
    Narration: SessionContext, NpcContext, LocationContext,
        ModerationResult, DmResponse.
    Requests: GenerateDmResponseRequest, GenerateNpcDialogueRequest,
        GenerateSceneDescriptionRequest.
"""

from __future__ import annotations

from dnd_engine.models.character import (
    AbilityScores,
    Character,
    Message,
    Session,
    SessionParticipant,
    ability_modifier,
    proficiency_bonus_for_level,
)
from dnd_engine.models.combat import InitiativeEntry, InitiativeOrder
from dnd_engine.models.enums import (
    AbilityType,
    AdvantageType,
    CharacterClass,
    MessageRole,
    Scenario,
    SessionMode,
    SessionState,
)
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
from dnd_engine.models.results import AttackResult, CheckResult


__all__ = [
    # Enums
    "AbilityType",
    "AdvantageType",
    "CharacterClass",
    "SessionMode",
    "SessionState",
    "MessageRole",
    "Scenario",
    # Records
    "AbilityScores",
    "Character",
    "Session",
    "SessionParticipant",
    "Message",
    "ability_modifier",
    "proficiency_bonus_for_level",
    # Results
    "CheckResult",
    "AttackResult",
    "InitiativeEntry",
    "InitiativeOrder",
    # Narration
    "SessionContext",
    "NpcContext",
    "LocationContext",
    "ModerationResult",
    "DmResponse",
    # Requests
    "GenerateDmResponseRequest",
    "GenerateNpcDialogueRequest",
    "GenerateSceneDescriptionRequest",
]
