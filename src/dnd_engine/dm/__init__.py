"""AI Dungeon Master: moderation, prompts, providers and narration.

Exports:
    ContentModerator: Keyword screening and sanitization.
    PromptAssembler: System and user prompt construction.
    LLMProvider, OpenAIProvider, Completion: Provider port and adapter.
    ChunkChannel: Bounded chunk stream with cancellation.
    NarrationOrchestrator: The full narration pipeline.
"""

from __future__ import annotations

from dnd_engine.dm.moderation import ContentModerator
from dnd_engine.dm.orchestrator import NarrationOrchestrator
from dnd_engine.dm.prompts import (
    BASE_SYSTEM_PROMPT,
    NPC_SYSTEM_PROMPT,
    SCENE_SYSTEM_PROMPT,
    PromptAssembler,
)
from dnd_engine.dm.provider import (
    Completion,
    LLMProvider,
    OpenAIProvider,
    is_retryable,
    translate_openai_error,
)
from dnd_engine.dm.streaming import ChunkChannel, cancellable_sleep, run_cancellable


__all__ = [
    # Moderation
    "ContentModerator",
    # Prompts
    "PromptAssembler",
    "BASE_SYSTEM_PROMPT",
    "NPC_SYSTEM_PROMPT",
    "SCENE_SYSTEM_PROMPT",
    # Providers
    "Completion",
    "LLMProvider",
    "OpenAIProvider",
    "is_retryable",
    "translate_openai_error",
    # Streaming
    "ChunkChannel",
    "run_cancellable",
    "cancellable_sleep",
    # Orchestration
    "NarrationOrchestrator",
]
