"""The AI Dungeon Master narration pipeline.

Each request runs: input moderation, prompt assembly, a provider call
with retry, output moderation, and (for DM responses) suggested-action
extraction. Unsafe player input is rejected with
``ModerationRejectedError``. Flagged model output is replaced by its
sanitized version.

Transient provider errors are retried with exponential backoff through
tenacity. Fatal errors surface at once. Cancellation, through an
``asyncio.Event`` or ordinary task cancellation, stops retries and
provider calls and surfaces as ``asyncio.CancelledError``; a cancelled
stream simply ends.
"""

from __future__ import annotations

import asyncio
import re
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing, suppress
from datetime import timedelta
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from dnd_engine.core.config import NarrationSettings
from dnd_engine.core.constants import (
    COMBAT_HEURISTIC_WINDOW,
    COMBAT_KEYWORDS,
    IN_COMBAT_FLAG,
    MAX_SUGGESTED_ACTIONS,
)
from dnd_engine.core.exceptions import ModerationRejectedError
from dnd_engine.core.logging import bound_context, get_logger
from dnd_engine.dm.moderation import ContentModerator
from dnd_engine.dm.prompts import NPC_SYSTEM_PROMPT, SCENE_SYSTEM_PROMPT, PromptAssembler
from dnd_engine.dm.provider import Completion, LLMProvider, is_retryable
from dnd_engine.dm.streaming import ChunkChannel, cancellable_sleep, run_cancellable
from dnd_engine.models.enums import Scenario, SessionMode
from dnd_engine.models.narration import (
    DmResponse,
    LocationContext,
    ModerationResult,
    NpcContext,
    SessionContext,
)


logger = get_logger(__name__)

T = TypeVar("T")

_SENTENCE_SPLIT = re.compile(r"[.!?]")


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "Transient provider error, retrying",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
        error=str(error),
    )


class NarrationOrchestrator:
    """Runs the AI Dungeon Master pipeline against an LLM provider.

    Example:
        >>> orchestrator = NarrationOrchestrator(OpenAIProvider())
        >>> response = await orchestrator.generate_response(context, "I search the altar.")
        >>> response.suggested_actions
        ['What do you want to do next']
    """

    def __init__(
        self,
        provider: LLMProvider,
        moderator: ContentModerator | None = None,
        prompts: PromptAssembler | None = None,
        settings: NarrationSettings | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            provider: Text-generation backend.
            moderator: Content moderator; defaults to default settings.
            prompts: Prompt assembler.
            settings: Retry and pricing settings.
        """
        self.provider = provider
        self.moderator = moderator or ContentModerator()
        self.prompts = prompts or PromptAssembler()
        self.settings = settings or NarrationSettings()

    # =========================================================================
    # Public Operations
    # =========================================================================

    async def generate_response(
        self,
        context: SessionContext,
        player_action: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> DmResponse:
        """Generate the DM's narration for a player action.

        Args:
            context: Session context.
            player_action: What the player does or says.
            cancel_event: Optional cancellation signal.

        Returns:
            The DM response with suggested actions, timing and cost.

        Raises:
            ModerationRejectedError: If the player input is unsafe.
            AIControlError: If the provider fails (after retries when transient).
            asyncio.CancelledError: If cancelled.
        """
        with bound_context(session_id=context.session_id):
            logger.info("Generating DM response", action_length=len(player_action))
            started = time.perf_counter()

            self._check_input(player_action)

            mode = self.determine_session_mode(context)
            scenario = self.determine_scenario(context)
            system_prompt = self.prompts.system_prompt(mode)
            user_message = self.prompts.user_message(context, scenario, player_action)

            completion = await self._complete(system_prompt, user_message, cancel_event)
            content, moderation = self._moderate_output(completion.content)

            response = DmResponse.create(
                content,
                completion.tokens_used,
                timedelta(seconds=time.perf_counter() - started),
                self.extract_suggested_actions(content),
                was_moderated=moderation.has_violations,
                cost_per_token=self.settings.cost_per_token,
            )
            logger.info(
                "DM response generated",
                scenario=str(scenario),
                tokens_used=response.tokens_used,
                response_time_ms=round(response.response_time_ms),
            )
            return response

    async def stream_response(
        self,
        context: SessionContext,
        player_action: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncIterator[str]:
        """Stream the DM's narration chunk by chunk.

        Unsafe input yields a single ``[Content blocked: ...]`` chunk. The
        complete text is moderated after streaming; violations are only
        logged because delivered chunks cannot be retracted. Transient
        errors are retried only until the first chunk arrives.

        Args:
            context: Session context.
            player_action: What the player does or says.
            cancel_event: Optional cancellation signal; the stream ends
                quietly when it fires.

        Yields:
            Text chunks in provider order.

        Raises:
            AIControlError: If the provider fails.
        """
        logger.info("Starting streamed DM response", session_id=context.session_id)

        moderation = self.moderator.moderate_input(player_action)
        if not moderation.is_safe:
            logger.warning(
                "Player input blocked during streaming",
                session_id=context.session_id,
                violations=moderation.violations,
            )
            yield f"[Content blocked: {', '.join(moderation.violations)}]"
            return

        if cancel_event is not None and cancel_event.is_set():
            return

        system_prompt = self.prompts.system_prompt(self.determine_session_mode(context))
        user_message = self.prompts.user_message(
            context, self.determine_scenario(context), player_action
        )

        channel = ChunkChannel(maxsize=self.settings.stream_buffer_size)
        # Tasks copy the current context, so producer logs carry the session.
        with bound_context(session_id=context.session_id):
            producer = asyncio.create_task(
                self._pump(channel, system_prompt, user_message, cancel_event)
            )
        watcher = (
            asyncio.create_task(self._watch_cancel(channel, producer, cancel_event))
            if cancel_event is not None
            else None
        )

        parts: list[str] = []
        try:
            async for chunk in channel:
                parts.append(chunk)
                yield chunk
        finally:
            for task in (producer, watcher):
                if task is not None and not task.done():
                    task.cancel()
            for task in (producer, watcher):
                if task is not None:
                    with suppress(asyncio.CancelledError):
                        await task

        if channel.cancelled:
            logger.info("Streamed DM response cancelled", session_id=context.session_id)
            return

        full_text = "".join(parts)
        output = self.moderator.moderate_output(full_text)
        if output.has_violations:
            logger.warning(
                "Streamed LLM output contained violations",
                session_id=context.session_id,
                violations=output.violations,
            )
        logger.info(
            "Streamed DM response completed",
            session_id=context.session_id,
            length=len(full_text),
        )

    async def generate_npc_dialogue(
        self,
        context: SessionContext,
        npc: NpcContext,
        player_message: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> DmResponse:
        """Generate an NPC's in-character reply.

        Args:
            context: Session context.
            npc: The NPC being addressed.
            player_message: What the player said.
            cancel_event: Optional cancellation signal.

        Returns:
            The NPC's reply.

        Raises:
            ModerationRejectedError: If the player message is unsafe.
            AIControlError: If the provider fails.
            asyncio.CancelledError: If cancelled.
        """
        with bound_context(session_id=context.session_id):
            logger.info("Generating NPC dialogue", npc=npc.name)
            started = time.perf_counter()

            self._check_input(player_message)

            completion = await self._complete(
                NPC_SYSTEM_PROMPT,
                self.prompts.npc_prompt(npc, player_message),
                cancel_event,
            )
            return self._secondary_response(completion, started, kind="npc_dialogue")

    async def describe_scene(
        self,
        context: SessionContext,
        location: LocationContext,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> DmResponse:
        """Describe a location.

        There is no player text to screen, so only the output is moderated.

        Args:
            context: Session context.
            location: The location to describe.
            cancel_event: Optional cancellation signal.

        Returns:
            The scene description.

        Raises:
            AIControlError: If the provider fails.
            asyncio.CancelledError: If cancelled.
        """
        with bound_context(session_id=context.session_id):
            logger.info("Generating scene description", location=location.name)
            started = time.perf_counter()

            completion = await self._complete(
                SCENE_SYSTEM_PROMPT,
                self.prompts.scene_prompt(location),
                cancel_event,
            )
            return self._secondary_response(completion, started, kind="scene_description")

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def determine_session_mode(context: SessionContext) -> SessionMode:
        """Pick the session mode: explicit if set, else solo for a party of one.

        Args:
            context: Session context.

        Returns:
            The session mode.
        """
        if context.mode is not None:
            return context.mode
        return SessionMode.SOLO if context.character_count == 1 else SessionMode.MULTIPLAYER

    @staticmethod
    def determine_scenario(context: SessionContext) -> Scenario:
        """Decide whether the party is fighting.

        A boolean ``InCombat`` world flag wins. Without one, the last few
        messages are scanned for combat keywords.

        Args:
            context: Session context.

        Returns:
            Combat or exploration.
        """
        flag = context.get_world_flag(IN_COMBAT_FLAG)
        if isinstance(flag, bool):
            return Scenario.COMBAT if flag else Scenario.EXPLORATION

        recent = " ".join(
            message.content.lower()
            for message in context.recent_messages[-COMBAT_HEURISTIC_WINDOW:]
        )
        if any(keyword in recent for keyword in COMBAT_KEYWORDS):
            return Scenario.COMBAT
        return Scenario.EXPLORATION

    @staticmethod
    def extract_suggested_actions(content: str) -> list[str]:
        """Pull up to three player prompts out of a response.

        Keeps sentences that mention "you" together with "do", "want" or
        "could" (case-insensitive).

        Args:
            content: DM response text.

        Returns:
            The suggested actions, in order.
        """
        suggestions: list[str] = []
        for sentence in _SENTENCE_SPLIT.split(content):
            trimmed = sentence.strip()
            lowered = trimmed.lower()
            if "you" in lowered and any(word in lowered for word in ("do", "want", "could")):
                suggestions.append(trimmed)
                if len(suggestions) >= MAX_SUGGESTED_ACTIONS:
                    break
        return suggestions

    def _check_input(self, text: str) -> None:
        moderation = self.moderator.moderate_input(text)
        if not moderation.is_safe:
            logger.warning("Player input blocked by moderation", violations=moderation.violations)
            raise ModerationRejectedError(moderation.violations)

    def _moderate_output(self, content: str) -> tuple[str, ModerationResult]:
        moderation = self.moderator.moderate_output(content)
        if moderation.has_violations:
            logger.warning("LLM output sanitized", violations=moderation.violations)
        if moderation.was_sanitized and moderation.sanitized_content is not None:
            return moderation.sanitized_content, moderation
        return content, moderation

    def _secondary_response(self, completion: Completion, started: float, *, kind: str) -> DmResponse:
        content, moderation = self._moderate_output(completion.content)
        response = DmResponse.create(
            content,
            completion.tokens_used,
            timedelta(seconds=time.perf_counter() - started),
            was_moderated=moderation.has_violations,
            cost_per_token=self.settings.cost_per_token,
        )
        logger.info(
            "Narration generated",
            kind=kind,
            tokens_used=response.tokens_used,
            response_time_ms=round(response.response_time_ms),
        )
        return response

    def _retrying(
        self,
        cancel_event: asyncio.Event | None,
        *,
        retry_predicate: Callable[[BaseException], bool] = is_retryable,
    ) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(self.settings.max_retries + 1),
            wait=wait_exponential(
                multiplier=self.settings.retry_base_delay_seconds,
                max=self.settings.retry_max_delay_seconds,
            ),
            retry=retry_if_exception(retry_predicate),
            sleep=cancellable_sleep(cancel_event),
            before_sleep=_log_retry,
            reraise=True,
        )

    async def _complete(
        self,
        system_prompt: str,
        user_message: str,
        cancel_event: asyncio.Event | None,
    ) -> Completion:
        async def attempt() -> Completion:
            return await run_cancellable(
                self.provider.complete(system_prompt, user_message),
                cancel_event,
            )

        return await self._call_with_retry(attempt, cancel_event)

    async def _call_with_retry(
        self,
        fn: Callable[[], Awaitable[T]],
        cancel_event: asyncio.Event | None,
    ) -> T:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError()
        return await self._retrying(cancel_event)(fn)

    async def _pump(
        self,
        channel: ChunkChannel,
        system_prompt: str,
        user_message: str,
        cancel_event: asyncio.Event | None,
    ) -> None:
        delivered = False

        async def attempt() -> None:
            nonlocal delivered
            stream = self.provider.stream_complete(system_prompt, user_message)
            async with aclosing(stream):
                async for fragment in stream:
                    delivered = True
                    if not await channel.send(fragment):
                        return

        def retry_before_first_chunk(exc: BaseException) -> bool:
            return not delivered and is_retryable(exc)

        try:
            await self._retrying(cancel_event, retry_predicate=retry_before_first_chunk)(attempt)
        except asyncio.CancelledError:
            channel.cancel()
            raise
        except Exception as exc:
            logger.error("Streaming provider call failed", error=str(exc))
            await channel.fail(exc)
        else:
            await channel.close()

    @staticmethod
    async def _watch_cancel(
        channel: ChunkChannel,
        producer: asyncio.Task[None],
        cancel_event: asyncio.Event,
    ) -> None:
        await cancel_event.wait()
        channel.cancel()
        producer.cancel()


__all__ = [
    "NarrationOrchestrator",
]
