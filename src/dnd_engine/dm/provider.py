"""LLM provider port and the OpenAI adapter.

The narration pipeline talks to language models only through the
``LLMProvider`` protocol. Adapters translate SDK failures into the
``AIControlError`` taxonomy so the pipeline can tell transient errors
(retried) from fatal ones (surfaced immediately). Adapters never retry
themselves.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from dnd_engine.core.config import LLMSettings
from dnd_engine.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIControlError,
    AIRateLimitError,
    AIRequestError,
    AIResponseError,
    AIServiceUnavailableError,
)
from dnd_engine.core.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class Completion:
    """A single-shot completion.

    Attributes:
        content: Generated text.
        tokens_used: Total tokens billed for the call.
    """

    content: str
    tokens_used: int = 0


@runtime_checkable
class LLMProvider(Protocol):
    """Port for text-generation backends."""

    @property
    def provider_name(self) -> str: ...

    @property
    def model_name(self) -> str: ...

    async def complete(self, system_prompt: str, user_message: str) -> Completion:
        """Generate a full response.

        Raises:
            AIControlError: On provider failure, with ``retryable`` set for
                transient errors.
        """
        ...

    def stream_complete(
        self, system_prompt: str, user_message: str
    ) -> AsyncGenerator[str, None]:
        """Generate a response as text fragments, in order.

        The generator is closed early when the consumer stops reading.

        Raises:
            AIControlError: On provider failure, with ``retryable`` set for
                transient errors.
        """
        ...


def is_retryable(exc: BaseException) -> bool:
    """Check whether a failure is worth retrying.

    Args:
        exc: The raised exception.

    Returns:
        True only for transient provider errors.
    """
    return isinstance(exc, AIControlError) and exc.retryable


def translate_openai_error(exc: Exception, *, model: str, provider: str = "openai") -> AIControlError:
    """Map an OpenAI SDK exception onto the provider error taxonomy.

    Rate limits, connection failures, timeouts and 5xx responses become
    transient errors. 401/403 become authentication errors and any other
    4xx a request error.

    Args:
        exc: Exception raised by the SDK.
        model: Model that was called.
        provider: Provider name for error context.

    Returns:
        The translated error.
    """
    from openai import APIConnectionError, APIStatusError, RateLimitError

    if isinstance(exc, AIControlError):
        return exc

    if isinstance(exc, RateLimitError):
        retry_after = _retry_after_seconds(exc)
        return AIRateLimitError(
            f"Rate limit exceeded: {exc}",
            retry_after_seconds=retry_after,
            model=model,
            provider=provider,
        )

    if isinstance(exc, APIConnectionError):
        return AIConnectionError(
            f"Failed to connect to AI provider: {exc}",
            model=model,
            provider=provider,
        )

    if isinstance(exc, APIStatusError):
        status = exc.status_code
        details = {"status_code": status}
        if status == 429:
            return AIRateLimitError(
                f"Rate limit exceeded: {exc}",
                retry_after_seconds=_retry_after_seconds(exc),
                model=model,
                provider=provider,
                details=details,
            )
        if status >= 500:
            return AIServiceUnavailableError(
                f"AI provider unavailable: {exc}",
                model=model,
                provider=provider,
                details=details,
            )
        if status in (401, 403):
            return AIAuthenticationError(
                f"AI provider rejected credentials: {exc}",
                model=model,
                provider=provider,
                details=details,
            )
        return AIRequestError(
            f"AI provider rejected request: {exc}",
            model=model,
            provider=provider,
            details=details,
        )

    return AIResponseError(
        f"AI request failed: {exc}",
        model=model,
        provider=provider,
    )


def _retry_after_seconds(exc: Any) -> float | None:
    response = getattr(exc, "response", None)
    if response is None:
        return None
    value = response.headers.get("retry-after")
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


class OpenAIProvider:
    """LLMProvider backed by the OpenAI chat completions API.

    The SDK's built-in retries are disabled; retrying is the narration
    pipeline's job.

    Example:
        >>> provider = OpenAIProvider(LLMSettings(api_key="sk-..."))
        >>> completion = await provider.complete("You are a DM.", "I open the door.")
    """

    provider_name = "openai"

    def __init__(self, settings: LLMSettings | None = None, *, client: Any = None) -> None:
        """Initialize the provider.

        Args:
            settings: LLM settings; defaults are used when omitted.
            client: Pre-built ``AsyncOpenAI`` client, mainly for tests.
        """
        self.settings = settings or LLMSettings()
        self._client: Any = client

        logger.info(
            "OpenAIProvider initialized",
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
            temperature=self.settings.temperature,
        )

    @property
    def model_name(self) -> str:
        return self.settings.model

    def _get_client(self) -> Any:
        """Get or create the async OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as exc:
                raise AIRequestError(
                    "openai package not installed",
                    model=self.model_name,
                    provider=self.provider_name,
                ) from exc

            api_key = self.settings.api_key
            self._client = AsyncOpenAI(
                api_key=api_key.get_secret_value() if api_key else None,
                base_url=self.settings.base_url,
                timeout=self.settings.timeout_seconds,
                max_retries=0,
            )
        return self._client

    def _messages(self, system_prompt: str, user_message: str) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_message},
        ]

    async def complete(self, system_prompt: str, user_message: str) -> Completion:
        """Generate a full response.

        Args:
            system_prompt: Instructions for the model.
            user_message: The user turn.

        Returns:
            The completion text and token usage.

        Raises:
            AIControlError: Translated provider failure.
        """
        client = self._get_client()
        logger.debug("Requesting completion", model=self.model_name)

        try:
            response = await client.chat.completions.create(
                model=self.model_name,
                messages=self._messages(system_prompt, user_message),
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
            )
        except Exception as exc:
            raise translate_openai_error(exc, model=self.model_name) from exc

        if not response.choices:
            raise AIResponseError(
                "AI provider returned no choices",
                model=self.model_name,
                provider=self.provider_name,
            )

        content = response.choices[0].message.content or ""
        tokens_used = response.usage.total_tokens if response.usage else 0

        logger.info("Completion received", model=self.model_name, tokens_used=tokens_used)
        return Completion(content=content, tokens_used=tokens_used)

    async def stream_complete(
        self, system_prompt: str, user_message: str
    ) -> AsyncGenerator[str, None]:
        """Generate a response as text fragments.

        Args:
            system_prompt: Instructions for the model.
            user_message: The user turn.

        Yields:
            Non-empty text fragments in the order received.

        Raises:
            AIControlError: Translated provider failure.
        """
        client = self._get_client()
        logger.debug("Requesting streamed completion", model=self.model_name)

        try:
            stream = await client.chat.completions.create(
                model=self.model_name,
                messages=self._messages(system_prompt, user_message),
                max_tokens=self.settings.max_tokens,
                temperature=self.settings.temperature,
                stream=True,
            )
            async for chunk in stream:
                if not chunk.choices:
                    continue
                fragment = chunk.choices[0].delta.content
                if fragment:
                    yield fragment
        except AIControlError:
            raise
        except Exception as exc:
            raise translate_openai_error(exc, model=self.model_name) from exc


__all__ = [
    "Completion",
    "LLMProvider",
    "OpenAIProvider",
    "is_retryable",
    "translate_openai_error",
]
