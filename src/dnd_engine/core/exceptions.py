"""Custom exception hierarchy for the D&D rules and narration engine.

Every error raised by the engine inherits from DndEngineError so the calling
layer (web handlers, hubs) can catch one type at its boundary while still
dispatching on the category: input validation, entity not found, moderation
rejection, or provider failure. Cancellation is never wrapped here; it
surfaces as ``asyncio.CancelledError``.

Example:
    >>> from dnd_engine.core.exceptions import DiceFormulaError
    >>> raise DiceFormulaError("Invalid dice formula", expression="2x6")
"""

from __future__ import annotations

from typing import Any, ClassVar


class DndEngineError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndEngineError):
    """Raised when engine configuration is invalid or cannot be loaded."""

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndEngineError):
    """Raised when caller-supplied input fails validation.

    Never retried; the caller should fix the request.
    """

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(DndEngineError):
    """Base exception for dice, rules and combat errors."""


class DiceRollError(GameEngineError):
    """Raised when a dice roll cannot be performed."""

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression is not None:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class DiceFormulaError(DiceRollError):
    """Raised when a dice formula does not match ``NdM``, ``NdM+K`` or ``NdM-K``."""


class EntityNotFoundError(GameEngineError):
    """Raised when a character or session id cannot be resolved.

    Callers map this to a 404-style response.
    """

    entity_type: ClassVar[str] = "entity"

    def __init__(
        self,
        entity_id: int | str,
        *,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize not-found error.

        Args:
            entity_id: The identifier that could not be resolved.
            message: Optional override for the default message.
            details: Optional dictionary containing additional error context.
        """
        self.entity_id = entity_id
        combined_details = details or {}
        combined_details["entity_type"] = self.entity_type
        combined_details["entity_id"] = entity_id
        super().__init__(
            message or f"{self.entity_type.capitalize()} {entity_id} not found",
            details=combined_details,
        )


class CharacterNotFoundError(EntityNotFoundError):
    """Raised when a character id is unknown."""

    entity_type = "character"


class SessionNotFoundError(EntityNotFoundError):
    """Raised when a session id is unknown."""

    entity_type = "session"


# =============================================================================
# Moderation Exceptions
# =============================================================================


class ModerationError(DndEngineError):
    """Base exception for content moderation outcomes."""


class ModerationRejectedError(ModerationError):
    """Raised when player input is rejected by moderation.

    This is a rejection, not a system failure. ``violations`` lists why, so
    the UI can explain the refusal.
    """

    def __init__(
        self,
        violations: list[str],
        *,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the rejection with its violation list.

        Args:
            violations: Human-readable violation categories.
            message: Optional override for the default message.
            details: Optional dictionary containing additional error context.
        """
        self.violations = list(violations)
        combined_details = details or {}
        combined_details["violations"] = self.violations
        super().__init__(
            message or f"Content moderation failed: {', '.join(self.violations)}",
            details=combined_details,
        )


# =============================================================================
# AI Control Domain Exceptions
# =============================================================================


class AIControlError(DndEngineError):
    """Base exception for LLM provider errors.

    ``retryable`` tells the narration pipeline whether the failure is
    transient. Only retryable errors are retried.
    """

    retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize AI control error with model context.

        Args:
            message: Human-readable error description.
            model: Name of the AI model involved.
            provider: Name of the AI provider (e.g., 'openai').
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if model:
            combined_details["model"] = model
        if provider:
            combined_details["provider"] = provider
        super().__init__(message, details=combined_details)


class AITransientError(AIControlError):
    """A provider failure that may succeed if retried."""

    retryable = True


class AIRateLimitError(AITransientError):
    """Raised when provider rate limits are exceeded."""

    def __init__(
        self,
        message: str,
        *,
        retry_after_seconds: float | None = None,
        model: str | None = None,
        provider: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize rate limit error with retry context.

        Args:
            message: Human-readable error description.
            retry_after_seconds: Seconds to wait before retrying.
            model: Name of the AI model involved.
            provider: Name of the AI provider.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if retry_after_seconds is not None:
            combined_details["retry_after_seconds"] = retry_after_seconds
        super().__init__(message, model=model, provider=provider, details=combined_details)


class AIConnectionError(AITransientError):
    """Raised when the provider cannot be reached or the request timed out."""


class AIServiceUnavailableError(AITransientError):
    """Raised on provider overload or gateway errors (5xx)."""


class AIFatalError(AIControlError):
    """A provider failure that retrying cannot fix."""


class AIAuthenticationError(AIFatalError):
    """Raised when the provider rejects the credentials."""


class AIRequestError(AIFatalError):
    """Raised when the provider rejects the request as malformed."""


class AIResponseError(AIFatalError):
    """Raised when a provider response cannot be interpreted."""


__all__ = [
    # Base exception
    "DndEngineError",
    # Configuration exceptions
    "ConfigurationError",
    "ValidationError",
    # Game engine exceptions
    "GameEngineError",
    "DiceRollError",
    "DiceFormulaError",
    "EntityNotFoundError",
    "CharacterNotFoundError",
    "SessionNotFoundError",
    # Moderation exceptions
    "ModerationError",
    "ModerationRejectedError",
    # AI control exceptions
    "AIControlError",
    "AITransientError",
    "AIRateLimitError",
    "AIConnectionError",
    "AIServiceUnavailableError",
    "AIFatalError",
    "AIAuthenticationError",
    "AIRequestError",
    "AIResponseError",
]
