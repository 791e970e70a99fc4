"""Core module providing configuration, logging, and base exceptions.

Exports:
    Exceptions:
        DndEngineError: Base exception for all engine errors.
        ConfigurationError, ValidationError: Input and configuration errors.
        EntityNotFoundError: Unknown character or session ids.
        ModerationRejectedError: Player input refused by moderation.
        AIControlError: LLM provider failures (retryable or fatal).

    Configuration:
        Settings: Main settings class.
        get_settings: Get the settings singleton.
        clear_settings_cache: Force settings reload.

    Logging:
        configure_logging: Set up engine logging.
        get_logger: Get a configured logger instance.
        bound_context: Scope context to a block of log entries.
"""

from __future__ import annotations

from dnd_engine.core.config import (
    GameSettings,
    LLMSettings,
    ModerationSettings,
    NarrationSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_engine.core.exceptions import (
    AIAuthenticationError,
    AIConnectionError,
    AIControlError,
    AIFatalError,
    AIRateLimitError,
    AIRequestError,
    AIResponseError,
    AIServiceUnavailableError,
    AITransientError,
    CharacterNotFoundError,
    ConfigurationError,
    DiceFormulaError,
    DiceRollError,
    DndEngineError,
    EntityNotFoundError,
    GameEngineError,
    ModerationError,
    ModerationRejectedError,
    SessionNotFoundError,
    ValidationError,
)
from dnd_engine.core.logging import (
    bound_context,
    configure_logging,
    get_logger,
)


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
    # Configuration
    "Settings",
    "ModerationSettings",
    "LLMSettings",
    "NarrationSettings",
    "GameSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "get_logger",
    "bound_context",
]
