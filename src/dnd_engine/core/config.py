"""Configuration management for the D&D rules and narration engine.

Centralized configuration using pydantic-settings, supporting environment
variables, .env files, and runtime overrides. The API key is held in a
SecretStr. The engine only range-checks these values; loading them is the
host application's job.

Example:
    >>> from dnd_engine.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.moderation.max_input_length
    5000

Environment Variables:
    DND_ENGINE_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DND_ENGINE_LLM_API_KEY: API key for the LLM provider
    DND_ENGINE_LLM_MODEL: Model identifier used for narration
    DND_ENGINE_MODERATION_ENABLED: Global moderation switch
    DND_ENGINE_NARRATION_MAX_RETRIES: Retry ceiling for transient provider errors
"""

from __future__ import annotations

from decimal import Decimal
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_engine.core.constants import DEFAULT_COST_PER_TOKEN
from dnd_engine.core.exceptions import ConfigurationError


DEFAULT_NSFW_KEYWORDS = ["explicit", "nsfw", "sexual", "nude", "naked"]
DEFAULT_HARASSMENT_KEYWORDS = ["kill yourself", "kys", "hate", "racist", "slur"]


class ModerationSettings(BaseSettings):
    """Configuration for content moderation.

    Attributes:
        enabled: Global switch; when False every text is considered safe.
        block_nsfw: Screen for sexual/NSFW content.
        block_harassment: Screen for harassment and hate speech.
        max_input_length: Longest accepted player input, in characters.
        nsfw_keywords: Keywords for the NSFW category.
        harassment_keywords: Keywords for the harassment category.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_ENGINE_MODERATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Enable content moderation")
    block_nsfw: bool = Field(default=True, description="Block NSFW content")
    block_harassment: bool = Field(default=True, description="Block harassment")
    max_input_length: int = Field(
        default=5000,
        ge=1,
        le=100_000,
        description="Maximum player input length",
    )
    nsfw_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_NSFW_KEYWORDS),
        description="NSFW keyword list",
    )
    harassment_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_HARASSMENT_KEYWORDS),
        description="Harassment keyword list",
    )


class LLMSettings(BaseSettings):
    """Configuration for the LLM provider connection.

    Attributes:
        api_key: Provider API key.
        base_url: Optional override of the provider endpoint.
        model: Model identifier.
        max_tokens: Maximum completion tokens.
        temperature: Sampling temperature.
        timeout_seconds: Request timeout.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_ENGINE_LLM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: SecretStr | None = Field(default=None, description="Provider API key")
    base_url: str | None = Field(default=None, description="Provider base URL override")
    model: str = Field(default="gpt-4-turbo-preview", description="Model identifier")
    max_tokens: int = Field(default=500, ge=1, le=32_000, description="Max output tokens")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Sampling temperature")
    timeout_seconds: float = Field(default=60.0, gt=0, le=300, description="Request timeout")


class NarrationSettings(BaseSettings):
    """Configuration for the narration pipeline.

    Attributes:
        max_retries: Retries after the first attempt for transient provider errors.
        retry_base_delay_seconds: Multiplier for exponential backoff.
        retry_max_delay_seconds: Upper bound for a single backoff sleep.
        cost_per_token: Price estimate per token, in USD.
        stream_buffer_size: Chunks buffered between provider and caller.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_ENGINE_NARRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    max_retries: int = Field(default=3, ge=0, le=10, description="Maximum retry attempts")
    retry_base_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        le=60,
        description="Exponential backoff multiplier",
    )
    retry_max_delay_seconds: float = Field(
        default=16.0,
        ge=0,
        le=300,
        description="Maximum backoff sleep",
    )
    cost_per_token: Decimal = Field(
        default=Decimal(DEFAULT_COST_PER_TOKEN),
        ge=0,
        description="Estimated cost per token",
    )
    stream_buffer_size: int = Field(
        default=32,
        ge=1,
        le=1024,
        description="Streaming channel capacity",
    )

    @model_validator(mode="after")
    def validate_backoff_bounds(self) -> "NarrationSettings":
        """Ensure the backoff ceiling is not below the base delay.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If retry_max_delay_seconds < retry_base_delay_seconds.
        """
        if self.retry_max_delay_seconds < self.retry_base_delay_seconds:
            raise ConfigurationError(
                f"retry_max_delay_seconds ({self.retry_max_delay_seconds}) must not be "
                f"less than retry_base_delay_seconds ({self.retry_base_delay_seconds})",
                config_key="retry_max_delay_seconds",
            )
        return self


class GameSettings(BaseSettings):
    """Configuration for game session context.

    Attributes:
        recent_message_window: Messages kept in a SessionContext.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_ENGINE_GAME_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    recent_message_window: int = Field(
        default=20,
        ge=1,
        le=500,
        description="Recent messages kept in the session context",
    )


class Settings(BaseSettings):
    """Main engine settings aggregating all configuration domains.

    Attributes:
        app_name: Application name.
        app_version: Application version string.
        debug: Enable debug mode.
        log_level: Logging level.
        moderation: Content moderation settings.
        llm: LLM provider settings.
        narration: Narration pipeline settings.
        game: Game context settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_ENGINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="D&D Rules & Narration Engine", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    moderation: ModerationSettings = Field(default_factory=ModerationSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    narration: NarrationSettings = Field(default_factory=NarrationSettings)
    game: GameSettings = Field(default_factory=GameSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the engine settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access."""
    get_settings.cache_clear()


__all__ = [
    "DEFAULT_NSFW_KEYWORDS",
    "DEFAULT_HARASSMENT_KEYWORDS",
    "ModerationSettings",
    "LLMSettings",
    "NarrationSettings",
    "GameSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
