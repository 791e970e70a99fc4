"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

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


class TestDndEngineError:
    """Tests for the base DndEngineError exception."""

    def test_basic_message(self) -> None:
        """Test exception with basic message."""
        exc = DndEngineError("Test error message")
        assert exc.message == "Test error message"
        assert exc.details == {}
        assert str(exc) == "Test error message"

    def test_with_details(self) -> None:
        """Test exception with additional details."""
        exc = DndEngineError("Test error", details={"key": "value", "count": 42})
        assert exc.details == {"key": "value", "count": 42}
        assert "key='value'" in str(exc)
        assert "count=42" in str(exc)

    def test_repr(self) -> None:
        """Test exception repr output."""
        repr_str = repr(DndEngineError("Test", details={"x": 1}))
        assert "DndEngineError" in repr_str
        assert "Test" in repr_str


class TestInputExceptions:
    """Tests for configuration and validation exceptions."""

    def test_configuration_error_key(self) -> None:
        """Test ConfigurationError records the config key."""
        exc = ConfigurationError("Bad value", config_key="llm.model")
        assert exc.details["config_key"] == "llm.model"

    def test_validation_error_fields(self) -> None:
        """Test ValidationError records field and value."""
        exc = ValidationError("Negative", field_name="amount", invalid_value=-3)
        assert exc.details == {"field_name": "amount", "invalid_value": -3}


class TestGameEngineExceptions:
    """Tests for game engine exceptions."""

    def test_dice_formula_error(self) -> None:
        """Test DiceFormulaError carries the expression."""
        exc = DiceFormulaError("Invalid dice formula", expression="2x6")
        assert exc.details["expression"] == "2x6"
        assert isinstance(exc, DiceRollError)
        assert isinstance(exc, GameEngineError)

    def test_character_not_found_default_message(self) -> None:
        """Test the default not-found message names the entity."""
        exc = CharacterNotFoundError(5)
        assert exc.message == "Character 5 not found"
        assert exc.entity_id == 5
        assert exc.details["entity_type"] == "character"
        assert isinstance(exc, EntityNotFoundError)

    def test_session_not_found(self) -> None:
        """Test SessionNotFoundError is a distinct not-found signal."""
        exc = SessionNotFoundError(99, message="No such table")
        assert exc.message == "No such table"
        assert exc.details["entity_type"] == "session"
        assert not isinstance(exc, CharacterNotFoundError)


class TestModerationExceptions:
    """Tests for moderation exceptions."""

    def test_rejection_lists_violations(self) -> None:
        """Test the rejection message and details carry the violations."""
        exc = ModerationRejectedError(["NSFW content detected", "Input too long"])
        assert exc.violations == ["NSFW content detected", "Input too long"]
        assert exc.message == "Content moderation failed: NSFW content detected, Input too long"
        assert exc.details["violations"] == exc.violations
        assert isinstance(exc, ModerationError)
        assert not isinstance(exc, AIControlError)


class TestAIExceptions:
    """Tests for provider exceptions."""

    @pytest.mark.parametrize(
        "exc_type",
        [AIRateLimitError, AIConnectionError, AIServiceUnavailableError],
    )
    def test_transient_errors_are_retryable(self, exc_type: type[AIControlError]) -> None:
        """Test transient errors are flagged retryable."""
        exc = exc_type("Try again", model="gpt", provider="openai")
        assert exc.retryable is True
        assert isinstance(exc, AITransientError)
        assert exc.details["provider"] == "openai"

    @pytest.mark.parametrize(
        "exc_type",
        [AIAuthenticationError, AIRequestError, AIResponseError],
    )
    def test_fatal_errors_are_not_retryable(self, exc_type: type[AIControlError]) -> None:
        """Test fatal errors are never retried."""
        exc = exc_type("Stop")
        assert exc.retryable is False
        assert isinstance(exc, AIFatalError)

    def test_rate_limit_retry_after(self) -> None:
        """Test AIRateLimitError with retry-after."""
        exc = AIRateLimitError("Slow down", retry_after_seconds=12.0, model="gpt-4")
        assert exc.details["retry_after_seconds"] == 12.0
        assert exc.details["model"] == "gpt-4"

    def test_base_is_not_retryable(self) -> None:
        """Test the base provider error defaults to fatal."""
        assert AIControlError("Unknown").retryable is False
