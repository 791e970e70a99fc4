"""Keyword-based content moderation for player input and LLM output.

Two keyword categories are screened: sexual/NSFW content and harassment
or hate speech. Matches are case-insensitive and whole-word, so "hate"
is flagged but "whatever" and "chateau" are not.

Input violations are terminal and the caller must reject the request.
Output violations are recoverable: the text is sanitized and the caller
may use the cleaned version.
"""

from __future__ import annotations

import re

from dnd_engine.core.config import ModerationSettings
from dnd_engine.core.constants import REDACTION_MARKER
from dnd_engine.core.logging import get_logger
from dnd_engine.models.narration import ModerationResult


logger = get_logger(__name__)

_ASTERISK_RUN = re.compile(r"\*{3,}")


def _compile_keywords(keywords: list[str]) -> list[re.Pattern[str]]:
    return [
        re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE)
        for keyword in keywords
        if keyword.strip()
    ]


class ContentModerator:
    """Screens text against configurable keyword categories.

    Patterns are compiled once per moderator; the moderator holds no
    other state and may be shared between tasks.

    Example:
        >>> moderator = ContentModerator(ModerationSettings())
        >>> moderator.moderate_input("explicit nsfw content").is_safe
        False
    """

    def __init__(self, settings: ModerationSettings | None = None) -> None:
        """Initialize the moderator.

        Args:
            settings: Moderation settings; defaults are used when omitted.
        """
        self.settings = settings or ModerationSettings()
        self._nsfw_patterns = _compile_keywords(self.settings.nsfw_keywords)
        self._harassment_patterns = _compile_keywords(self.settings.harassment_keywords)

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def moderate_input(self, content: str) -> ModerationResult:
        """Screen player input.

        Args:
            content: Player text.

        Returns:
            Safe, or unsafe with the violations found.
        """
        if not self.settings.enabled:
            return ModerationResult.safe()

        logger.debug("Moderating input", length=len(content))

        violations: list[str] = []
        if self.settings.block_nsfw and self._matches(content, self._nsfw_patterns):
            violations.append("NSFW content detected")
            logger.warning("NSFW content blocked in player input")

        if self.settings.block_harassment and self._matches(content, self._harassment_patterns):
            violations.append("Harassment or hate speech detected")
            logger.warning("Harassment content blocked in player input")

        if len(content) > self.settings.max_input_length:
            violations.append(f"Input too long (max {self.settings.max_input_length} characters)")
            logger.warning(
                "Oversized player input rejected",
                length=len(content),
                max_length=self.settings.max_input_length,
            )

        if violations:
            return ModerationResult.unsafe(*violations)
        return ModerationResult.safe()

    def moderate_output(self, content: str) -> ModerationResult:
        """Screen LLM output, sanitizing it when something is flagged.

        Args:
            content: Generated text.

        Returns:
            Safe, or sanitized with the violations found.
        """
        if not self.settings.enabled:
            return ModerationResult.safe()

        logger.debug("Moderating output", length=len(content))

        violations: list[str] = []
        if self.settings.block_nsfw and self._matches(content, self._nsfw_patterns):
            violations.append("Inappropriate content in LLM response")
            logger.warning("NSFW content detected in LLM output")

        if self.settings.block_harassment and self._matches(content, self._harassment_patterns):
            violations.append("Potentially harmful content in LLM response")
            logger.warning("Harassment content detected in LLM output")

        if violations:
            return ModerationResult.sanitized(self.sanitize(content), *violations)
        return ModerationResult.safe()

    def sanitize(self, content: str) -> str:
        """Redact every keyword of both categories.

        Runs of three or more asterisks are collapsed to ``***``. Applying
        this twice gives the same result as applying it once. Existing
        redaction markers are never rewritten, even when a configured
        keyword matches inside one.

        Args:
            content: Text to clean.

        Returns:
            The sanitized text.
        """
        sanitized = content
        for pattern in (*self._nsfw_patterns, *self._harassment_patterns):
            sanitized = REDACTION_MARKER.join(
                pattern.sub(REDACTION_MARKER, segment)
                for segment in sanitized.split(REDACTION_MARKER)
            )
        sanitized = _ASTERISK_RUN.sub("***", sanitized)

        if sanitized != content:
            logger.info(
                "Content sanitized",
                original_length=len(content),
                sanitized_length=len(sanitized),
            )
        return sanitized

    def contains_blocked_content(self, content: str) -> bool:
        """Check text against both categories, ignoring the block flags.

        Args:
            content: Text to check.

        Returns:
            True if any keyword matches.
        """
        return self._matches(content, self._nsfw_patterns) or self._matches(
            content, self._harassment_patterns
        )

    @staticmethod
    def _matches(content: str, patterns: list[re.Pattern[str]]) -> bool:
        # Redaction markers are not content.
        segments = content.split(REDACTION_MARKER)
        return any(pattern.search(segment) for pattern in patterns for segment in segments)


__all__ = [
    "ContentModerator",
]
