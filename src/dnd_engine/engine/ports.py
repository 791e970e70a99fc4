"""Persistence ports consumed by the combat orchestrator.

The engine never stores anything itself; the host application supplies
objects satisfying these protocols.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dnd_engine.models.character import Character, Session


@runtime_checkable
class CharacterRepository(Protocol):
    """Character lookup and hit-point write-back."""

    def get_character(self, character_id: int) -> Character | None:
        """Return the character, or None if the id is unknown."""
        ...

    def update_character(self, character: Character) -> None:
        """Persist a character whose hit points changed."""
        ...


@runtime_checkable
class SessionRepository(Protocol):
    """Session lookup."""

    def get_session(self, session_id: int) -> Session | None:
        """Return the session, or None if the id is unknown."""
        ...


__all__ = [
    "CharacterRepository",
    "SessionRepository",
]
