"""Pydantic V2 schemas for initiative tracking."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class InitiativeEntry(BaseModel):
    """One combatant's place in the initiative order.

    Attributes:
        character_id: Character identifier.
        character_name: Display name.
        initiative_roll: d20 plus DEX modifier.
        current_hp: Hit points when initiative was rolled.
        max_hp: Maximum hit points.
        conditions: Active condition names.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    character_id: int = Field(description="Character ID")
    character_name: str = Field(description="Character name")
    initiative_roll: int = Field(description="Initiative total")
    current_hp: int = Field(ge=0, description="Current HP")
    max_hp: int = Field(ge=1, description="Maximum HP")
    conditions: list[str] = Field(default_factory=list, description="Active conditions")


class InitiativeOrder(BaseModel):
    """Turn order for an encounter.

    Entries are sorted by initiative, highest first. The order is
    immutable; ``advance`` returns the next state.

    Attributes:
        entries: Combatants in turn order.
        current_turn_index: Index of the acting combatant.
        round: Current combat round, starting at 1.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    entries: list[InitiativeEntry] = Field(default_factory=list, description="Turn order")
    current_turn_index: int = Field(default=0, ge=0, description="Acting combatant")
    round: int = Field(default=1, ge=1, description="Combat round")

    @property
    def current_turn(self) -> InitiativeEntry | None:
        """Get the combatant whose turn it is.

        Returns:
            The acting entry, or None for an empty order.
        """
        if not self.entries:
            return None
        return self.entries[self.current_turn_index % len(self.entries)]

    def advance(self) -> "InitiativeOrder":
        """Move to the next combatant, starting a new round after the last.

        Returns:
            The next InitiativeOrder state.
        """
        if not self.entries:
            return self
        next_index = self.current_turn_index + 1
        if next_index >= len(self.entries):
            return self.model_copy(update={"current_turn_index": 0, "round": self.round + 1})
        return self.model_copy(update={"current_turn_index": next_index})


__all__ = [
    "InitiativeEntry",
    "InitiativeOrder",
]
