"""Combat orchestration: initiative, attacks, damage and healing.

The orchestrator loads characters and sessions through the repository
ports, resolves mechanics with the RulesEngine, and writes changed hit
points back. It does no locking; callers must serialize damage and
healing per character to avoid lost updates.
"""

from __future__ import annotations

from dnd_engine.core.exceptions import (
    CharacterNotFoundError,
    SessionNotFoundError,
    ValidationError,
)
from dnd_engine.core.logging import get_logger
from dnd_engine.engine.dice import DiceFormula, DiceRoller
from dnd_engine.engine.ports import CharacterRepository, SessionRepository
from dnd_engine.engine.rules import RulesEngine
from dnd_engine.models.character import Character
from dnd_engine.models.combat import InitiativeEntry, InitiativeOrder
from dnd_engine.models.enums import AdvantageType
from dnd_engine.models.results import AttackResult


logger = get_logger(__name__)


class CombatOrchestrator:
    """Runs combat actions for a session.

    Attributes:
        characters: Character repository.
        sessions: Session repository.
        rules: Rules engine.
        dice: Dice roller.
    """

    def __init__(
        self,
        characters: CharacterRepository,
        sessions: SessionRepository,
        rules: RulesEngine,
        dice: DiceRoller,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            characters: Character lookup and write-back.
            sessions: Session lookup.
            rules: Rules engine for attacks and damage.
            dice: Dice roller for initiative.
        """
        self.characters = characters
        self.sessions = sessions
        self.rules = rules
        self.dice = dice

    # =========================================================================
    # Initiative
    # =========================================================================

    def roll_initiative(self, session_id: int) -> list[InitiativeEntry]:
        """Roll initiative for every active participant of a session.

        Each character rolls 1d20 plus their DEX modifier. The result is
        sorted highest first; ties keep participant order. Participants
        whose character cannot be found are skipped.

        Args:
            session_id: Session identifier.

        Returns:
            Initiative entries in turn order.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        logger.info("Rolling initiative", session_id=session_id)

        session = self.sessions.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)

        entries: list[InitiativeEntry] = []
        for character_id in session.active_character_ids:
            character = self.characters.get_character(character_id)
            if character is None:
                logger.warning(
                    "Skipping missing character in initiative",
                    session_id=session_id,
                    character_id=character_id,
                )
                continue

            roll = self.dice.roll("1d20").selected_roll
            entries.append(
                InitiativeEntry(
                    character_id=character.id,
                    character_name=character.name,
                    initiative_roll=roll + character.ability_scores.dexterity_modifier,
                    current_hp=character.hit_points,
                    max_hp=character.max_hit_points,
                )
            )

        entries.sort(key=lambda entry: entry.initiative_roll, reverse=True)

        logger.info("Initiative rolled", session_id=session_id, count=len(entries))
        return entries

    def build_initiative_order(self, session_id: int) -> InitiativeOrder:
        """Roll initiative and wrap it as a turn order at round 1.

        Args:
            session_id: Session identifier.

        Returns:
            The initiative order.

        Raises:
            SessionNotFoundError: If the session does not exist.
        """
        return InitiativeOrder(entries=self.roll_initiative(session_id))

    # =========================================================================
    # Attacks
    # =========================================================================

    def resolve_attack(
        self,
        attacker_id: int,
        defender_id: int,
        damage_formula: str,
        advantage: AdvantageType = AdvantageType.NORMAL,
    ) -> AttackResult:
        """Resolve one attack between two characters.

        Attack bonus is the better of the attacker's STR and DEX modifiers
        plus proficiency. Damage is rolled only on a hit and doubled dice
        apply on a critical.

        Args:
            attacker_id: Attacking character.
            defender_id: Defending character.
            damage_formula: Damage dice such as '1d8+3'.
            advantage: Roll mode for the attack.

        Returns:
            The attack result with damage attached.

        Raises:
            CharacterNotFoundError: If either character does not exist.
            DiceFormulaError: If the damage formula is invalid.
        """
        logger.info("Resolving attack", attacker_id=attacker_id, defender_id=defender_id)

        formula = DiceFormula.parse(damage_formula)
        attacker = self._require_character(attacker_id)
        defender = self._require_character(defender_id)

        scores = attacker.ability_scores
        attack_bonus = (
            max(scores.strength_modifier, scores.dexterity_modifier) + attacker.proficiency_bonus
        )

        result = self.rules.resolve_attack(attack_bonus, defender.armor_class, advantage)
        if not result.hit:
            logger.info("Attack missed", attacker_id=attacker_id, defender_id=defender_id)
            return result

        damage = self.rules.calculate_damage(formula, critical=result.is_critical)
        logger.info(
            "Attack hit",
            attacker_id=attacker_id,
            defender_id=defender_id,
            damage=damage,
            is_critical=result.is_critical,
        )
        return result.with_damage(damage)

    # =========================================================================
    # Hit Points
    # =========================================================================

    def apply_damage(self, character_id: int, amount: int) -> bool:
        """Apply damage, never dropping hit points below 0.

        Args:
            character_id: Damaged character.
            amount: Damage amount.

        Returns:
            True if the character is still conscious.

        Raises:
            ValidationError: If amount is negative.
            CharacterNotFoundError: If the character does not exist.
        """
        self._require_non_negative(amount, "amount")
        logger.info("Applying damage", character_id=character_id, amount=amount)

        character = self._require_character(character_id)
        character.hit_points = max(0, character.hit_points - amount)
        self.characters.update_character(character)

        logger.info(
            "Hit points updated",
            character_id=character_id,
            hit_points=character.hit_points,
            max_hit_points=character.max_hit_points,
            is_conscious=character.is_conscious,
        )
        return character.is_conscious

    def apply_healing(self, character_id: int, amount: int) -> int:
        """Apply healing, never raising hit points above the maximum.

        Args:
            character_id: Healed character.
            amount: Healing amount.

        Returns:
            The new hit points.

        Raises:
            ValidationError: If amount is negative.
            CharacterNotFoundError: If the character does not exist.
        """
        self._require_non_negative(amount, "amount")
        logger.info("Applying healing", character_id=character_id, amount=amount)

        character = self._require_character(character_id)
        character.hit_points = min(character.max_hit_points, character.hit_points + amount)
        self.characters.update_character(character)

        logger.info(
            "Hit points updated",
            character_id=character_id,
            hit_points=character.hit_points,
            max_hit_points=character.max_hit_points,
        )
        return character.hit_points

    def _require_character(self, character_id: int) -> Character:
        character = self.characters.get_character(character_id)
        if character is None:
            raise CharacterNotFoundError(character_id)
        return character

    @staticmethod
    def _require_non_negative(amount: int, field_name: str) -> None:
        if amount < 0:
            raise ValidationError(
                f"{field_name} must not be negative",
                field_name=field_name,
                invalid_value=amount,
            )


__all__ = [
    "CombatOrchestrator",
]
