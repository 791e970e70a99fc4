"""Integration tests for combat flow.

Runs complete encounters from initiative through attacks to hit point
write-back, using forced dice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from dnd_engine.engine.combat import CombatOrchestrator
from dnd_engine.engine.dice import DiceRoller
from dnd_engine.engine.rules import RulesEngine
from dnd_engine.models.character import Character


if TYPE_CHECKING:
    from conftest import InMemoryCharacterRepository, ScriptedRandom


class TestDiceScenarios:
    """Forced-dice reference scenarios."""

    def test_modified_d20(self, scripted_roller: DiceRoller, scripted_rng: ScriptedRandom) -> None:
        """Roll 1d20+5 with a 15 for 20, not critical."""
        scripted_rng.push(15)

        result = scripted_roller.roll("1d20+5")

        assert result.total == 20
        assert not result.is_critical

    def test_natural_twenty(self, scripted_roller: DiceRoller, scripted_rng: ScriptedRandom) -> None:
        """Roll 1d20 with a 20 for a critical 20."""
        scripted_rng.push(20)

        result = scripted_roller.roll("1d20")

        assert result.total == 20
        assert result.is_critical

    def test_attack_then_damage(self, rules: RulesEngine, scripted_rng: ScriptedRandom) -> None:
        """Attack +6 against AC 13 with an 18 hits for 1d8+3 = 8."""
        scripted_rng.push(18, 5)

        attack = rules.resolve_attack(attack_bonus=6, target_ac=13)
        damage = rules.calculate_damage("1d8+3", critical=attack.is_critical)

        assert attack.attack_roll == 24
        assert attack.hit
        assert damage == 8


class TestCombatFlow:
    """Test complete combat scenarios."""

    def test_round_of_combat(
        self,
        combat: CombatOrchestrator,
        character_repo: InMemoryCharacterRepository,
        scripted_rng: ScriptedRandom,
    ) -> None:
        """Roll initiative, then each side attacks in turn order."""
        # Initiative: Thorin 10+2, Vex 14+4
        scripted_rng.push(10, 14)
        order = combat.build_initiative_order(7)
        assert [e.character_name for e in order.entries] == ["Vex", "Thorin"]

        # Vex attacks Thorin: 11+6 vs AC 16 hits, 1d6+4 rolls 2
        acting = order.current_turn
        assert acting is not None
        scripted_rng.push(11, 2)
        vex_attack = combat.resolve_attack(acting.character_id, 1, "1d6+4")
        assert vex_attack.hit
        assert combat.apply_damage(1, vex_attack.damage) is True
        assert character_repo.characters[1].hit_points == 19

        # Thorin attacks Vex: natural 20, 2d8+3 rolls 8 and 7
        order = order.advance()
        acting = order.current_turn
        assert acting is not None
        scripted_rng.push(20, 8, 7)
        thorin_attack = combat.resolve_attack(acting.character_id, 2, "1d8+3")
        assert thorin_attack.is_critical
        assert thorin_attack.damage == 18
        assert combat.apply_damage(2, thorin_attack.damage) is False

        # Round 2 begins with Vex down
        order = order.advance()
        assert order.round == 2
        assert character_repo.characters[2].hit_points == 0
        assert not character_repo.characters[2].is_conscious

    def test_damage_then_knockout(
        self,
        combat: CombatOrchestrator,
        character_repo: InMemoryCharacterRepository,
        fighter: Character,
    ) -> None:
        """Take 10 from 25/30 to stay up at 15, then 20 more to drop to 0."""
        assert fighter.hit_points == 25

        assert combat.apply_damage(1, 10) is True
        assert character_repo.characters[1].hit_points == 15

        assert combat.apply_damage(1, 20) is False
        assert character_repo.characters[1].hit_points == 0

    def test_heal_back_up(
        self,
        combat: CombatOrchestrator,
        character_repo: InMemoryCharacterRepository,
    ) -> None:
        """Drop a character, heal them, and check every write reached storage."""
        combat.apply_damage(2, 18)
        assert combat.apply_healing(2, 7) == 7
        assert combat.apply_healing(2, 50) == 18

        assert character_repo.updates == [(2, 0), (2, 7), (2, 18)]
