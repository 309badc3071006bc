"""
Tests for constructs, enemy archetypes and the event bus.
"""

import pytest

from ..balance import DamageType
from ..catalog import EnemyTier
from ..engine_core.action import CoreType
from ..engine_core.events import DamageDealt, EventBus, event_to_dict
from ..engine_core.state import Position, Side
from ..persistence import hydrate_pairs


class TestConstructs:

    def test_passive_defense_adds_resistance(self, constructs):
        fighter = constructs.lookup("vanguard").value.build_fighter()
        assert fighter.resistance(DamageType.KINETIC) == pytest.approx(0.15)
        assert fighter.resistance(DamageType.VIRAL) == pytest.approx(0.05)

    def test_passive_evasion(self, constructs):
        assert constructs.lookup("specter").value.build_fighter().evasion == 0.1

    def test_passive_damage(self, constructs):
        assert constructs.lookup("breacher").value.build_fighter().damage_bonus == 0.1

    def test_fighter_starts_full(self, constructs):
        fighter = constructs.lookup("vanguard").value.build_fighter()
        assert (fighter.hp, fighter.shields, fighter.armor) == (120, 30, 20)
        assert fighter.position == Position(0, 1)
        assert fighter.construct_id == "vanguard"

    def test_slot_capacity(self, constructs):
        specter = constructs.lookup("specter").value
        assert specter.max_slots(CoreType.MOVEMENT) == 6
        assert specter.max_slots(CoreType.TACTICAL) == 4


class TestEnemies:

    def test_guardians(self, enemies):
        assert {e.id for e in enemies.guardians()} == {"warden-boss", "revenant-omega"}
        assert all(e.tier is EnemyTier.OMEGA for e in enemies.guardians())

    def test_enemy_starts_off_back_column(self, enemies):
        fighter = enemies.lookup("sentry-alpha").value.build_fighter()
        assert fighter.side is Side.ENEMY
        assert fighter.position == Position(4, 1)

    @pytest.mark.parametrize("enemy_id", [
        "sentry-alpha", "scrapper-alpha", "floater-alpha", "scrapper-beta", "warden-boss", "revenant-omega",
    ])
    def test_loadouts_hydrate_cleanly(self, enemies, triggers, actions, enemy_id):
        enemy = enemies.lookup(enemy_id).value
        movement, dropped_movement = hydrate_pairs(enemy.movement, triggers, actions, CoreType.MOVEMENT)
        tactical, dropped_tactical = hydrate_pairs(enemy.tactical, triggers, actions, CoreType.TACTICAL)
        assert dropped_movement == []
        assert dropped_tactical == []
        assert len(movement) + len(tactical) > 0


class TestEventBus:

    def test_queued_until_flush(self):
        bus = EventBus()
        seen = []
        bus.subscribe(DamageDealt, seen.append)
        bus.publish(DamageDealt(side="enemy", damage_type="kinetic", amount=5))
        assert seen == []
        assert bus.pending == 1

        delivered = bus.flush()
        assert len(seen) == 1
        assert delivered == seen

    def test_unsubscribe(self):
        bus = EventBus()
        seen = []
        bus.subscribe(DamageDealt, seen.append)
        bus.unsubscribe(DamageDealt, seen.append)
        bus.unsubscribe(DamageDealt, seen.append)
        bus.publish(DamageDealt(side="enemy", damage_type="kinetic", amount=5))
        bus.flush()
        assert seen == []

    def test_event_to_dict(self):
        data = event_to_dict(DamageDealt(side="player", damage_type="viral", amount=3, timestamp=250))
        assert data["damage_type"] == "viral"
        assert data["timestamp"] == 250
