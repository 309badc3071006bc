"""
Tests for the trigger catalog.

Tests:
- Purity (same context, same answer)
- HP thresholds as percentages
- Side-relative positioning
- Registry lookups
"""

import pytest

from ..balance import StatusType
from ..catalog.registry import Absent, DuplicateIdError, Present
from ..catalog.triggers import ALWAYS, TriggerRegistry
from ..engine_core.protocol import TriggerCategory
from ..engine_core.state import Position, Side
from ..engine_core.status import StatusEngine


def check(triggers, trigger_id, state, side=Side.PLAYER):
    return triggers.lookup(trigger_id).value.check(state.context_for(side))


class TestTriggerPurity:
    """Every trigger answers the same way for the same context."""

    def test_all_triggers_are_pure(self, triggers, battle_state):
        for side in (Side.PLAYER, Side.ENEMY):
            context = battle_state.context_for(side)
            for trigger in triggers:
                first = trigger.check(context)
                assert trigger.check(context) == first
                assert isinstance(first, bool)

    def test_check_does_not_mutate_state(self, triggers, battle_state):
        before = battle_state.clone()
        for trigger in triggers:
            trigger.check(battle_state.context_for(Side.PLAYER))
        assert battle_state == before


class TestHealthTriggers:
    """HP triggers compare percent of max HP."""

    def test_low_hp_below_thirty_percent(self, triggers, battle_state):
        battle_state.player.hp = 25
        assert check(triggers, "low-hp", battle_state)

    def test_low_hp_is_strict(self, triggers, battle_state):
        battle_state.player.hp = 30
        assert not check(triggers, "low-hp", battle_state)

    def test_low_hp_uses_percent_not_absolute(self, triggers, battle_state):
        battle_state.player.max_hp = 200
        battle_state.player.hp = 50
        assert check(triggers, "low-hp", battle_state)

    def test_full_hp(self, triggers, battle_state):
        assert check(triggers, "full-hp", battle_state)
        battle_state.player.hp = 99
        assert not check(triggers, "full-hp", battle_state)

    def test_critical_hp(self, triggers, battle_state):
        battle_state.player.hp = 14
        assert check(triggers, "critical-hp", battle_state)
        battle_state.player.hp = 15
        assert not check(triggers, "critical-hp", battle_state)

    def test_enemy_low_hp_reads_opponent(self, triggers, battle_state):
        battle_state.enemy.hp = 20
        assert check(triggers, "enemy-low-hp", battle_state, Side.PLAYER)
        assert not check(triggers, "enemy-low-hp", battle_state, Side.ENEMY)
        assert check(triggers, "low-hp", battle_state, Side.ENEMY)


class TestPositioningTriggers:
    """Positions are read relative to the actor."""

    def test_distance_is_horizontal(self, triggers, battle_state):
        battle_state.player.position = Position(2, 0)
        battle_state.enemy.position = Position(3, 2)
        assert check(triggers, "enemy-close", battle_state)
        assert check(triggers, "enemy-at-min-distance", battle_state)
        assert not check(triggers, "enemy-far", battle_state)

    def test_enemy_far(self, triggers, battle_state):
        # Default positions are 3 tiles apart
        assert check(triggers, "enemy-far", battle_state)
        assert not check(triggers, "enemy-very-far", battle_state)
        assert not check(triggers, "in-range", battle_state)

    def test_back_column_is_side_relative(self, triggers, battle_state):
        battle_state.player.position = Position(0, 1)
        battle_state.enemy.position = Position(5, 1)
        assert check(triggers, "at-back", battle_state, Side.PLAYER)
        assert check(triggers, "at-back", battle_state, Side.ENEMY)
        assert not check(triggers, "at-front", battle_state, Side.ENEMY)

    def test_front_column_is_side_relative(self, triggers, battle_state):
        battle_state.player.position = Position(2, 1)
        battle_state.enemy.position = Position(3, 1)
        assert check(triggers, "at-front", battle_state, Side.PLAYER)
        assert check(triggers, "at-front", battle_state, Side.ENEMY)
        assert check(triggers, "enemy-at-front", battle_state, Side.PLAYER)

    def test_row_relations(self, triggers, battle_state):
        battle_state.player.position = Position(1, 1)
        battle_state.enemy.position = Position(4, 0)
        assert check(triggers, "enemy-above", battle_state)
        assert check(triggers, "different-row", battle_state)
        assert not check(triggers, "same-row", battle_state)
        assert check(triggers, "enemy-below", battle_state, Side.ENEMY)

    def test_row_triggers(self, triggers, battle_state):
        assert check(triggers, "middle-row", battle_state)
        battle_state.player.position = Position(1, 0)
        assert check(triggers, "top-row", battle_state)


class TestDefenseAndStatusTriggers:

    def test_shield_triggers(self, triggers, battle_state):
        assert check(triggers, "shield-depleted", battle_state)
        battle_state.player.shields = 10
        assert check(triggers, "shield-active", battle_state)
        assert not check(triggers, "shield-depleted", battle_state)

    def test_enemy_exposed(self, triggers, battle_state):
        assert check(triggers, "enemy-exposed", battle_state)
        battle_state.enemy.armor = 5
        assert not check(triggers, "enemy-exposed", battle_state)
        assert check(triggers, "enemy-has-armor", battle_state)

    def test_enemy_status(self, triggers, battle_state, table):
        assert not check(triggers, "enemy-burning", battle_state)
        StatusEngine(table).apply(battle_state.enemy, StatusType.BURN, now=0)
        assert check(triggers, "enemy-burning", battle_state)
        assert not check(triggers, "enemy-burning", battle_state, Side.ENEMY)

    def test_took_damage_reads_own_flag(self, triggers, battle_state):
        battle_state.player.just_took_damage = True
        assert check(triggers, "took-damage", battle_state, Side.PLAYER)
        assert not check(triggers, "took-damage", battle_state, Side.ENEMY)


class TestTriggerRegistry:

    def test_lookup_present(self, triggers):
        result = triggers.lookup("low-hp")
        assert isinstance(result, Present)
        assert result.found
        assert result.value.id == "low-hp"

    def test_lookup_absent(self, triggers):
        result = triggers.lookup("no-such-trigger")
        assert isinstance(result, Absent)
        assert not result.found
        assert result.key == "no-such-trigger"

    def test_duplicate_id_rejected(self):
        with pytest.raises(DuplicateIdError):
            TriggerRegistry([ALWAYS, ALWAYS])

    def test_category_filter(self, triggers):
        health = triggers.category(TriggerCategory.HEALTH)
        assert {t.id for t in health} >= {"low-hp", "full-hp", "enemy-low-hp"}
        assert all(t.category is TriggerCategory.HEALTH for t in health)
        assert triggers.category("general") == [ALWAYS]

    def test_always_is_registered(self, triggers):
        assert "always" in triggers
        assert triggers.ids()[0] == "always"
