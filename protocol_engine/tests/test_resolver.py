"""
Tests for the protocol resolver.

Tests:
- Priority order, first match wins
- Cooldowns
- Disabled protocols and core filtering
- Suppression and lag stutter
"""

import pytest

from ..balance import LagRule, StatusType, default_table
from ..engine_core.action import CoreType
from ..engine_core.protocol import Protocol, Trigger, TriggerCategory, sort_by_priority
from ..engine_core.resolver import ProtocolResolver
from ..engine_core.state import Side
from ..engine_core.status import StatusEngine


@pytest.fixture
def resolver(status_engine):
    return ProtocolResolver(status_engine)


class TestPrioritySelection:
    """Higher priority matches win."""

    def test_low_hp_heal_beats_always_shoot(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "shoot", priority=1),
            make_protocol("low-hp", "heal", priority=4),
        ]
        battle_state.player.hp = 25

        fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)

        assert fired is not None
        assert fired.protocol.action.id == "heal"
        assert fired.effect.heal == 20

    def test_falls_through_to_lower_priority(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "shoot", priority=1),
            make_protocol("low-hp", "heal", priority=4),
        ]
        battle_state.player.hp = 80

        fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)

        assert fired.protocol.action.id == "shoot"

    def test_equal_priorities_keep_list_order(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "power-shot", priority=2),
            make_protocol("always", "shoot", priority=2),
        ]
        fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert fired.protocol.action.id == "power-shot"

    def test_sort_is_stable(self, make_protocol):
        a = make_protocol("always", "shoot", priority=1)
        b = make_protocol("always", "heal", priority=3)
        c = make_protocol("low-hp", "shoot", priority=1)
        assert sort_by_priority([a, b, c]) == [b, a, c]

    def test_no_match_idles(self, resolver, battle_state, make_protocol):
        protocols = [make_protocol("low-hp", "heal")]
        assert resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL) is None

    def test_cores_are_independent(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "shoot", priority=5),
            make_protocol("always", "move-forward", priority=1),
        ]
        movement = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.MOVEMENT)
        tactical = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert movement.protocol.action.id == "move-forward"
        assert tactical.protocol.action.id == "shoot"

    def test_disabled_protocol_skipped(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "power-shot", priority=5, enabled=False),
            make_protocol("always", "shoot", priority=1),
        ]
        fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert fired.protocol.action.id == "shoot"

    def test_raising_trigger_treated_as_false(self, resolver, battle_state, make_protocol, actions):
        def broken(ctx):
            raise KeyError("missing")

        bad = Protocol(
            trigger=Trigger("broken", "Broken", "", TriggerCategory.GENERAL, broken),
            action=actions.lookup("power-shot").value,
            priority=9,
        )
        protocols = [bad, make_protocol("always", "shoot")]
        fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert fired.protocol.action.id == "shoot"
        assert bad.last_fired_at is None


class TestCooldowns:

    def test_cannot_refire_before_cooldown(self, resolver, battle_state, make_protocol):
        protocols = [make_protocol("always", "shoot")]
        assert resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert protocols[0].last_fired_at == 0

        battle_state.now = 999
        assert resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL) is None

        battle_state.now = 1000
        assert resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)

    def test_cooling_protocol_lets_next_fire(self, resolver, battle_state, make_protocol):
        protocols = [
            make_protocol("always", "power-shot", priority=2),
            make_protocol("always", "shoot", priority=1),
        ]
        first = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        battle_state.now = 100
        second = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
        assert first.protocol.action.id == "power-shot"
        assert second.protocol.action.id == "shoot"

    def test_lag_lengthens_cooldown(self, resolver, status_engine, battle_state, make_protocol):
        status_engine.apply(battle_state.player, StatusType.LAG, now=0)
        protocols = [make_protocol("always", "shoot")]
        # Lag also adds a 5% stutter chance; walk time until the shot lands
        fired = None
        while fired is None:
            fired = resolver.select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
            battle_state.now += 50
        assert fired.cooldown_ms == pytest.approx(1150)

    def test_upgraded_cooldown(self, resolver, battle_state, make_protocol):
        protocol = make_protocol("always", "shoot")
        protocol.cooldown_scale = 0.8
        fired = resolver.select(battle_state, Side.PLAYER, [protocol], CoreType.TACTICAL)
        assert fired.cooldown_ms == pytest.approx(800)


class TestSuppression:

    @pytest.mark.parametrize("status_type", [StatusType.STUN, StatusType.DISABLE])
    def test_control_effects_suppress_all_cores(self, resolver, status_engine, battle_state, make_protocol, status_type):
        status_engine.apply(battle_state.player, status_type, now=0)
        protocols = [make_protocol("always", "shoot"), make_protocol("always", "move-forward")]
        for core in CoreType:
            assert resolver.select(battle_state, Side.PLAYER, protocols, core) is None

    def test_stutter_skips_without_consuming_cooldown(self, battle_state, make_protocol):
        table = default_table()
        table.lag = LagRule(cooldown_increase=0.0, movement_reduction=0.0, action_fail_chance=1.0)
        engine = StatusEngine(table)
        engine.apply(battle_state.player, StatusType.LAG, now=0)
        protocols = [make_protocol("always", "shoot")]

        fired = ProtocolResolver(engine).select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)

        assert fired is None
        assert protocols[0].last_fired_at is None

    def test_stutter_roll_is_seeded(self, battle_state, make_protocol):
        table = default_table()
        table.lag = LagRule(action_fail_chance=0.5)
        engine = StatusEngine(table)
        engine.apply(battle_state.player, StatusType.LAG, now=0)

        outcomes = []
        for _ in range(2):
            protocols = [make_protocol("always", "shoot")]
            fired = ProtocolResolver(engine).select(battle_state, Side.PLAYER, protocols, CoreType.TACTICAL)
            outcomes.append(fired is None)
        assert outcomes[0] == outcomes[1]
