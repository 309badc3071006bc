"""
Tests for the status engine.

Tests:
- Per-stack expiry and cap refresh
- Burn and regen ticking
- On-apply effects (corrode, EMP, displace)
- Modifiers derived from stacks
"""

import pytest

from ..balance import StatusType
from ..engine_core.state import Position, Side


class TestStacking:

    def test_each_stack_has_own_expiry(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.apply(fighter, StatusType.BURN, now=1000)
        assert fighter.status_effects[StatusType.BURN].expiries == [4000, 5000]

        status_engine.tick(fighter, now=4000)
        assert fighter.stacks(StatusType.BURN) == 1

    def test_cap_refreshes_newest_stack_only(self, status_engine, make_fighter):
        fighter = make_fighter()
        for _ in range(5):
            status_engine.apply(fighter, StatusType.BURN, now=0)
        stacks = status_engine.apply(fighter, StatusType.BURN, now=1000)

        assert stacks == 5
        assert fighter.status_effects[StatusType.BURN].expiries == [4000, 4000, 4000, 4000, 5000]

    def test_uncapped_permanent_corrode(self, status_engine, make_fighter):
        fighter = make_fighter(armor=100)
        for _ in range(8):
            status_engine.apply(fighter, StatusType.CORRODE, now=0)
        status_engine.tick(fighter, now=600_000)
        assert fighter.stacks(StatusType.CORRODE) == 8

    def test_expired_status_removed(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.STUN, now=0)
        outcome = status_engine.tick(fighter, now=1000)
        assert StatusType.STUN in outcome.expired
        assert not fighter.has_status(StatusType.STUN)


class TestPeriodicEffects:

    def test_burn_scales_with_stacks(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.apply(fighter, StatusType.BURN, now=0)

        outcome = status_engine.tick(fighter, now=500)

        assert outcome.dot_damage == 4
        assert fighter.hp == 96

    def test_burn_catches_up_missed_intervals(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.tick(fighter, now=1500)
        assert fighter.hp == 88

    def test_burn_ticks_at_expiry_instant(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.tick(fighter, now=4000)
        # Eight boundaries (500..4000), one stack of 2
        assert fighter.hp == 84
        assert not fighter.has_status(StatusType.BURN)

    def test_invincible_blocks_burn(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.BURN, now=0)
        status_engine.apply(fighter, StatusType.INVINCIBLE, now=0)
        outcome = status_engine.tick(fighter, now=500)
        assert outcome.dot_damage == 0
        assert fighter.hp == 100

    def test_regen_heals_to_cap(self, status_engine, make_fighter):
        fighter = make_fighter(hp=50)
        status_engine.apply(fighter, StatusType.REGEN, now=0)
        outcome = status_engine.tick(fighter, now=2000)
        assert outcome.healed == 6
        assert fighter.hp == 56

        fighter.hp = 99
        status_engine.tick(fighter, now=3000)
        assert fighter.hp == 100


class TestOnApply:

    def test_corrode_strips_ten_percent(self, status_engine, make_fighter):
        fighter = make_fighter(armor=100)
        seen = []
        for _ in range(5):
            status_engine.apply(fighter, StatusType.CORRODE, now=0)
            seen.append(fighter.armor)
        assert seen == [90, 81, 73, 66, 60]

    def test_corrode_strips_at_least_one(self, status_engine, make_fighter):
        fighter = make_fighter(armor=5)
        status_engine.apply(fighter, StatusType.CORRODE, now=0)
        assert fighter.armor == 4

    def test_emp_drains_shields(self, status_engine, make_fighter):
        fighter = make_fighter(shields=50)
        status_engine.apply(fighter, StatusType.EMP, now=0)
        assert fighter.shields == 46

    def test_displace_pushes_enemy_back(self, status_engine, make_fighter):
        fighter = make_fighter(Side.ENEMY)
        status_engine.apply(fighter, StatusType.DISPLACE, now=0)
        assert fighter.position == Position(5, 1)
        assert fighter.corrupt_next_move

    def test_displace_push_uses_stacks_already_present(self, status_engine, make_fighter):
        fighter = make_fighter(Side.ENEMY, x=3)
        pushed_to = []
        for _ in range(3):
            fighter.position = Position(3, 1)
            status_engine.apply(fighter, StatusType.DISPLACE, now=0)
            pushed_to.append(fighter.position.x)
        assert pushed_to == [4, 4, 5]

    def test_at_cap_refreshes_without_on_apply_effect(self, status_engine, make_fighter):
        fighter = make_fighter(Side.ENEMY, x=3)
        for _ in range(3):
            status_engine.apply(fighter, StatusType.DISPLACE, now=0)
        fighter.position = Position(3, 1)
        fighter.corrupt_next_move = False

        stacks = status_engine.apply(fighter, StatusType.DISPLACE, now=1000)

        assert stacks == 3
        assert fighter.position == Position(3, 1)
        assert not fighter.corrupt_next_move
        assert fighter.status_effects[StatusType.DISPLACE].expiries[-1] == 6500


class TestShieldRegen:

    def test_regen_waits_for_delay(self, status_engine, make_fighter):
        fighter = make_fighter(shields=0, max_shields=20)
        fighter.last_damaged_at = 0
        assert status_engine.tick(fighter, now=0).shield_regen == 0
        assert status_engine.tick(fighter, now=1000).shield_regen == 0
        assert status_engine.tick(fighter, now=4000).shield_regen == 6
        assert fighter.shields == 6

    def test_emp_blocks_regen(self, status_engine, make_fighter):
        fighter = make_fighter(shields=0, max_shields=20)
        status_engine.tick(fighter, now=0)
        status_engine.apply(fighter, StatusType.EMP, now=0)
        assert status_engine.tick(fighter, now=1000).shield_regen == 0

    def test_own_regen_values_win(self, status_engine, make_fighter):
        fighter = make_fighter(shields=0, max_shields=20, shield_regen_rate=5, shield_regen_delay_ms=0)
        status_engine.tick(fighter, now=0)
        status_engine.tick(fighter, now=1000)
        assert fighter.shields == 5


class TestModifiers:

    def test_clean_fighter(self, status_engine, make_fighter):
        mods = status_engine.modifiers(make_fighter())
        assert mods.cooldown_multiplier == 1
        assert mods.action_fail_chance == 0
        assert not mods.suppressed

    def test_lag_per_stack(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.LAG, now=0)
        status_engine.apply(fighter, StatusType.LAG, now=0)
        mods = status_engine.modifiers(fighter)

        assert mods.cooldown_multiplier == pytest.approx(1.3)
        assert mods.movement_multiplier == pytest.approx(0.8)
        assert mods.action_fail_chance == pytest.approx(0.1)
        assert mods.effective_cooldown(1000, movement=True) == pytest.approx(1625)

    def test_movement_floor(self, status_engine, make_fighter, table):
        table.lag.movement_reduction = 0.5
        fighter = make_fighter()
        for _ in range(5):
            status_engine.apply(fighter, StatusType.LAG, now=0)
        assert status_engine.modifiers(fighter).movement_multiplier == pytest.approx(0.1)

    def test_overclock_speeds_up(self, status_engine, make_fighter):
        fighter = make_fighter()
        status_engine.apply(fighter, StatusType.OVERCLOCK, now=0)
        assert status_engine.modifiers(fighter).effective_cooldown(1000) == pytest.approx(700)

    def test_viral_ladder(self, status_engine, make_fighter):
        fighter = make_fighter()
        for _ in range(7):
            status_engine.apply(fighter, StatusType.VIRAL_INFECTION, now=0)
        assert status_engine.modifiers(fighter).viral_multiplier == 2.0
