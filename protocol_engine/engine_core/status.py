"""
Status Engine - Stacking, timing and ticking of status effects.

Every stack carries its own expiry timestamp. Reapplying a status at its
cap refreshes only the newest stack; older stacks keep their timers.

The engine mutates the FighterState it is given, so callers pass a
working copy (the reducer and the battle session both do).
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field

from ..balance import InteractionTable, StatusType
from .state import FighterState, StatusEffect, clamp_to_territory, forward


SUPPRESSING_STATUSES = (StatusType.STUN, StatusType.DISABLE)


@dataclass(frozen=True)
class StatusModifiers:
    """Modifiers derived purely from a fighter's current stack counts."""
    cooldown_multiplier: float = 1.0
    movement_multiplier: float = 1.0
    action_fail_chance: float = 0.0
    damage_multiplier: float = 1.0
    incoming_multiplier: float = 1.0
    viral_multiplier: float = 1.0
    shield_regen_disabled: bool = False
    suppressed: bool = False
    barrier: bool = False
    invincible: bool = False

    def effective_cooldown(self, base_ms: float, movement: bool = False) -> float:
        """Cooldown after lag, speed buffs and (for movement) slow."""
        cooldown = base_ms * self.cooldown_multiplier
        if movement and self.movement_multiplier > 0:
            cooldown /= self.movement_multiplier
        return cooldown


@dataclass
class TickOutcome:
    """What one status tick did to a fighter."""
    dot_damage: float = 0.0
    healed: float = 0.0
    shield_regen: float = 0.0
    expired: list[StatusType] = field(default_factory=list)


class StatusEngine:
    """
    Applies, ticks and reads status effects using an interaction table.

    Usage:
        engine = StatusEngine(default_table())
        engine.apply(fighter, StatusType.BURN, now=0)
        engine.tick(fighter, now=500)
        mods = engine.modifiers(fighter)
    """

    def __init__(self, table: InteractionTable):
        self.table = table

    # =========================================================================
    # Application
    # =========================================================================

    def apply(
        self,
        fighter: FighterState,
        status_type: StatusType,
        now: float,
        duration_ms: float | None = None,
        magnitude: float | None = None,
    ) -> int:
        """
        Add one stack of a status and run its on-apply effect.

        Returns the stack count after application.
        """
        rule = self.table.status_rule(status_type)
        duration = rule.duration_ms if duration_ms is None else duration_ms
        expiry = None if duration is None else now + duration

        effect = fighter.status_effects.get(status_type)
        if effect is None:
            effect = StatusEffect(
                status_type=status_type,
                per_stack_magnitude=rule.magnitude if magnitude is None else magnitude,
                last_tick_at=now if rule.tick_interval_ms else None,
            )
            fighter.status_effects[status_type] = effect
        elif magnitude is not None:
            effect.per_stack_magnitude = magnitude

        existing = effect.stacks
        if rule.max_stacks is not None and existing >= rule.max_stacks:
            # At cap: refresh the newest stack only, no on-apply effect
            effect.expiries[-1] = expiry
            return existing

        effect.expiries.append(expiry)
        self._on_apply(fighter, status_type, existing)
        return effect.stacks

    def _on_apply(self, fighter: FighterState, status_type: StatusType, existing: int) -> None:
        """Instant effect of a new stack. `existing` is the count before it landed."""
        table = self.table
        if status_type is StatusType.CORRODE:
            if fighter.armor > 0:
                strip = max(table.corrosive_min_strip, math.floor(fighter.armor * table.corrosive_strip_fraction))
                fighter.armor = max(0.0, fighter.armor - strip)

        elif status_type is StatusType.EMP:
            drain = math.floor(fighter.shields * table.emp_shield_drain)
            fighter.shields = max(0.0, fighter.shields - drain)

        elif status_type is StatusType.DISPLACE:
            push = (
                table.displace_push_heavy
                if existing >= table.displace_heavy_after_stacks
                else table.displace_push
            )
            # Pushed toward the fighter's own back column
            dx = -forward(fighter.side) * push
            fighter.position = clamp_to_territory(fighter.position.moved(dx=dx), fighter.side)
            fighter.corrupt_next_move = True

    def remove(self, fighter: FighterState, status_type: StatusType) -> None:
        fighter.status_effects.pop(status_type, None)

    # =========================================================================
    # Ticking
    # =========================================================================

    def tick(self, fighter: FighterState, now: float) -> TickOutcome:
        """
        Advance a fighter's statuses to `now`.

        Order: periodic effects at every elapsed interval boundary,
        then expiry, then shield regeneration.
        """
        outcome = TickOutcome()

        burn = fighter.status_effects.get(StatusType.BURN)
        if burn is not None:
            outcome.dot_damage = self._run_periodic(fighter, burn, now)
            if outcome.dot_damage > 0 and not fighter.has_status(StatusType.INVINCIBLE):
                fighter.hp = max(0.0, fighter.hp - outcome.dot_damage)
            else:
                outcome.dot_damage = 0.0

        regen = fighter.status_effects.get(StatusType.REGEN)
        if regen is not None:
            heal = self._run_periodic(fighter, regen, now)
            before = fighter.hp
            fighter.hp = min(fighter.max_hp, fighter.hp + heal)
            outcome.healed = fighter.hp - before

        outcome.expired = self._expire(fighter, now)
        outcome.shield_regen = self._regen_shields(fighter, now)
        return outcome

    def _run_periodic(self, fighter: FighterState, effect: StatusEffect, now: float) -> float:
        """Sum a periodic effect over every interval boundary up to now."""
        interval = self.table.status_rule(effect.status_type).tick_interval_ms
        if not interval or effect.last_tick_at is None:
            return 0.0

        total = 0.0
        boundary = effect.last_tick_at + interval
        while boundary <= now:
            total += effect.per_stack_magnitude * effect.active_stacks_at(boundary)
            effect.last_tick_at = boundary
            boundary += interval
        return total

    def _expire(self, fighter: FighterState, now: float) -> list[StatusType]:
        expired = []
        for status_type, effect in list(fighter.status_effects.items()):
            effect.expiries = [e for e in effect.expiries if e is None or e > now]
            if effect.is_empty:
                del fighter.status_effects[status_type]
                expired.append(status_type)
        return expired

    def _regen_shields(self, fighter: FighterState, now: float) -> float:
        last = fighter.last_regen_at
        fighter.last_regen_at = now
        if last is None or fighter.shields >= fighter.max_shields:
            return 0.0
        if fighter.has_status(StatusType.EMP):
            return 0.0

        delay = fighter.shield_regen_delay_ms
        if delay is None:
            delay = self.table.shield_regen.delay_ms
        if fighter.last_damaged_at is not None and now - fighter.last_damaged_at < delay:
            return 0.0

        rate = fighter.shield_regen_rate
        if rate is None:
            rate = self.table.shield_regen.rate_per_second
        before = fighter.shields
        fighter.shields = min(fighter.max_shields, fighter.shields + rate * (now - last) / 1000)
        return fighter.shields - before

    # =========================================================================
    # Modifiers
    # =========================================================================

    def modifiers(self, fighter: FighterState) -> StatusModifiers:
        """Compute combat modifiers from current stack counts."""
        lag = fighter.stacks(StatusType.LAG)
        lag_rule = self.table.lag

        cooldown = 1 + lag_rule.cooldown_increase * lag
        overclock = fighter.status_effects.get(StatusType.OVERCLOCK)
        if overclock and overclock.stacks:
            cooldown *= max(0.0, 1 - overclock.per_stack_magnitude)

        damage = 1.0 + fighter.damage_bonus
        berserk = fighter.status_effects.get(StatusType.BERSERK)
        if berserk and berserk.stacks:
            damage += berserk.per_stack_magnitude

        incoming = 1.0
        fortify = fighter.status_effects.get(StatusType.FORTIFY)
        if fortify and fortify.stacks:
            incoming *= max(0.0, 1 - fortify.per_stack_magnitude)

        return StatusModifiers(
            cooldown_multiplier=cooldown,
            movement_multiplier=max(0.1, 1 - lag_rule.movement_reduction * lag),
            action_fail_chance=min(1.0, lag_rule.action_fail_chance * lag),
            damage_multiplier=damage,
            incoming_multiplier=incoming,
            viral_multiplier=self.table.viral_multiplier(fighter.stacks(StatusType.VIRAL_INFECTION)),
            shield_regen_disabled=fighter.has_status(StatusType.EMP),
            suppressed=any(fighter.has_status(s) for s in SUPPRESSING_STATUSES),
            barrier=fighter.has_status(StatusType.BARRIER),
            invincible=fighter.has_status(StatusType.INVINCIBLE),
        )
