"""
Combat Reducer - Applies effect descriptors to battle state.

The reducer is the single point of combat state mutation.
All combat changes must go through apply().

Design principles:
- Pure function: (state, side, effect) -> new_state
- Works on a clone; the caller swaps the new state in
- Returns ResolutionResult with success/failure
- One handler per effect component
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Callable

from ..balance import InteractionTable, StatusType, default_table
from .action import EffectDescriptor, HitPattern, ResolutionResult, StatusTarget
from .damage import resolve_hit
from .state import BattleState, FighterState, Side, in_territory
from .status import StatusEngine

logger = logging.getLogger(__name__)


@dataclass
class _Resolution:
    """Accumulates what the handlers did to the working state."""
    changes: list[str] = field(default_factory=list)
    damage_events: list = field(default_factory=list)
    status_applied: list[StatusType] = field(default_factory=list)


def hits_target(attacker: FighterState, defender: FighterState, pattern: HitPattern, reach: int) -> bool:
    """Instant hit test: no travel time, no dodging in flight."""
    same_row = attacker.position.y == defender.position.y
    distance = abs(attacker.position.x - defender.position.x)
    if pattern is HitPattern.ALL_ROWS:
        return True
    if pattern is HitPattern.ROW:
        return same_row
    if pattern is HitPattern.MELEE:
        return same_row and distance <= reach
    if pattern is HitPattern.COLUMN:
        return distance <= reach
    return False


class CombatReducer:
    """
    Reducer applies effects to battle state.

    Stateless - all state is in BattleState.
    The interaction table provides every balance number.
    """

    def __init__(self, table: InteractionTable | None = None, status_engine: StatusEngine | None = None):
        self.table = table or default_table()
        self.status_engine = status_engine or StatusEngine(self.table)

    def apply(self, state: BattleState, side: Side, effect: EffectDescriptor) -> ResolutionResult:
        """
        Apply an effect fired by `side` to the battle state.

        Returns ResolutionResult with the new state or an error;
        on error the given state is untouched.
        """
        working = state.clone()
        acc = _Resolution()

        try:
            for component, handler in self._handlers():
                if self._has_component(effect, component):
                    handler(working, side, effect, acc)
        except Exception as e:
            logger.warning("Effect %s from %s failed: %s", effect.effect_type, side.value, e)
            return ResolutionResult.failure(str(e), error_code="HANDLER_ERROR")

        return ResolutionResult.success_with_state(
            working,
            changes=acc.changes,
            damage_events=acc.damage_events,
            status_applied=acc.status_applied,
        )

    def _handlers(self) -> list[tuple[str, Callable]]:
        """Effect components in resolution order."""
        return [
            ("move_to", self._handle_move),
            ("damage", self._handle_damage),
            ("heal", self._handle_heal),
            ("heal_over_time", self._handle_heal_over_time),
            ("status", self._handle_status),
        ]

    @staticmethod
    def _has_component(effect: EffectDescriptor, component: str) -> bool:
        if component == "heal":
            return effect.heal > 0
        return getattr(effect, component) is not None

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_move(self, state: BattleState, side: Side, effect: EffectDescriptor, acc: _Resolution) -> None:
        """Handle a movement request."""
        mover = state.fighter(side)
        target = effect.move_to

        if mover.corrupt_next_move:
            mover.corrupt_next_move = False
            acc.changes.append(f"{side.value} movement corrupted")
            return

        if not in_territory(target, side):
            acc.changes.append(f"{side.value} move to ({target.x}, {target.y}) rejected")
            return

        mover.position = target
        acc.changes.append(f"{side.value} moved to ({target.x}, {target.y})")

    def _handle_damage(self, state: BattleState, side: Side, effect: EffectDescriptor, acc: _Resolution) -> None:
        """Handle every hit of a damage effect in sequence."""
        spec = effect.damage
        attacker = state.fighter(side)
        defender = state.fighter(side.opponent)
        rule = self.table.damage_rule(spec.damage_type)
        rng = state.context_for(side).rng(effect.effect_type)
        attacker_mods = self.status_engine.modifiers(attacker)

        for _ in range(max(1, spec.hits)):
            if not defender.is_alive:
                break
            if not hits_target(attacker, defender, spec.pattern, spec.range):
                acc.changes.append(f"{effect.effect_type} missed")
                continue
            if defender.evasion > 0 and rng.random() < defender.evasion:
                acc.changes.append(f"{side.opponent.value} evaded {effect.effect_type}")
                continue

            event = resolve_hit(
                defender,
                spec.damage_type,
                spec.amount,
                attacker_mods,
                self.status_engine.modifiers(defender),
                self.table,
                state.now,
            )
            acc.damage_events.append(event)
            if event.blocked:
                acc.changes.append(f"{effect.effect_type} blocked")
                continue
            acc.changes.append(f"{effect.effect_type} dealt {event.amount:g} {spec.damage_type.value}")

            # New stacks land after this hit's damage was computed
            if rule.status is None:
                continue
            if rule.bypass_defenses or (spec.status_chance > 0 and rng.random() < spec.status_chance):
                self.status_engine.apply(defender, rule.status, state.now)
                acc.status_applied.append(rule.status)

    def _handle_heal(self, state: BattleState, side: Side, effect: EffectDescriptor, acc: _Resolution) -> None:
        """Handle instant healing, capped at max HP."""
        fighter = state.fighter(side)
        before = fighter.hp
        fighter.hp = min(fighter.max_hp, fighter.hp + effect.heal)
        acc.changes.append(f"{side.value} healed {fighter.hp - before:g}")

    def _handle_heal_over_time(
        self, state: BattleState, side: Side, effect: EffectDescriptor, acc: _Resolution
    ) -> None:
        """Heal over time is a regen stack carrying the per-tick amount."""
        hot = effect.heal_over_time
        fighter = state.fighter(side)
        self.status_engine.apply(
            fighter, StatusType.REGEN, state.now,
            duration_ms=hot.duration_ms, magnitude=hot.amount_per_tick,
        )
        acc.status_applied.append(StatusType.REGEN)

    def _handle_status(self, state: BattleState, side: Side, effect: EffectDescriptor, acc: _Resolution) -> None:
        """Handle a buff on self or a debuff on the opponent."""
        spec = effect.status
        target_side = side if spec.target is StatusTarget.SELF else side.opponent
        target = state.fighter(target_side)
        for _ in range(max(1, spec.stacks)):
            self.status_engine.apply(
                target, spec.status_type, state.now,
                duration_ms=spec.duration_ms, magnitude=spec.magnitude,
            )
        acc.status_applied.append(spec.status_type)
        acc.changes.append(f"{spec.status_type.value} applied to {target_side.value}")


def apply_effect(
    state: BattleState,
    side: Side,
    effect: EffectDescriptor,
    table: InteractionTable | None = None,
) -> ResolutionResult:
    """Convenience function to apply one effect."""
    return CombatReducer(table).apply(state, side, effect)
