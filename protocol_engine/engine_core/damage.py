"""
Damage Calculator - Layered damage resolution for a single hit.

Damage flows shields -> armor -> HP. Each layer absorbs damage scaled by
that layer's multiplier for the damage type; whatever the layer could not
absorb is converted back to raw damage and passed to the next layer.
"""

from __future__ import annotations

from ..balance import DamageType, InteractionTable, StatusType
from .action import DamageEvent
from .state import FighterState
from .status import StatusModifiers


def _absorb(pool: float, raw: float, multiplier: float) -> tuple[float, float]:
    """
    Run raw damage through one depletable layer.

    Returns (damage dealt to the layer, raw damage left over).
    """
    if pool <= 0 or raw <= 0:
        return 0.0, raw
    if multiplier <= 0:
        return 0.0, 0.0
    effective = raw * multiplier
    absorbed = min(pool, effective)
    return absorbed, (effective - absorbed) / multiplier


def resolve_hit(
    defender: FighterState,
    damage_type: DamageType,
    amount: float,
    attacker: StatusModifiers,
    defender_mods: StatusModifiers,
    table: InteractionTable,
    now: float,
) -> DamageEvent:
    """
    Apply one hit to the defender in place and describe what happened.

    Multipliers are read from the defender's current stacks; statuses
    this hit applies are added afterwards by the caller.
    """
    rule = table.damage_rule(damage_type)

    if defender_mods.invincible:
        return DamageEvent(side=defender.side, damage_type=damage_type, amount=0.0, blocked=True)
    if defender_mods.barrier:
        # Barrier eats exactly one hit
        defender.status_effects.pop(StatusType.BARRIER, None)
        return DamageEvent(side=defender.side, damage_type=damage_type, amount=0.0, blocked=True)

    if rule.bypass_defenses:
        # Converted into burn stacks by the caller
        return DamageEvent(side=defender.side, damage_type=damage_type, amount=0.0)

    raw = amount * attacker.damage_multiplier
    raw *= 1 - defender.resistance(damage_type)
    raw *= defender_mods.incoming_multiplier

    shield_damage, raw = _absorb(defender.shields, raw, rule.shield)
    defender.shields = max(0.0, defender.shields - shield_damage)

    armor_damage, raw = _absorb(defender.armor, raw, rule.armor)
    defender.armor = max(0.0, defender.armor - armor_damage)

    hp_damage = min(defender.hp, raw * rule.hp * defender_mods.viral_multiplier)
    defender.hp = max(0.0, defender.hp - hp_damage)

    total = shield_damage + armor_damage + hp_damage
    if total > 0:
        defender.last_damaged_at = now
        defender.just_took_damage = True
        defender.damage_flag_set_at = now

    return DamageEvent(
        side=defender.side,
        damage_type=damage_type,
        amount=total,
        shield_damage=shield_damage,
        armor_damage=armor_damage,
        hp_damage=hp_damage,
    )
