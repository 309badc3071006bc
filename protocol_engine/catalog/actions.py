"""
Action Catalog - Action definitions built from factories.

Actions are grouped by what they deal:
- movement
- kinetic, thermal, energy, corrosive, viral, glacial, concussion
- utility (heals, buffs, control)

Every action only describes its effect. Movement targets are clamped to
the actor's half of the grid; random movement draws from the context's
seeded generator so the same context always yields the same tile.
"""

from __future__ import annotations

from ..balance import DamageType, StatusType
from ..engine_core.action import (
    CoreType,
    DamageSpec,
    EffectDescriptor,
    HealOverTime,
    HitPattern,
    StatusSpec,
    StatusTarget,
)
from ..engine_core.protocol import Action
from ..engine_core.state import (
    GRID_HEIGHT,
    BattleContext,
    Position,
    clamp_to_territory,
    column_bounds,
    forward,
    in_territory,
)
from .registry import Lookup, Registry


# ============================================================================
# Damage factories
# ============================================================================

def _damage_action(
    action_id: str,
    name: str,
    description: str,
    cooldown: float,
    effect_type: str,
    damage: DamageSpec,
) -> Action:
    return Action(
        id=action_id,
        name=name,
        description=description,
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        damage_type=damage.damage_type,
        group=damage.damage_type.value,
        build=lambda ctx: EffectDescriptor(effect_type=effect_type, damage=damage),
    )


def shoot(action_id: str, name: str, damage: float, damage_type: DamageType,
          cooldown: float, status_chance: float = 0.0) -> Action:
    """Single shot along the row."""
    return _damage_action(
        action_id, name, f"{name} ({damage:g} damage)", cooldown, "shoot",
        DamageSpec(damage, damage_type, status_chance=status_chance),
    )


def rapid_fire(action_id: str, name: str, damage: float, count: int,
               damage_type: DamageType, cooldown: float, status_chance: float = 0.0) -> Action:
    return _damage_action(
        action_id, name, f"{name} ({count} shots, {damage:g} damage each)", cooldown, "rapid-fire",
        DamageSpec(damage, damage_type, hits=count, status_chance=status_chance),
    )


def wave(action_id: str, name: str, damage: float, damage_type: DamageType,
         cooldown: float, status_chance: float = 0.0) -> Action:
    return _damage_action(
        action_id, name, f"{name} ({damage:g} damage across row)", cooldown, "wave",
        DamageSpec(damage, damage_type, status_chance=status_chance),
    )


def spread(action_id: str, name: str, damage: float, damage_type: DamageType,
           cooldown: float, status_chance: float = 0.0, effect_type: str = "spread") -> Action:
    """Covers all three rows, so it always connects."""
    return _damage_action(
        action_id, name, f"{name} (hits all rows, {damage:g} damage)", cooldown, effect_type,
        DamageSpec(damage, damage_type, pattern=HitPattern.ALL_ROWS, status_chance=status_chance),
    )


def triple_shot(action_id: str, name: str, damage: float, damage_type: DamageType,
                cooldown: float, status_chance: float = 0.0) -> Action:
    return spread(action_id, name, damage, damage_type, cooldown, status_chance, effect_type="triple-shot")


def bomb(action_id: str, name: str, damage: float, damage_type: DamageType,
         cooldown: float, status_chance: float = 0.0) -> Action:
    """Lobbed at the enemy's tile; lands instantly."""
    return _damage_action(
        action_id, name, f"{name} ({damage:g} damage on target tile)", cooldown, "bomb",
        DamageSpec(damage, damage_type, pattern=HitPattern.ALL_ROWS, status_chance=status_chance),
    )


def field_action(action_id: str, name: str, damage: float, damage_type: DamageType,
                 cooldown: float, duration: float, status_chance: float = 0.0) -> Action:
    """A zone on the enemy's tile that pulses every 500 ms for its duration."""
    pulses = max(1, int(duration // 500))
    return _damage_action(
        action_id, name, f"{name} ({damage:g} damage x{pulses} over {duration / 1000:g}s)", cooldown, "field",
        DamageSpec(damage, damage_type, hits=pulses, pattern=HitPattern.ALL_ROWS, status_chance=status_chance),
    )


def melee(action_id: str, name: str, damage: float, damage_type: DamageType,
          cooldown: float, reach: int = 1, status_chance: float = 0.0, wide: bool = False) -> Action:
    """Close-range strike; wide strikes hit every row in reach."""
    pattern = HitPattern.COLUMN if wide else HitPattern.MELEE
    return _damage_action(
        action_id, name, f"{name} ({damage:g} damage at range {reach})", cooldown,
        "wide-melee" if wide else "melee",
        DamageSpec(damage, damage_type, pattern=pattern, range=reach, status_chance=status_chance),
    )


def drain(action_id: str, name: str, damage: float, heal: float, damage_type: DamageType,
          cooldown: float, status_chance: float = 0.0) -> Action:
    spec = DamageSpec(damage, damage_type, status_chance=status_chance)
    return Action(
        id=action_id,
        name=name,
        description=f"{name} ({damage:g} damage, heal {heal:g} HP)",
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        damage_type=damage_type,
        group=damage_type.value,
        build=lambda ctx: EffectDescriptor(effect_type="drain", damage=spec, heal=heal),
    )


def step_attack(action_id: str, name: str, damage: float, damage_type: DamageType,
                cooldown: float, step: int) -> Action:
    """Move `step` tiles toward the enemy (negative = away) and fire."""
    spec = DamageSpec(damage, damage_type)

    def build(ctx: BattleContext) -> EffectDescriptor:
        target = clamp_to_territory(ctx.me.position.moved(dx=forward(ctx.side) * step), ctx.side)
        return EffectDescriptor(effect_type=action_id, damage=spec, move_to=target)

    return Action(
        id=action_id,
        name=name,
        description=f"{name} ({damage:g} damage)",
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        damage_type=damage_type,
        group=damage_type.value,
        build=build,
    )


# ============================================================================
# Support factories
# ============================================================================

def heal(action_id: str, name: str, amount: float, cooldown: float) -> Action:
    return Action(
        id=action_id,
        name=name,
        description=f"Restore {amount:g} HP",
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        build=lambda ctx: EffectDescriptor(effect_type="heal", heal=amount),
    )


def heal_over_time(action_id: str, name: str, per_tick: float, duration: float, cooldown: float) -> Action:
    hot = HealOverTime(amount_per_tick=per_tick, duration_ms=duration)
    return Action(
        id=action_id,
        name=name,
        description=f"Heal {per_tick:g} HP per second for {duration / 1000:g} seconds",
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        build=lambda ctx: EffectDescriptor(effect_type="heal-over-time", heal_over_time=hot),
    )


def buff(action_id: str, name: str, description: str, status_type: StatusType,
         cooldown: float, duration: float | None = None, magnitude: float | None = None) -> Action:
    spec = StatusSpec(status_type, StatusTarget.SELF, duration_ms=duration, magnitude=magnitude)
    return Action(
        id=action_id,
        name=name,
        description=description,
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        build=lambda ctx: EffectDescriptor(effect_type="buff", status=spec),
    )


def debuff(action_id: str, name: str, description: str, status_type: StatusType,
           cooldown: float, duration: float | None = None) -> Action:
    spec = StatusSpec(status_type, StatusTarget.OPPONENT, duration_ms=duration)
    return Action(
        id=action_id,
        name=name,
        description=description,
        cooldown_ms=cooldown,
        core_type=CoreType.TACTICAL,
        build=lambda ctx: EffectDescriptor(effect_type="status", status=spec),
    )


# ============================================================================
# Movement
# ============================================================================

def move(action_id: str, name: str, description: str, cooldown: float, target) -> Action:
    """target(ctx) -> Position; the result is clamped to the actor's half."""
    def build(ctx: BattleContext) -> EffectDescriptor:
        return EffectDescriptor(effect_type="move", move_to=clamp_to_territory(target(ctx), ctx.side))

    return Action(
        id=action_id,
        name=name,
        description=description,
        cooldown_ms=cooldown,
        core_type=CoreType.MOVEMENT,
        group="movement",
        build=build,
    )


def _toward_row(ctx: BattleContext) -> Position:
    pos, enemy_y = ctx.me.position, ctx.opponent.position.y
    if pos.y < enemy_y:
        return pos.moved(dy=1)
    return pos.moved(dy=-1)


def _dodge(ctx: BattleContext) -> Position:
    pos = ctx.me.position
    options = [
        p for p in (pos.moved(dy=-1), pos.moved(dy=1), pos.moved(dx=-1), pos.moved(dx=1))
        if in_territory(p, ctx.side)
    ]
    if not options:
        return pos
    return ctx.rng("dodge").choice(options)


def _teleport(ctx: BattleContext) -> Position:
    low, high = column_bounds(ctx.side)
    rng = ctx.rng("teleport")
    return Position(rng.randint(low, high), rng.randrange(GRID_HEIGHT))


MOVEMENT_ACTIONS = [
    move("move-forward", "Move Forward", "Move one tile toward the enemy", 300,
         lambda ctx: ctx.me.position.moved(dx=forward(ctx.side))),
    move("move-backward", "Move Backward", "Move one tile away from the enemy", 300,
         lambda ctx: ctx.me.position.moved(dx=-forward(ctx.side))),
    move("move-up", "Move Up", "Move to the row above (or toward enemy row)", 300, _toward_row),
    move("move-down", "Move Down", "Move to the row below", 300,
         lambda ctx: ctx.me.position.moved(dy=1)),
    move("strafe-left", "Strafe Left", "Quick sideways movement to avoid attacks", 400,
         lambda ctx: ctx.me.position.moved(dy=-1)),
    move("strafe-right", "Strafe Right", "Quick sideways movement to reposition", 400,
         lambda ctx: ctx.me.position.moved(dy=1)),
    move("dash-forward", "Dash Forward", "Quickly close distance (moves 1 tile forward)", 2500,
         lambda ctx: ctx.me.position.moved(dx=forward(ctx.side))),
    move("jump", "Jump", "Leap to align with enemy row", 500,
         lambda ctx: Position(ctx.me.position.x, ctx.opponent.position.y)),
    move("dodge", "Dodge", "Quickly move to a random adjacent tile", 600, _dodge),
    move("teleport", "Teleport", "Instantly move to a random position", 3000, _teleport),
]


# ============================================================================
# Damage groups
# ============================================================================

K, T, E, C, V, G, X = (
    DamageType.KINETIC,
    DamageType.THERMAL,
    DamageType.ENERGY,
    DamageType.CORROSIVE,
    DamageType.VIRAL,
    DamageType.GLACIAL,
    DamageType.CONCUSSION,
)

KINETIC_ACTIONS = [
    shoot("shoot", "Shoot", 10, K, 1000),
    rapid_fire("rapid-fire", "Rapid Fire", 5, 3, K, 2500),
    rapid_fire("burst-fire", "Burst Fire", 4, 5, K, 3000),
    shoot("kinetic-shot", "Kinetic Shot", 12, K, 1200),
    shoot("power-shot", "Power Shot", 25, K, 2000),
    shoot("railgun", "Railgun", 28, K, 2800),
    shoot("sniper-shot", "Sniper Shot", 30, K, 2500),
    shoot("shotgun-blast", "Shotgun Blast", 32, K, 2200),
    wave("wave-attack", "Wave Attack", 18, K, 2500),
    wave("shockwave", "Shockwave", 20, K, 2200),
    rapid_fire("vulcan", "Vulcan", 3, 8, K, 4000),
    step_attack("dash-attack", "Dash Attack", 15, K, 2000, step=1),
    step_attack("retreat-shot", "Retreat Shot", 12, K, 1800, step=-1),
    melee("sword-slash", "Sword Slash", 35, K, 1500),
    melee("wide-slash", "Wide Slash", 30, K, 2000, wide=True),
    triple_shot("triple-shot", "Triple Shot", 15, K, 2800),
    spread("spread-shot", "Spread Shot", 12, K, 3000),
]

THERMAL_ACTIONS = [
    shoot("flame-shot", "Flame Shot", 10, T, 1400, 0.5),
    rapid_fire("flame-burst", "Flame Burst", 6, 5, T, 3500, 0.4),
    shoot("inferno-blast", "Inferno Blast", 30, T, 3200, 0.8),
    wave("molten-wave", "Molten Wave", 24, T, 3000, 1.0),
    field_action("firewall", "Firewall", 8, T, 4500, 4000, 0.9),
    spread("dragon-breath", "Dragon Breath", 40, T, 4500, 0.85),
]

ENERGY_ACTIONS = [
    shoot("laser-shot", "Laser Shot", 12, E, 1200, 0.5),
    shoot("plasma-cannon", "Plasma Cannon", 35, E, 3000, 0.7),
    rapid_fire("overcharge-beam", "Overcharge Beam", 7, 6, E, 3800, 0.6),
    wave("emp-pulse", "EMP Pulse", 20, E, 3500, 1.0),
    field_action("tesla-coil", "Tesla Coil", 10, E, 4200, 4000, 0.85),
    spread("chain-lightning", "Chain Lightning", 18, E, 3200, 0.8),
]

CORROSIVE_ACTIONS = [
    shoot("acid-shot", "Acid Shot", 10, C, 1500, 0.5),
    shoot("corrosive-armor-piercer", "Armor Piercer (Corrosive)", 25, C, 2800, 0.9),
    rapid_fire("acid-rain", "Acid Rain", 7, 5, C, 3400, 0.6),
    wave("corrosion-wave", "Corrosion Wave", 22, C, 2600, 0.6),
    shoot("meltdown", "Meltdown", 38, C, 4000, 1.0),
    field_action("toxic-cloud", "Toxic Cloud", 12, C, 4000, 4000, 0.8),
]

VIRAL_ACTIONS = [
    shoot("viral-dart", "Viral Dart", 8, V, 1600, 0.6),
    rapid_fire("parasitic-swarm", "Parasitic Swarm", 4, 7, V, 3600, 0.5),
    wave("contagion", "Contagion", 22, V, 3000, 0.85),
    bomb("plague-bomb", "Plague Bomb", 25, V, 3500, 0.8),
    drain("drain-shot", "Drain Shot", 15, 10, V, 3000),
    drain("necrotic-strike", "Necrotic Strike", 20, 15, V, 3500, 0.7),
]

GLACIAL_ACTIONS = [
    shoot("cryo-shot", "Cryo Shot", 12, G, 1600, 0.7),
    shoot("absolute-zero", "Absolute Zero", 35, G, 4000, 1.0),
    wave("blizzard", "Blizzard", 18, G, 3500, 0.8),
    wave("glacial-spike", "Glacial Spike", 26, G, 2800, 0.75),
    field_action("cryo-field", "Cryo Field", 5, G, 4000, 5000, 1.0),
    triple_shot("ice-shard-barrage", "Ice Shard Barrage", 14, G, 3000, 0.7),
]

CONCUSSION_ACTIONS = [
    bomb("bomb", "Bomb", 35, X, 3000, 0.5),
    bomb("frag-grenade", "Frag Grenade", 40, X, 3000, 0.6),
    wave("shockwave-blast", "Shockwave Blast", 28, X, 2800, 0.7),
    field_action("resonance-field", "Resonance Field", 10, X, 4200, 4000, 0.8),
    rapid_fire("concussive-barrage", "Concussive Barrage", 8, 6, X, 3800, 0.35),
    melee("impact-hammer", "Impact Hammer", 45, X, 3200, status_chance=0.85),
    spread("seismic-charge", "Seismic Charge", 50, X, 4500, 0.9),
]

UTILITY_ACTIONS = [
    heal("heal", "Heal", 20, 5000),
    heal("mega-heal", "Mega Heal", 40, 8000),
    heal_over_time("regen", "Regen", 3, 5000, 5000),
    heal_over_time("area-heal", "Area Heal", 5, 4000, 6000),
    buff("shield", "Shield", "Reduce incoming damage by 50% for 3 seconds",
         StatusType.FORTIFY, 5000, duration=3000, magnitude=0.5),
    buff("barrier", "Barrier", "Block the next incoming attack",
         StatusType.BARRIER, 4000, duration=3000),
    buff("berserk", "Berserk", "Increase damage by 50% for 5 seconds",
         StatusType.BERSERK, 6000, duration=5000, magnitude=0.5),
    buff("speed-boost", "Speed Boost", "Reduce all cooldowns by 30% for 4 seconds",
         StatusType.OVERCLOCK, 7000, duration=4000, magnitude=0.3),
    buff("invincibility", "Invincibility", "Become invulnerable for 2 seconds",
         StatusType.INVINCIBLE, 10000, duration=2000),
    debuff("system-lock", "System Lock", "Disable the enemy's protocols for 1.5 seconds",
           StatusType.DISABLE, 6000, duration=1500),
    debuff("stun-pulse", "Stun Pulse", "Stun the enemy for 1 second",
           StatusType.STUN, 7000, duration=1000),
]

ACTION_GROUPS = {
    "movement": MOVEMENT_ACTIONS,
    "kinetic": KINETIC_ACTIONS,
    "thermal": THERMAL_ACTIONS,
    "energy": ENERGY_ACTIONS,
    "corrosive": CORROSIVE_ACTIONS,
    "viral": VIRAL_ACTIONS,
    "glacial": GLACIAL_ACTIONS,
    "concussion": CONCUSSION_ACTIONS,
    "utility": UTILITY_ACTIONS,
}


class ActionCatalog(Registry[Action]):
    """
    All known actions, keyed by id.

    Usage:
        catalog = ActionCatalog.default()
        catalog.for_core(CoreType.MOVEMENT)
    """

    @classmethod
    def default(cls) -> ActionCatalog:
        return cls([action for group in ACTION_GROUPS.values() for action in group])

    def for_core(self, core_type: CoreType | str) -> list[Action]:
        core_type = CoreType(core_type)
        return [a for a in self if a.core_type is core_type]

    def group(self, name: str) -> list[Action]:
        return [a for a in self if a.group == name]

    def get(self, action_id: str) -> Lookup[Action]:
        return self.lookup(action_id)
