"""
Constructs - Fighter chassis and enemy archetype definitions.

Constructs come "naked": they define base stats, resistances, a passive
and how many protocols each core can hold, but no protocols.
Enemy archetypes carry their own protocol lists as (trigger, action,
priority) id triples, hydrated against the registries at battle setup.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum

from ..balance import DamageType
from ..engine_core.action import CoreType
from ..engine_core.state import FighterState, Position, Side, back_column
from .registry import Lookup, Registry


class PassiveEffect(str, Enum):
    DEFENSE = "defense"              # Flat resistance to every damage type
    EVASION_BOOST = "evasion_boost"  # Chance to evade each hit
    DAMAGE_BOOST = "damage_boost"    # Outgoing damage bonus


@dataclass(frozen=True)
class Passive:
    name: str
    description: str
    effect: PassiveEffect
    value: float


@dataclass(frozen=True)
class Construct:
    """A player chassis."""
    id: str
    name: str
    description: str
    base_hp: int
    base_shields: int
    base_armor: int
    max_movement_slots: int
    max_tactical_slots: int
    resistances: dict[DamageType, float] = field(default_factory=dict)
    passive: Passive | None = None

    def max_slots(self, core: CoreType) -> int:
        if core is CoreType.MOVEMENT:
            return self.max_movement_slots
        return self.max_tactical_slots

    def build_fighter(self, side: Side = Side.PLAYER, position: Position | None = None) -> FighterState:
        """Fresh full-health fighter with the passive folded in."""
        resistances = dict(self.resistances)
        fighter = FighterState(
            side=side,
            position=position or Position(back_column(side), 1),
            hp=self.base_hp,
            max_hp=self.base_hp,
            shields=self.base_shields,
            max_shields=self.base_shields,
            armor=self.base_armor,
            max_armor=self.base_armor,
            resistances=resistances,
            name=self.name,
            construct_id=self.id,
        )
        if self.passive is None:
            return fighter

        if self.passive.effect is PassiveEffect.DEFENSE:
            for damage_type in DamageType:
                resistances[damage_type] = resistances.get(damage_type, 0.0) + self.passive.value
        elif self.passive.effect is PassiveEffect.EVASION_BOOST:
            fighter.evasion = self.passive.value
        elif self.passive.effect is PassiveEffect.DAMAGE_BOOST:
            fighter.damage_bonus = self.passive.value
        return fighter


class EnemyTier(str, Enum):
    ALPHA = "alpha"
    BETA = "beta"
    GAMMA = "gamma"
    OMEGA = "omega"  # Guardian


@dataclass(frozen=True)
class EnemyArchetype:
    """An enemy with a fixed protocol loadout."""
    id: str
    name: str
    description: str
    tier: EnemyTier
    base_hp: int
    base_shields: int = 0
    base_armor: int = 0
    resistances: dict[DamageType, float] = field(default_factory=dict)
    movement: tuple[tuple[str, str, float], ...] = ()
    tactical: tuple[tuple[str, str, float], ...] = ()

    @property
    def is_guardian(self) -> bool:
        return self.tier is EnemyTier.OMEGA

    def build_fighter(self, position: Position | None = None) -> FighterState:
        return FighterState(
            side=Side.ENEMY,
            position=position or Position(back_column(Side.ENEMY) - 1, 1),
            hp=self.base_hp,
            max_hp=self.base_hp,
            shields=self.base_shields,
            max_shields=self.base_shields,
            armor=self.base_armor,
            max_armor=self.base_armor,
            resistances=dict(self.resistances),
            name=self.name,
        )


# ============================================================================
# Player constructs
# ============================================================================

VANGUARD = Construct(
    id="vanguard",
    name="VANGUARD CONSTRUCT",
    description="Balanced defense platform",
    base_hp=120,
    base_shields=30,
    base_armor=20,
    max_movement_slots=4,
    max_tactical_slots=4,
    resistances={DamageType.KINETIC: 0.1},
    passive=Passive("Fortified Core", "Reduced damage taken", PassiveEffect.DEFENSE, 0.05),
)

SPECTER = Construct(
    id="specter",
    name="SPECTER CONSTRUCT",
    description="High-mobility evasion frame",
    base_hp=90,
    base_shields=40,
    base_armor=10,
    max_movement_slots=6,
    max_tactical_slots=4,
    passive=Passive("Phase Drift", "Chance to evade attacks", PassiveEffect.EVASION_BOOST, 0.1),
)

BREACHER = Construct(
    id="breacher",
    name="BREACHER CONSTRUCT",
    description="Heavy offensive platform",
    base_hp=100,
    base_shields=20,
    base_armor=15,
    max_movement_slots=3,
    max_tactical_slots=6,
    resistances={DamageType.THERMAL: 0.15},
    passive=Passive("Overcharge", "Increased damage output", PassiveEffect.DAMAGE_BOOST, 0.1),
)


# ============================================================================
# Enemy archetypes
# ============================================================================

SENTRY = EnemyArchetype(
    id="sentry-alpha",
    name="Sentry Alpha",
    description="Standard security drone.",
    tier=EnemyTier.ALPHA,
    base_hp=40,
    movement=(("different-row", "jump", 2),),
    tactical=(("same-row", "shoot", 2),),
)

SCRAPPER = EnemyArchetype(
    id="scrapper-alpha",
    name="Scrapper Bot",
    description="Salvage drone that rushes into melee.",
    tier=EnemyTier.ALPHA,
    base_hp=50,
    base_armor=10,
    movement=(("enemy-far", "move-forward", 2), ("different-row", "jump", 1)),
    tactical=(("enemy-close", "sword-slash", 2), ("always", "shoot", 1)),
)

FLOATER = EnemyArchetype(
    id="floater-alpha",
    name="Floater",
    description="Drifting cryo unit that keeps its distance.",
    tier=EnemyTier.ALPHA,
    base_hp=80,
    base_armor=10,
    movement=(("enemy-close", "move-backward", 3), ("different-row", "jump", 2)),
    tactical=(("always", "cryo-field", 2), ("always", "cryo-shot", 1)),
)

HEAVY_LOADER = EnemyArchetype(
    id="scrapper-beta",
    name="Heavy Loader",
    description="Armored hauler that blocks the lane.",
    tier=EnemyTier.BETA,
    base_hp=100,
    base_armor=50,
    resistances={DamageType.KINETIC: 0.3},
    movement=(("enemy-far", "move-forward", 1), ("different-row", "jump", 2)),
    tactical=(("enemy-close", "shockwave", 2), ("always", "power-shot", 1)),
)

WARDEN = EnemyArchetype(
    id="warden-boss",
    name="The Warden",
    description="Sector Firewall. Heavily armored. Vulnerable during energy discharge.",
    tier=EnemyTier.OMEGA,
    base_hp=500,
    base_shields=200,
    base_armor=100,
    resistances={DamageType.KINETIC: 0.8, DamageType.ENERGY: 0.5},
    movement=(("different-row", "jump", 3),),
    tactical=(
        ("enemy-close", "shockwave-blast", 4),
        ("same-row", "railgun", 3),
        ("always", "laser-shot", 2),
        ("always", "shield", 1),
    ),
)

REVENANT = EnemyArchetype(
    id="revenant-omega",
    name="The Revenant",
    description="A rogue program. Warps the arena with dark energy.",
    tier=EnemyTier.OMEGA,
    base_hp=800,
    base_shields=300,
    base_armor=150,
    resistances={
        DamageType.KINETIC: 0.5,
        DamageType.ENERGY: 0.5,
        DamageType.CONCUSSION: 0.8,
    },
    movement=(("enemy-far", "move-forward", 2), ("always", "dodge", 1)),
    tactical=(
        ("low-hp", "spread-shot", 4),
        ("always", "bomb", 3),
        ("always", "cryo-field", 2),
        ("always", "plasma-cannon", 1),
    ),
)


class ConstructCatalog(Registry[Construct]):
    """Player constructs, keyed by id."""

    @classmethod
    def default(cls) -> ConstructCatalog:
        return cls([VANGUARD, SPECTER, BREACHER])

    def get(self, construct_id: str) -> Lookup[Construct]:
        return self.lookup(construct_id)


class EnemyCatalog(Registry[EnemyArchetype]):
    """Enemy archetypes, keyed by id."""

    @classmethod
    def default(cls) -> EnemyCatalog:
        return cls([SENTRY, SCRAPPER, FLOATER, HEAVY_LOADER, WARDEN, REVENANT])

    def guardians(self) -> list[EnemyArchetype]:
        return [e for e in self if e.is_guardian]

    def for_tier(self, tier: EnemyTier | str) -> list[EnemyArchetype]:
        tier = EnemyTier(tier)
        return [e for e in self if e.tier is tier]

    def get(self, enemy_id: str) -> Lookup[EnemyArchetype]:
        return self.lookup(enemy_id)
