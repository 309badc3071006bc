"""
Interaction Table - Data-driven damage matrix and status effect rules.

Every balance number the combat engine uses lives here:
- Per damage type: multiplier vs shield / armor / exposed HP
- Which damage type applies which status, and whether it bypasses defenses
- Per status type: stack cap, per-stack duration, magnitude
- Stack ladders (viral amplification), corrosive strip fraction, lag modifiers

Design decisions:
- Versioned: a table carries a version string so saved balance data
  can be told apart
- Plain dataclasses: the engine reads attributes, never dict keys
- Loadable from JSON so balance changes don't require code edits
"""

from __future__ import annotations
import json
from dataclasses import asdict, dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


TABLE_VERSION = "1.0.0"


class DamageType(str, Enum):
    """Elemental damage types."""
    KINETIC = "kinetic"
    ENERGY = "energy"
    THERMAL = "thermal"
    VIRAL = "viral"
    CORROSIVE = "corrosive"
    CONCUSSION = "concussion"
    GLACIAL = "glacial"


class StatusType(str, Enum):
    """Status effect types tracked by the status engine."""
    # Elemental debuffs
    BURN = "burn"
    EMP = "emp"
    VIRAL_INFECTION = "viral_infection"
    CORRODE = "corrode"
    DISPLACE = "displace"
    LAG = "lag"

    # Control effects (suppress protocol firing)
    STUN = "stun"
    DISABLE = "disable"

    # Buffs
    BERSERK = "berserk"
    OVERCLOCK = "overclock"
    FORTIFY = "fortify"
    BARRIER = "barrier"
    INVINCIBLE = "invincible"
    REGEN = "regen"


@dataclass
class DamageTypeRule:
    """
    How one damage type interacts with each defense layer.

    A bypassing type never touches shields or armor: its hit is
    converted into stacks of `status` instead of instant damage.
    """
    shield: float = 1.0
    armor: float = 1.0
    hp: float = 1.0
    status: StatusType | None = None
    bypass_defenses: bool = False


@dataclass
class StatusRule:
    """
    Stacking rules for one status type.

    duration_ms=None means stacks never expire during the battle.
    max_stacks=None means stacking is uncapped.
    """
    max_stacks: int | None = 1
    duration_ms: float | None = 1000.0
    magnitude: float = 0.0
    tick_interval_ms: float | None = None  # Periodic effects only
    suppresses_protocols: bool = False


@dataclass
class LagRule:
    """Per-stack lag modifiers."""
    cooldown_increase: float = 0.15
    movement_reduction: float = 0.10
    action_fail_chance: float = 0.05


@dataclass
class ShieldRegenRule:
    """Default shield regeneration for fighters without their own values."""
    rate_per_second: float = 2.0
    delay_ms: float = 3000.0


@dataclass
class InteractionTable:
    """
    Complete balance table consumed by the combat and status engines.

    Usage:
        table = default_table()
        rule = table.damage_rule(DamageType.ENERGY)
        cap = table.status_rule(StatusType.BURN).max_stacks
    """
    version: str = TABLE_VERSION
    damage_types: dict[DamageType, DamageTypeRule] = field(default_factory=dict)
    statuses: dict[StatusType, StatusRule] = field(default_factory=dict)

    # Viral HP-damage multiplier indexed by stack count (index 0 = no stacks)
    viral_ladder: list[float] = field(default_factory=lambda: [1.0])

    # Corrosive armor strip: fraction of current armor, never less than min
    corrosive_strip_fraction: float = 0.10
    corrosive_min_strip: int = 1

    # Displace: tiles pushed, larger push once the target already has N stacks
    displace_push: int = 1
    displace_push_heavy: int = 2
    displace_heavy_after_stacks: int = 2

    # EMP instant drain as a fraction of current shields
    emp_shield_drain: float = 0.08

    lag: LagRule = field(default_factory=LagRule)
    shield_regen: ShieldRegenRule = field(default_factory=ShieldRegenRule)

    def damage_rule(self, damage_type: DamageType | str | None) -> DamageTypeRule:
        """Get the rule for a damage type; untyped damage behaves like kinetic."""
        if damage_type is None:
            return self.damage_types.get(DamageType.KINETIC, DamageTypeRule())
        return self.damage_types.get(DamageType(damage_type), DamageTypeRule())

    def status_rule(self, status_type: StatusType | str) -> StatusRule:
        """Get the stacking rule for a status type."""
        return self.statuses.get(StatusType(status_type), StatusRule())

    def viral_multiplier(self, stacks: int) -> float:
        """HP damage multiplier for the given number of viral stacks."""
        if stacks <= 0 or not self.viral_ladder:
            return 1.0
        return self.viral_ladder[min(stacks, len(self.viral_ladder) - 1)]

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-compatible dict."""
        data = asdict(self)
        data["damage_types"] = {
            dt.value: _enum_values(asdict(rule))
            for dt, rule in self.damage_types.items()
        }
        data["statuses"] = {st.value: asdict(rule) for st, rule in self.statuses.items()}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InteractionTable:
        """Build a table from a dict, filling missing sections from defaults."""
        base = default_table()

        damage_types = dict(base.damage_types)
        for name, raw in data.get("damage_types", {}).items():
            raw = dict(raw)
            if raw.get("status") is not None:
                raw["status"] = StatusType(raw["status"])
            damage_types[DamageType(name)] = DamageTypeRule(**raw)

        statuses = dict(base.statuses)
        for name, raw in data.get("statuses", {}).items():
            statuses[StatusType(name)] = StatusRule(**raw)

        return cls(
            version=data.get("version", base.version),
            damage_types=damage_types,
            statuses=statuses,
            viral_ladder=list(data.get("viral_ladder", base.viral_ladder)),
            corrosive_strip_fraction=data.get(
                "corrosive_strip_fraction", base.corrosive_strip_fraction
            ),
            corrosive_min_strip=data.get("corrosive_min_strip", base.corrosive_min_strip),
            displace_push=data.get("displace_push", base.displace_push),
            displace_push_heavy=data.get("displace_push_heavy", base.displace_push_heavy),
            displace_heavy_after_stacks=data.get(
                "displace_heavy_after_stacks", base.displace_heavy_after_stacks
            ),
            emp_shield_drain=data.get("emp_shield_drain", base.emp_shield_drain),
            lag=LagRule(**data["lag"]) if "lag" in data else base.lag,
            shield_regen=(
                ShieldRegenRule(**data["shield_regen"])
                if "shield_regen" in data else base.shield_regen
            ),
        )


def _enum_values(data: dict[str, Any]) -> dict[str, Any]:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


def default_table() -> InteractionTable:
    """
    The shipped balance table.

    Returns a fresh instance every call so tests and battles can
    tweak their own copy.
    """
    return InteractionTable(
        version=TABLE_VERSION,
        damage_types={
            DamageType.KINETIC: DamageTypeRule(1.0, 1.0, 1.0),
            DamageType.ENERGY: DamageTypeRule(2.0, 0.5, 1.0, status=StatusType.EMP),
            DamageType.THERMAL: DamageTypeRule(
                1.0, 1.0, 1.0, status=StatusType.BURN, bypass_defenses=True
            ),
            DamageType.VIRAL: DamageTypeRule(1.0, 1.0, 1.0, status=StatusType.VIRAL_INFECTION),
            DamageType.CORROSIVE: DamageTypeRule(1.0, 1.0, 1.0, status=StatusType.CORRODE),
            DamageType.CONCUSSION: DamageTypeRule(0.9, 1.0, 1.25, status=StatusType.DISPLACE),
            DamageType.GLACIAL: DamageTypeRule(0.9, 1.0, 1.0, status=StatusType.LAG),
        },
        statuses={
            StatusType.BURN: StatusRule(
                max_stacks=5, duration_ms=4000, magnitude=2, tick_interval_ms=500
            ),
            StatusType.EMP: StatusRule(max_stacks=5, duration_ms=5000),
            StatusType.VIRAL_INFECTION: StatusRule(max_stacks=5, duration_ms=10000),
            StatusType.CORRODE: StatusRule(max_stacks=None, duration_ms=None),
            StatusType.DISPLACE: StatusRule(max_stacks=3, duration_ms=5500),
            StatusType.LAG: StatusRule(max_stacks=5, duration_ms=6000),
            StatusType.STUN: StatusRule(max_stacks=1, duration_ms=1000, suppresses_protocols=True),
            StatusType.DISABLE: StatusRule(max_stacks=1, duration_ms=1500, suppresses_protocols=True),
            StatusType.BERSERK: StatusRule(max_stacks=1, duration_ms=5000, magnitude=0.5),
            StatusType.OVERCLOCK: StatusRule(max_stacks=1, duration_ms=4000, magnitude=0.3),
            StatusType.FORTIFY: StatusRule(max_stacks=1, duration_ms=3000, magnitude=0.5),
            StatusType.BARRIER: StatusRule(max_stacks=1, duration_ms=3000),
            StatusType.INVINCIBLE: StatusRule(max_stacks=1, duration_ms=2000),
            StatusType.REGEN: StatusRule(
                max_stacks=1, duration_ms=5000, magnitude=3, tick_interval_ms=1000
            ),
        },
        viral_ladder=[1.0, 1.2, 1.35, 1.5, 1.75, 2.0],
    )


def load_table(path: str | Path) -> InteractionTable:
    """Load a balance table from a JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return InteractionTable.from_dict(json.load(f))
