"""
Battle State - Canonical combat state for one battle.

Design principles:
- One schema: every legacy field name is folded in by normalize_state_payload()
- Immutable-friendly: the reducer works on clone() and swaps the result in
- Serializable: plain dataclasses, enums with string values
- Actor-relative reads go through BattleContext, never through raw state
"""

from __future__ import annotations
import logging
import random
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..balance import DamageType, StatusType

logger = logging.getLogger(__name__)


GRID_WIDTH = 6
GRID_HEIGHT = 3


class Side(str, Enum):
    """The two sides of a battle."""
    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> Side:
        return Side.ENEMY if self is Side.PLAYER else Side.PLAYER


@dataclass(frozen=True)
class Position:
    """A grid tile: x in [0, 5], y in [0, 2]."""
    x: int
    y: int

    def moved(self, dx: int = 0, dy: int = 0) -> Position:
        return Position(self.x + dx, self.y + dy)

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y}


def column_bounds(side: Side) -> tuple[int, int]:
    """Inclusive x range of a side's half of the grid."""
    if side is Side.PLAYER:
        return 0, GRID_WIDTH // 2 - 1
    return GRID_WIDTH // 2, GRID_WIDTH - 1


def front_column(side: Side) -> int:
    """Column closest to the opponent."""
    low, high = column_bounds(side)
    return high if side is Side.PLAYER else low


def back_column(side: Side) -> int:
    """Column furthest from the opponent."""
    low, high = column_bounds(side)
    return low if side is Side.PLAYER else high


def forward(side: Side) -> int:
    """x direction that moves a side toward its opponent."""
    return 1 if side is Side.PLAYER else -1


def in_bounds(pos: Position) -> bool:
    return 0 <= pos.x < GRID_WIDTH and 0 <= pos.y < GRID_HEIGHT


def in_territory(pos: Position, side: Side) -> bool:
    """Check the position is on the grid and inside the side's half."""
    low, high = column_bounds(side)
    return in_bounds(pos) and low <= pos.x <= high


def clamp_to_territory(pos: Position, side: Side) -> Position:
    low, high = column_bounds(side)
    return Position(
        x=max(low, min(high, pos.x)),
        y=max(0, min(GRID_HEIGHT - 1, pos.y)),
    )


@dataclass
class StatusEffect:
    """
    Active stacks of one status type on a fighter.

    Each stack has its own expiry timestamp (None = never expires).
    The stack count is always len(expiries); stacks are kept in
    application order so the last entry is the newest stack.
    """
    status_type: StatusType
    per_stack_magnitude: float = 0.0
    expiries: list[float | None] = field(default_factory=list)
    last_tick_at: float | None = None  # Periodic effects only

    @property
    def stacks(self) -> int:
        return len(self.expiries)

    @property
    def is_empty(self) -> bool:
        return len(self.expiries) == 0

    def active_stacks_at(self, timestamp: float) -> int:
        """Stacks still alive at a given time (a stack is alive at its expiry instant)."""
        return sum(1 for e in self.expiries if e is None or e >= timestamp)


@dataclass
class FighterState:
    """
    Combat state of one fighter.

    Shields and armor are depletable pools in front of HP.
    Resistances map damage type -> fraction of damage ignored (0.1 = 10%);
    negative values are weaknesses.
    """
    side: Side
    position: Position
    hp: float
    max_hp: float
    shields: float = 0.0
    max_shields: float = 0.0
    armor: float = 0.0
    max_armor: float = 0.0
    resistances: dict[DamageType, float] = field(default_factory=dict)
    status_effects: dict[StatusType, StatusEffect] = field(default_factory=dict)

    # Shield regeneration (None = use the interaction table's defaults)
    shield_regen_rate: float | None = None
    shield_regen_delay_ms: float | None = None
    last_damaged_at: float | None = None
    last_regen_at: float | None = None

    # Transient flags
    just_took_damage: bool = False
    damage_flag_set_at: float | None = None
    corrupt_next_move: bool = False

    # Construct passives
    damage_bonus: float = 0.0
    evasion: float = 0.0

    name: str = ""
    construct_id: str | None = None

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def hp_percent(self) -> float:
        if self.max_hp <= 0:
            return 0.0
        return self.hp / self.max_hp * 100

    def stacks(self, status_type: StatusType | str) -> int:
        """Number of stacks of a status type (0 if absent)."""
        effect = self.status_effects.get(StatusType(status_type))
        return effect.stacks if effect else 0

    def has_status(self, status_type: StatusType | str) -> bool:
        return self.stacks(status_type) > 0

    def resistance(self, damage_type: DamageType | str | None) -> float:
        if damage_type is None:
            return 0.0
        return max(-1.0, min(1.0, self.resistances.get(DamageType(damage_type), 0.0)))


@dataclass
class BattleState:
    """
    Complete battle state at a point in time.

    This is the canonical state the engine operates on.
    All combat changes go through the reducer.
    """
    battle_id: str
    player: FighterState
    enemy: FighterState

    started_at: float = 0.0
    now: float = 0.0

    # Seed for every random roll in this battle (determinism)
    random_seed: int = 0

    is_guardian: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)

    def fighter(self, side: Side) -> FighterState:
        return self.player if side is Side.PLAYER else self.enemy

    def with_fighter(self, fighter: FighterState) -> BattleState:
        """Return new state with one fighter replaced."""
        if fighter.side is Side.PLAYER:
            return self._copy_with(player=fighter)
        return self._copy_with(enemy=fighter)

    def context_for(self, side: Side) -> BattleContext:
        """Actor-relative read-only view used by triggers and actions."""
        return BattleContext(state=self, side=side)

    @property
    def elapsed_ms(self) -> float:
        return self.now - self.started_at

    def _copy_with(self, **kwargs) -> BattleState:
        """Create a copy with some fields replaced."""
        return BattleState(
            battle_id=kwargs.get("battle_id", self.battle_id),
            player=kwargs.get("player", self.player),
            enemy=kwargs.get("enemy", self.enemy),
            started_at=kwargs.get("started_at", self.started_at),
            now=kwargs.get("now", self.now),
            random_seed=kwargs.get("random_seed", self.random_seed),
            is_guardian=kwargs.get("is_guardian", self.is_guardian),
            metadata=kwargs.get("metadata", self.metadata),
        )

    def clone(self) -> BattleState:
        """Deep copy the state."""
        return deepcopy(self)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> BattleState:
        """Build a state from a (possibly legacy-shaped) dict."""
        data = normalize_state_payload(payload)
        return cls(
            battle_id=data.get("battle_id", "battle"),
            player=_fighter_from_dict(Side.PLAYER, data["player"], data.get("now", 0.0)),
            enemy=_fighter_from_dict(Side.ENEMY, data["enemy"], data.get("now", 0.0)),
            started_at=data.get("started_at", 0.0),
            now=data.get("now", 0.0),
            random_seed=data.get("random_seed", 0),
            is_guardian=data.get("is_guardian", False),
        )


@dataclass(frozen=True)
class BattleContext:
    """
    A battle seen from one fighter's point of view.

    "me" is the acting fighter, "opponent" the other side.
    Triggers and actions only ever read through this view.
    """
    state: BattleState
    side: Side

    @property
    def me(self) -> FighterState:
        return self.state.fighter(self.side)

    @property
    def opponent(self) -> FighterState:
        return self.state.fighter(self.side.opponent)

    @property
    def is_player(self) -> bool:
        return self.side is Side.PLAYER

    @property
    def now(self) -> float:
        return self.state.now

    @property
    def just_took_damage(self) -> bool:
        return self.me.just_took_damage

    def distance(self) -> int:
        """Horizontal tile distance between the two fighters."""
        return abs(self.me.position.x - self.opponent.position.x)

    def rng(self, salt: str = "") -> random.Random:
        """
        A generator seeded from (battle seed, time, side, salt).

        Two calls with the same context and salt yield the same
        sequence, which keeps randomized actions pure.
        """
        return random.Random(f"{self.state.random_seed}:{self.state.now}:{self.side.value}:{salt}")


# =============================================================================
# Normalization (legacy payload shapes -> canonical schema)
# =============================================================================

_LEGACY_PREFIXES = {"player": Side.PLAYER, "enemy": Side.ENEMY}

# Older status names with a current equivalent; anything else unknown is dropped
_LEGACY_STATUS_NAMES = {"slow": StatusType.LAG, "stagger": StatusType.STUN}


def normalize_state_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Fold every known legacy field into the canonical nested shape.

    Accepts either {"player": {...}, "enemy": {...}} or the flat context
    shape ("playerPos", "playerHP", "playerShield", "playerDefense",
    "playerStatusEffects" / "playerStatus", "justTookDamage", ...).
    When both status list names are present the longer-named one wins.
    """
    data = {k: v for k, v in payload.items() if k not in ("player", "enemy")}
    data.setdefault("battle_id", payload.get("battleId", "battle"))

    for prefix, side in _LEGACY_PREFIXES.items():
        fighter = dict(payload.get(prefix) or {})

        pos = payload.get(f"{prefix}Pos")
        if pos is not None and "position" not in fighter:
            fighter["position"] = pos

        for legacy, canonical in (
            ("HP", "hp"),
            ("MaxHP", "max_hp"),
            ("Shield", "shields"),
            ("Shields", "shields"),
            ("Armor", "armor"),
        ):
            value = payload.get(f"{prefix}{legacy}")
            if value is not None and canonical not in fighter:
                fighter[canonical] = value

        defense = payload.get(f"{prefix}Defense") or fighter.pop("defense", None)
        if defense:
            fighter.setdefault("shields", defense.get("shields", 0))
            fighter.setdefault("max_shields", defense.get("maxShields", defense.get("shields", 0)))
            fighter.setdefault("armor", defense.get("armor", 0))
            fighter.setdefault("max_armor", defense.get("maxArmor", defense.get("armor", 0)))
            if "shieldRegenRate" in defense:
                fighter.setdefault("shield_regen_rate", defense["shieldRegenRate"])
            if "shieldRegenDelay" in defense:
                fighter.setdefault("shield_regen_delay_ms", defense["shieldRegenDelay"])

        statuses = (
            payload.get(f"{prefix}StatusEffects")
            or payload.get(f"{prefix}Status")
            or fighter.pop("statusEffects", None)
            or fighter.get("status_effects")
            or []
        )
        fighter["status_effects"] = statuses

        if "maxHp" in fighter:
            fighter.setdefault("max_hp", fighter.pop("maxHp"))
        fighter.setdefault("max_hp", max(100, fighter.get("hp", 100)))
        fighter.setdefault("hp", fighter["max_hp"])
        fighter.setdefault("max_shields", fighter.get("shields", 0))
        fighter.setdefault("max_armor", fighter.get("armor", 0))

        if side is Side.PLAYER and "justTookDamage" in payload:
            fighter.setdefault("just_took_damage", bool(payload["justTookDamage"]))

        data[prefix] = fighter

    for legacy in [k for k in data if k.startswith(("player", "enemy")) and k not in _LEGACY_PREFIXES]:
        del data[legacy]
    data.pop("justTookDamage", None)
    data.pop("isPlayer", None)
    data.pop("battleId", None)
    return data


def _status_type(name: str) -> StatusType | None:
    if name in _LEGACY_STATUS_NAMES:
        return _LEGACY_STATUS_NAMES[name]
    try:
        return StatusType(name)
    except ValueError:
        return None


def _fighter_from_dict(side: Side, raw: dict[str, Any], now: float = 0.0) -> FighterState:
    pos = raw.get("position") or {"x": 0 if side is Side.PLAYER else 5, "y": 1}
    requested = Position(int(pos["x"]), int(pos["y"]))
    position = clamp_to_territory(requested, side)
    if position != requested:
        logger.warning("%s position %s outside its half, clamped to %s", side.value, requested, position)

    effects: dict[StatusType, StatusEffect] = {}
    for entry in raw.get("status_effects", []):
        status_type = _status_type(entry["type"])
        if status_type is None:
            logger.warning("Dropping unknown %s status: %s", side.value, entry["type"])
            continue
        stacks = int(entry.get("stacks", 1) or 1)
        end = entry.get("endTime", entry.get("end_time"))
        if end is None and entry.get("duration") is not None:
            # duration is the time remaining at `now`
            end = now + entry["duration"]
        effect = effects.setdefault(
            status_type,
            StatusEffect(status_type=status_type, per_stack_magnitude=entry.get("value", 0.0)),
        )
        effect.expiries.extend([end] * stacks)

    return FighterState(
        side=side,
        position=position,
        hp=float(raw["hp"]),
        max_hp=float(raw["max_hp"]),
        shields=float(raw.get("shields", 0)),
        max_shields=float(raw.get("max_shields", 0)),
        armor=float(raw.get("armor", 0)),
        max_armor=float(raw.get("max_armor", 0)),
        resistances={DamageType(k): v for k, v in (raw.get("resistances") or {}).items()},
        status_effects=effects,
        shield_regen_rate=raw.get("shield_regen_rate"),
        shield_regen_delay_ms=raw.get("shield_regen_delay_ms"),
        just_took_damage=bool(raw.get("just_took_damage", False)),
        name=raw.get("name", ""),
        construct_id=raw.get("construct_id"),
        damage_bonus=float(raw.get("damage_bonus", 0.0)),
        evasion=float(raw.get("evasion", 0.0)),
    )
