"""
Effect System - Effect descriptors and resolution results.

Effect descriptors represent:
1. Damage (amount, type, hit count, hit pattern, status proc chance)
2. Movement (target tile)
3. Healing (instant and over time)
4. Status application (buffs on self, debuffs on the opponent)

Actions describe effects; only the reducer applies them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..balance import DamageType, StatusType
from .state import Position, Side


class CoreType(str, Enum):
    """The two independent protocol pools of a fighter."""
    MOVEMENT = "movement"
    TACTICAL = "tactical"


class HitPattern(str, Enum):
    """How a damage effect finds its target."""
    ROW = "row"            # Same row, any distance
    ALL_ROWS = "all_rows"  # Always hits
    MELEE = "melee"        # Same row, within range
    COLUMN = "column"      # Any row, within range


class StatusTarget(str, Enum):
    SELF = "self"
    OPPONENT = "opponent"


@dataclass(frozen=True)
class DamageSpec:
    """Damage part of an effect."""
    amount: float
    damage_type: DamageType = DamageType.KINETIC
    hits: int = 1
    pattern: HitPattern = HitPattern.ROW
    range: int = 6
    status_chance: float = 0.0


@dataclass(frozen=True)
class StatusSpec:
    """Status part of an effect (buff on self or debuff on the opponent)."""
    status_type: StatusType
    target: StatusTarget = StatusTarget.OPPONENT
    duration_ms: float | None = None  # None = the table's duration
    magnitude: float | None = None    # None = the table's magnitude
    stacks: int = 1


@dataclass(frozen=True)
class HealOverTime:
    """Heal-over-time part of an effect."""
    amount_per_tick: float
    duration_ms: float


@dataclass(frozen=True)
class EffectDescriptor:
    """
    What an action wants to happen, never applied by the action itself.

    effect_type is a label (shoot, rapid-fire, move, heal, buff, ...)
    kept for events and the UI.
    """
    effect_type: str
    damage: DamageSpec | None = None
    move_to: Position | None = None
    heal: float = 0.0
    heal_over_time: HealOverTime | None = None
    status: StatusSpec | None = None

    @classmethod
    def idle(cls) -> EffectDescriptor:
        return cls(effect_type="idle")

    @property
    def is_idle(self) -> bool:
        return (
            self.damage is None
            and self.move_to is None
            and self.heal <= 0
            and self.heal_over_time is None
            and self.status is None
        )


@dataclass(frozen=True)
class DamageEvent:
    """
    One resolved hit.

    side is the side that took the damage. amount is the total
    removed across all layers (burn stacks count as 0 instant damage).
    """
    side: Side
    damage_type: DamageType
    amount: float
    shield_damage: float = 0.0
    armor_damage: float = 0.0
    hp_damage: float = 0.0
    blocked: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "side": self.side.value,
            "damage_type": self.damage_type.value,
            "amount": self.amount,
            "shield_damage": self.shield_damage,
            "armor_damage": self.armor_damage,
            "hp_damage": self.hp_damage,
            "blocked": self.blocked,
        }


@dataclass
class ResolutionResult:
    """
    Result of applying an effect.

    Contains:
    - Whether resolution succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Damage events and statuses applied (for events and mastery stats)
    """
    success: bool
    new_state: Any | None = None  # BattleState
    error: str | None = None
    error_code: str | None = None

    # Human-readable changes
    changes: list[str] = field(default_factory=list)
    damage_events: list[DamageEvent] = field(default_factory=list)
    status_applied: list[StatusType] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ResolutionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        damage_events: list[DamageEvent] | None = None,
        status_applied: list[StatusType] | None = None,
    ) -> ResolutionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            changes=changes or [],
            damage_events=damage_events or [],
            status_applied=status_applied or [],
        )
