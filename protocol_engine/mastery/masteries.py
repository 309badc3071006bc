"""
Masteries - Meta-challenges with typed requirements and currency rewards.

Requirement types:
- use_trigger_count / use_action_count: total uses or distinct ids >= N
- trigger_action_combo: a specific pair fired at least once
- damage_type_share: one type >= X% of damage, or N types each > 10%
- hp_remaining: player HP percent compared to a threshold
- defeat_fast: battle duration <= limit seconds
- unique_pairs: distinct trigger-action pairs fired >= N

Battle-bound requirements (damage share, HP, speed) only count on
guardian battles.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..balance import DamageType
from ..catalog.registry import Lookup, Registry

if TYPE_CHECKING:
    from .tracker import RunStats


MULTI_TYPE_SHARE_FLOOR = 0.10


class RequirementType(str, Enum):
    USE_TRIGGER_COUNT = "use_trigger_count"
    USE_ACTION_COUNT = "use_action_count"
    TRIGGER_ACTION_COMBO = "trigger_action_combo"
    DAMAGE_TYPE_SHARE = "damage_type_share"
    HP_REMAINING = "hp_remaining"
    DEFEAT_FAST = "defeat_fast"
    UNIQUE_PAIRS = "unique_pairs"


class MasteryCategory(str, Enum):
    COMBO = "combo"
    EFFICIENCY = "efficiency"
    SPECIALIZATION = "specialization"
    ADAPTIVE = "adaptive"


@dataclass(frozen=True)
class Requirement:
    type: RequirementType
    count: int = 0
    mode: str = "either"  # total | unique | either (usage counts)
    damage_type: DamageType | None = None
    share_percent: float = 0.0
    hp_threshold: float = 0.0
    comparison: str = "at_least"  # at_least | at_most
    time_limit_s: float = 0.0
    trigger_id: str | None = None
    action_id: str | None = None


@dataclass(frozen=True)
class MasteryReward:
    flat_bonus: int = 0
    multiplier: float = 0.0


@dataclass(frozen=True)
class Mastery:
    id: str
    name: str
    description: str
    category: MasteryCategory
    requirement: Requirement
    reward: MasteryReward


@dataclass(frozen=True)
class BattleSummary:
    """What mastery checks need to know about the battle that just ended."""
    player_hp_percent: float
    duration_s: float
    is_guardian: bool
    victory: bool = True


@dataclass
class RewardBreakdown:
    bonus_fragments: int
    total_fragments: int
    masteries: list[Mastery]


# ============================================================================
# Requirement checks
# ============================================================================

def _usage_met(usage: dict[str, int], req: Requirement) -> bool:
    total = sum(usage.values())
    unique = len(usage)
    if req.mode == "total":
        return total >= req.count
    if req.mode == "unique":
        return unique >= req.count
    return total >= req.count or unique >= req.count


def check_completion(mastery: Mastery, stats: RunStats, battle: BattleSummary) -> bool:
    """Whether a mastery's requirement is met by this run and battle."""
    req = mastery.requirement

    if req.type is RequirementType.USE_TRIGGER_COUNT:
        return req.count > 0 and _usage_met(stats.trigger_usage, req)

    if req.type is RequirementType.USE_ACTION_COUNT:
        return req.count > 0 and _usage_met(stats.action_usage, req)

    if req.type is RequirementType.TRIGGER_ACTION_COMBO:
        return any(
            p.trigger_id == req.trigger_id and p.action_id == req.action_id
            for p in stats.pair_executions
        )

    if req.type is RequirementType.UNIQUE_PAIRS:
        return req.count > 0 and len(stats.unique_pairs()) >= req.count

    # Everything below is judged on a guardian battle
    if not battle.is_guardian:
        return False

    if req.type is RequirementType.DAMAGE_TYPE_SHARE:
        total = sum(stats.damage_by_type.values())
        if total <= 0:
            return False
        if req.damage_type is not None:
            share = stats.damage_by_type.get(req.damage_type.value, 0.0) / total * 100
            return share >= req.share_percent
        used = [d for d in stats.damage_by_type.values() if d > total * MULTI_TYPE_SHARE_FLOOR]
        return req.count > 0 and len(used) >= req.count

    if req.type is RequirementType.HP_REMAINING:
        if req.comparison == "at_most":
            return battle.player_hp_percent <= req.hp_threshold
        return battle.player_hp_percent >= req.hp_threshold

    if req.type is RequirementType.DEFEAT_FAST:
        return req.time_limit_s > 0 and battle.duration_s <= req.time_limit_s

    return False


def calculate_rewards(masteries: list[Mastery], base_fragments: int) -> RewardBreakdown:
    """total = floor(base * (1 + sum of multipliers)) + sum of flat bonuses."""
    bonus = sum(m.reward.flat_bonus for m in masteries)
    multiplier = 1.0 + sum(m.reward.multiplier for m in masteries)
    # round() first: 100 * 1.15 is 114.99999999999999 in floats
    return RewardBreakdown(
        bonus_fragments=bonus,
        total_fragments=math.floor(round(base_fragments * multiplier, 6)) + bonus,
        masteries=list(masteries),
    )


# ============================================================================
# Catalog
# ============================================================================

def _specialist(damage_type: DamageType, name: str) -> Mastery:
    return Mastery(
        id=f"{damage_type.value}_specialist",
        name=name,
        description=(
            f"Defeat a Layer Guardian using primarily {damage_type.value.title()} "
            "damage (70%+ of total damage)"
        ),
        category=MasteryCategory.SPECIALIZATION,
        requirement=Requirement(
            RequirementType.DAMAGE_TYPE_SHARE, damage_type=damage_type, share_percent=70
        ),
        reward=MasteryReward(50, 0.1),
    )


PROTOCOL_MASTERIES = [
    Mastery(
        "first_combo", "Logic Initiate",
        "Execute any trigger-action pair 5 times in a single run",
        MasteryCategory.COMBO,
        Requirement(RequirementType.USE_TRIGGER_COUNT, count=5, mode="total"),
        MasteryReward(15),
    ),
    Mastery(
        "trigger_master_basic", "Trigger Enthusiast",
        "Use 3 different triggers in a single run",
        MasteryCategory.EFFICIENCY,
        Requirement(RequirementType.USE_TRIGGER_COUNT, count=3, mode="unique"),
        MasteryReward(20),
    ),
    Mastery(
        "action_master_basic", "Action Specialist",
        "Use 3 different actions in a single run",
        MasteryCategory.EFFICIENCY,
        Requirement(RequirementType.USE_ACTION_COUNT, count=3, mode="unique"),
        MasteryReward(20),
    ),
    _specialist(DamageType.KINETIC, "Ballistic Expert"),
    _specialist(DamageType.ENERGY, "Energy Conduit"),
    _specialist(DamageType.THERMAL, "Pyrotechnician"),
    _specialist(DamageType.CORROSIVE, "Acid Master"),
    _specialist(DamageType.VIRAL, "Bio-Weapon Expert"),
    Mastery(
        "perfect_defense", "Flawless Execution",
        "Defeat a Layer Guardian with 90%+ HP remaining",
        MasteryCategory.EFFICIENCY,
        Requirement(RequirementType.HP_REMAINING, hp_threshold=90, comparison="at_least"),
        MasteryReward(100, 0.15),
    ),
    Mastery(
        "speed_demon", "Rapid Breach",
        "Defeat a Layer Guardian in under 20 seconds",
        MasteryCategory.EFFICIENCY,
        Requirement(RequirementType.DEFEAT_FAST, time_limit_s=20),
        MasteryReward(80, 0.12),
    ),
    Mastery(
        "adaptive_logic", "Adaptive Protocols",
        "Use at least 5 different trigger-action combinations in a single run",
        MasteryCategory.ADAPTIVE,
        Requirement(RequirementType.UNIQUE_PAIRS, count=5),
        MasteryReward(75, 0.15),
    ),
    Mastery(
        "master_programmer", "Master Programmer",
        "Complete a run using 6+ active trigger-action pairs",
        MasteryCategory.COMBO,
        Requirement(RequirementType.UNIQUE_PAIRS, count=6),
        MasteryReward(120, 0.2),
    ),
    Mastery(
        "glass_cannon", "Glass Cannon",
        "Defeat a Layer Guardian with less than 20% HP remaining",
        MasteryCategory.EFFICIENCY,
        Requirement(RequirementType.HP_REMAINING, hp_threshold=20, comparison="at_most"),
        MasteryReward(150, 0.25),
    ),
    Mastery(
        "multi_type_master", "Omni-Specialist",
        "Deal significant damage with 4+ different damage types in a single run",
        MasteryCategory.ADAPTIVE,
        Requirement(RequirementType.DAMAGE_TYPE_SHARE, count=4),
        MasteryReward(200, 0.3),
    ),
]


class MasteryRegistry(Registry[Mastery]):
    """All masteries, keyed by id."""

    @classmethod
    def default(cls) -> MasteryRegistry:
        return cls(PROTOCOL_MASTERIES)

    def get(self, mastery_id: str) -> Lookup[Mastery]:
        return self.lookup(mastery_id)
