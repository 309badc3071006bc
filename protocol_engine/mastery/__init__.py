"""Mastery - run statistics, mastery requirements and rewards."""

from .masteries import (
    RequirementType,
    MasteryCategory,
    Requirement,
    MasteryReward,
    Mastery,
    BattleSummary,
    RewardBreakdown,
    MasteryRegistry,
    PROTOCOL_MASTERIES,
    check_completion,
    calculate_rewards,
)
from .tracker import MasteryTracker, RunStats, PairExecution, PlayerMasteryProgress

__all__ = [
    "RequirementType",
    "MasteryCategory",
    "Requirement",
    "MasteryReward",
    "Mastery",
    "BattleSummary",
    "RewardBreakdown",
    "MasteryRegistry",
    "PROTOCOL_MASTERIES",
    "check_completion",
    "calculate_rewards",
    "MasteryTracker",
    "RunStats",
    "PairExecution",
    "PlayerMasteryProgress",
]
