"""Session - the battle tick driver and the run manager."""

from .battle import Battle, BattleOutcome, HistoryPoint, TickResult, HISTORY_INTERVAL_MS
from .manager import (
    RunManager,
    RunState,
    RunResult,
    NodeType,
    NodeReward,
    RewardFlow,
    SpecialChoice,
    LoadoutError,
    RunError,
    calculate_currency_reward,
)

__all__ = [
    "Battle",
    "BattleOutcome",
    "HistoryPoint",
    "TickResult",
    "HISTORY_INTERVAL_MS",
    "RunManager",
    "RunState",
    "RunResult",
    "NodeType",
    "NodeReward",
    "RewardFlow",
    "SpecialChoice",
    "LoadoutError",
    "RunError",
    "calculate_currency_reward",
]
