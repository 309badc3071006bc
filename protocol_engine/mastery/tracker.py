"""
Mastery Tracker - Per-run statistics and mastery completion.

The tracker listens to battle events (player side only), evaluates
masteries when a guardian battle is won, and commits completions.
Run stats live until the run ends or is discarded.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field

from ..engine_core.events import DamageDealt, EventBus, ExecutedProtocol
from ..engine_core.state import Side
from .masteries import (
    BattleSummary,
    Mastery,
    MasteryRegistry,
    RewardBreakdown,
    calculate_rewards,
    check_completion,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PairExecution:
    trigger_id: str
    action_id: str
    timestamp: float


@dataclass
class RunStats:
    """Everything a run did that masteries can ask about."""
    trigger_usage: dict[str, int] = field(default_factory=dict)
    action_usage: dict[str, int] = field(default_factory=dict)
    damage_by_type: dict[str, float] = field(default_factory=dict)
    pair_executions: list[PairExecution] = field(default_factory=list)

    def unique_pairs(self) -> set[tuple[str, str]]:
        return {(p.trigger_id, p.action_id) for p in self.pair_executions}


@dataclass
class PlayerMasteryProgress:
    completed_masteries: list[str] = field(default_factory=list)
    run_stats: RunStats = field(default_factory=RunStats)
    # Completed this run, counted toward the run-end reward
    run_completions: list[str] = field(default_factory=list)


class MasteryTracker:
    """
    Usage:
        tracker = MasteryTracker(MasteryRegistry.default())
        tracker.attach(bus)
        ...
        newly = tracker.on_battle_end(summary)
        reward = tracker.end_run(base_fragments)
    """

    def __init__(self, registry: MasteryRegistry | None = None, completed: list[str] | None = None):
        self.registry = registry or MasteryRegistry.default()
        self.progress = PlayerMasteryProgress(completed_masteries=list(completed or []))

    @property
    def stats(self) -> RunStats:
        return self.progress.run_stats

    def attach(self, bus: EventBus) -> None:
        bus.subscribe(ExecutedProtocol, self.record_protocol)
        bus.subscribe(DamageDealt, self.record_damage)

    def detach(self, bus: EventBus) -> None:
        bus.unsubscribe(ExecutedProtocol, self.record_protocol)
        bus.unsubscribe(DamageDealt, self.record_damage)

    # =========================================================================
    # Observation
    # =========================================================================

    def record_protocol(self, event: ExecutedProtocol) -> None:
        if event.side != Side.PLAYER.value:
            return
        stats = self.stats
        stats.trigger_usage[event.trigger_id] = stats.trigger_usage.get(event.trigger_id, 0) + 1
        stats.action_usage[event.action_id] = stats.action_usage.get(event.action_id, 0) + 1
        stats.pair_executions.append(PairExecution(event.trigger_id, event.action_id, event.timestamp))

    def record_damage(self, event: DamageDealt) -> None:
        # Damage the player deals lands on the enemy side
        if event.side != Side.ENEMY.value or event.amount <= 0:
            return
        stats = self.stats
        stats.damage_by_type[event.damage_type] = stats.damage_by_type.get(event.damage_type, 0.0) + event.amount

    # =========================================================================
    # Evaluation
    # =========================================================================

    def evaluate(self, battle: BattleSummary) -> list[Mastery]:
        """Masteries newly met by this battle. Does not commit."""
        done = set(self.progress.completed_masteries)
        return [
            m for m in self.registry
            if m.id not in done and check_completion(m, self.stats, battle)
        ]

    def on_battle_end(self, battle: BattleSummary) -> list[Mastery]:
        """Evaluate and commit on a guardian victory; otherwise nothing."""
        if not (battle.is_guardian and battle.victory):
            return []
        newly = self.evaluate(battle)
        for mastery in newly:
            self.progress.completed_masteries.append(mastery.id)
            self.progress.run_completions.append(mastery.id)
            logger.info("Mastery completed: %s", mastery.id)
        return newly

    def end_run(self, base_fragments: int) -> RewardBreakdown:
        """Reward for the run with this run's completions, then reset run stats."""
        masteries = [
            lookup.value for lookup in map(self.registry.lookup, self.progress.run_completions)
            if lookup.found
        ]
        reward = calculate_rewards(masteries, base_fragments)
        self.reset_run()
        return reward

    def reset_run(self) -> None:
        self.progress.run_stats = RunStats()
        self.progress.run_completions = []

    def discard_run(self) -> None:
        """Drop the run's stats; completions already committed stay."""
        logger.debug("Discarding run stats")
        self.reset_run()
