"""
Battle - The tick driver for one battle.

Each tick:
1. Clear damage flags that were visible for a full tick
2. Tick statuses (expiry, burn, regen, shield regen)
3. Resolve the player, then the enemy (movement core, then tactical)
4. Swap in the new state, record HP history, check for the end
5. Flush queued events to listeners

The driver owns no clock: an external loop calls tick(now_ms).
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..balance import DamageType, InteractionTable, default_table
from ..engine_core.action import CoreType
from ..engine_core.events import BattleEnded, DamageDealt, EventBus, ExecutedProtocol
from ..engine_core.protocol import Protocol
from ..engine_core.reducer import CombatReducer
from ..engine_core.resolver import ProtocolResolver
from ..engine_core.state import BattleState, Side
from ..engine_core.status import StatusEngine
from ..mastery.masteries import BattleSummary

logger = logging.getLogger(__name__)


HISTORY_INTERVAL_MS = 500
CORES = (CoreType.MOVEMENT, CoreType.TACTICAL)


class BattleOutcome(str, Enum):
    ONGOING = "ongoing"
    VICTORY = "victory"
    DEFEAT = "defeat"
    DRAW = "draw"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class HistoryPoint:
    time_s: float
    player_hp: float
    enemy_hp: float


@dataclass
class TickResult:
    """What happened during one tick."""
    now: float
    outcome: BattleOutcome
    executed: list[ExecutedProtocol] = field(default_factory=list)
    damage: list[DamageDealt] = field(default_factory=list)
    changes: list[str] = field(default_factory=list)
    idle: bool = False

    @property
    def finished(self) -> bool:
        return self.outcome is not BattleOutcome.ONGOING


class Battle:
    """
    One battle between the player and an enemy.

    Usage:
        battle = Battle(state, player_movement, player_tactical, enemy_protocols)
        tracker.attach(battle.bus)
        now = 0
        while not battle.finished:
            now += 50
            battle.tick(now)
    """

    def __init__(
        self,
        state: BattleState,
        player_movement: list[Protocol],
        player_tactical: list[Protocol],
        enemy_protocols: list[Protocol],
        table: InteractionTable | None = None,
        bus: EventBus | None = None,
        time_limit_ms: float | None = None,
    ):
        self.table = table or default_table()
        self.status_engine = StatusEngine(self.table)
        self.resolver = ProtocolResolver(self.status_engine)
        self.reducer = CombatReducer(self.table, self.status_engine)
        self.bus = bus or EventBus()

        self.state = state
        self.protocols: dict[Side, list[Protocol]] = {
            Side.PLAYER: list(player_movement) + list(player_tactical),
            Side.ENEMY: list(enemy_protocols),
        }
        for protocols in self.protocols.values():
            for protocol in protocols:
                protocol.reset()

        self.time_limit_ms = time_limit_ms
        self.outcome = BattleOutcome.ONGOING
        self.history: list[HistoryPoint] = []
        self.progress_discarded = False
        self._last_tick_at: float | None = None
        self._next_history_at = state.started_at

    @property
    def finished(self) -> bool:
        return self.outcome is not BattleOutcome.ONGOING

    @property
    def duration_s(self) -> float:
        return self.state.elapsed_ms / 1000

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self, now_ms: float) -> TickResult:
        """Advance the battle to now_ms. Finished battles return an idle result."""
        if self.finished:
            return TickResult(now=now_ms, outcome=self.outcome, idle=True)

        working = self.state.clone()
        working.now = now_ms
        changes: list[str] = []

        self._clear_stale_damage_flags(working)
        self._tick_statuses(working)

        if self._decide_outcome(working) is BattleOutcome.ONGOING:
            for side in (Side.PLAYER, Side.ENEMY):
                working = self._resolve_side(working, side, changes)
                if not (working.player.is_alive and working.enemy.is_alive):
                    break

        self.state = working
        self._last_tick_at = now_ms
        self._record_history()

        outcome = self._decide_outcome(working)
        if outcome is not BattleOutcome.ONGOING:
            self._finish(outcome)

        events = self.bus.flush()
        return TickResult(
            now=now_ms,
            outcome=self.outcome,
            executed=[e for e in events if isinstance(e, ExecutedProtocol)],
            damage=[e for e in events if isinstance(e, DamageDealt)],
            changes=changes,
        )

    def _clear_stale_damage_flags(self, state: BattleState) -> None:
        if self._last_tick_at is None:
            return
        for fighter in (state.player, state.enemy):
            set_at = fighter.damage_flag_set_at
            if fighter.just_took_damage and (set_at is None or set_at < self._last_tick_at):
                fighter.just_took_damage = False

    def _tick_statuses(self, state: BattleState) -> None:
        for fighter in (state.player, state.enemy):
            outcome = self.status_engine.tick(fighter, state.now)
            if outcome.dot_damage > 0:
                self.bus.publish(DamageDealt(
                    side=fighter.side.value,
                    damage_type=DamageType.THERMAL.value,
                    amount=outcome.dot_damage,
                    hp_damage=outcome.dot_damage,
                    timestamp=state.now,
                ))

    def _resolve_side(self, state: BattleState, side: Side, changes: list[str]) -> BattleState:
        for core in CORES:
            fired = self.resolver.select(state, side, self.protocols[side], core)
            if fired is None:
                continue
            self.bus.publish(fired.to_event())

            result = self.reducer.apply(state, side, fired.effect)
            if not result.success:
                logger.warning("%s %s failed: %s", side.value, fired.protocol.id, result.error)
                continue

            state = result.new_state
            changes.extend(result.changes)
            for event in result.damage_events:
                if event.blocked:
                    continue
                self.bus.publish(DamageDealt(
                    side=event.side.value,
                    damage_type=event.damage_type.value,
                    amount=event.amount,
                    shield_damage=event.shield_damage,
                    armor_damage=event.armor_damage,
                    hp_damage=event.hp_damage,
                    timestamp=state.now,
                ))
        return state

    def _record_history(self) -> None:
        now = self.state.now
        while now >= self._next_history_at:
            self.history.append(HistoryPoint(
                time_s=(self._next_history_at - self.state.started_at) / 1000,
                player_hp=self.state.player.hp,
                enemy_hp=self.state.enemy.hp,
            ))
            self._next_history_at += HISTORY_INTERVAL_MS

    def _decide_outcome(self, state: BattleState) -> BattleOutcome:
        player_alive = state.player.is_alive
        enemy_alive = state.enemy.is_alive
        if not player_alive and not enemy_alive:
            return BattleOutcome.DRAW
        if not enemy_alive:
            return BattleOutcome.VICTORY
        if not player_alive:
            return BattleOutcome.DEFEAT
        if self.time_limit_ms is not None and state.elapsed_ms >= self.time_limit_ms:
            return BattleOutcome.TIMEOUT
        return BattleOutcome.ONGOING

    def _finish(self, outcome: BattleOutcome) -> None:
        self.outcome = outcome
        logger.info("Battle %s ended: %s", self.state.battle_id, outcome.value)
        self.bus.publish(BattleEnded(self.state.battle_id, outcome.value, self.state.now))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def cancel(self) -> None:
        """Stop the battle (extraction). The run's uncommitted progress is to be discarded."""
        if self.finished:
            return
        self.progress_discarded = True
        self._finish(BattleOutcome.CANCELLED)
        self.bus.flush()

    def run(self, duration_ms: float, step_ms: float = 50) -> BattleOutcome:
        """Tick at a fixed step until the battle ends or duration runs out."""
        now = self.state.now
        end = self.state.started_at + duration_ms
        while not self.finished and now < end:
            now = min(now + step_ms, end)
            self.tick(now)
        return self.outcome

    def summary(self) -> BattleSummary:
        return BattleSummary(
            player_hp_percent=self.state.player.hp_percent,
            duration_s=self.duration_s,
            is_guardian=self.state.is_guardian,
            victory=self.outcome is BattleOutcome.VICTORY,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "battle_id": self.state.battle_id,
            "outcome": self.outcome.value,
            "now": self.state.now,
            "player_hp": self.state.player.hp,
            "enemy_hp": self.state.enemy.hp,
            "history": [vars(h) for h in self.history],
        }
