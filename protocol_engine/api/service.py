"""
API Service - Business logic layer between the API and the engine.

The service:
1. Lists the static catalogs (triggers, actions, constructs, masteries)
2. Validates loadouts by hydrating them against the catalogs
3. Runs whole battles for balance checks and loadout previews

This layer is framework-agnostic (can be used with FastAPI, the CLI, tests).
Lookup failures come back as ErrorResponse values, never exceptions.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Iterable

from .schemas import (
    # Requests
    SimulateRequest,
    ValidateLoadoutRequest,
    LoadoutProtocol,
    # Responses
    TriggerListResponse,
    ActionListResponse,
    ConstructListResponse,
    MasteryListResponse,
    SimulateResponse,
    ValidateLoadoutResponse,
    ErrorResponse,
    # Shared
    TriggerInfo,
    ActionInfo,
    ConstructInfo,
    MasteryInfo,
    DroppedPairInfo,
    ExecutedProtocolInfo,
    HistoryPointInfo,
    ErrorCode,
)
from ..balance import InteractionTable, default_table
from ..catalog import ActionCatalog, Construct, ConstructCatalog, EnemyCatalog, TriggerRegistry
from ..config import DEFAULT_TICK_MS
from ..engine_core.action import CoreType
from ..engine_core.events import EventBus, ExecutedProtocol, event_to_dict
from ..engine_core.protocol import Protocol
from ..engine_core.state import BattleState, Side
from ..mastery import MasteryRegistry, MasteryTracker
from ..persistence.hydration import DroppedPair, hydrate_pairs, hydrate_protocols
from ..persistence.schemas import PersistedProtocol
from ..session.battle import Battle

logger = logging.getLogger(__name__)


def _persisted(protocols: Iterable[LoadoutProtocol]) -> list[PersistedProtocol]:
    return [
        PersistedProtocol(
            trigger_id=p.trigger_id,
            action_id=p.action_id,
            priority=p.priority,
            enabled=p.enabled,
        )
        for p in protocols
    ]


def _dropped_info(dropped: list[DroppedPair]) -> list[DroppedPairInfo]:
    return [
        DroppedPairInfo(trigger_id=d.trigger_id, action_id=d.action_id, reason=d.reason, slot_id=d.slot_id)
        for d in dropped
    ]


@dataclass
class EngineService:
    """
    Main API service.

    Usage:
        service = EngineService()
        triggers = service.list_triggers()
        result = service.simulate(SimulateRequest(construct_id="vanguard", enemy_id="sentry-alpha", ...))
    """
    triggers: TriggerRegistry = field(default_factory=TriggerRegistry.default)
    actions: ActionCatalog = field(default_factory=ActionCatalog.default)
    constructs: ConstructCatalog = field(default_factory=ConstructCatalog.default)
    enemies: EnemyCatalog = field(default_factory=EnemyCatalog.default)
    masteries: MasteryRegistry = field(default_factory=MasteryRegistry.default)
    table: InteractionTable = field(default_factory=default_table)
    tick_ms: int = DEFAULT_TICK_MS

    # =========================================================================
    # Catalogs
    # =========================================================================

    def list_triggers(self, category: str | None = None) -> TriggerListResponse:
        triggers = self.triggers.category(category) if category else self.triggers.all()
        items = [
            TriggerInfo(id=t.id, name=t.name, description=t.description, category=t.category.value)
            for t in triggers
        ]
        return TriggerListResponse(triggers=items, count=len(items))

    def list_actions(self, core: str | None = None) -> ActionListResponse:
        actions = self.actions.for_core(core) if core else self.actions.all()
        items = [
            ActionInfo(
                id=a.id,
                name=a.name,
                description=a.description,
                cooldown_ms=a.cooldown_ms,
                core_type=a.core_type.value,
                damage_type=a.damage_type.value if a.damage_type else None,
                group=a.group,
            )
            for a in actions
        ]
        return ActionListResponse(actions=items, count=len(items))

    def list_constructs(self) -> ConstructListResponse:
        items = [self._construct_info(c) for c in self.constructs]
        return ConstructListResponse(constructs=items, count=len(items))

    def list_masteries(self) -> MasteryListResponse:
        items = [
            MasteryInfo(
                id=m.id,
                name=m.name,
                description=m.description,
                category=m.category.value,
                flat_bonus=m.reward.flat_bonus,
                multiplier=m.reward.multiplier,
            )
            for m in self.masteries
        ]
        return MasteryListResponse(masteries=items, count=len(items))

    @staticmethod
    def _construct_info(construct: Construct) -> ConstructInfo:
        return ConstructInfo(
            id=construct.id,
            name=construct.name,
            description=construct.description,
            base_hp=construct.base_hp,
            base_shields=construct.base_shields,
            base_armor=construct.base_armor,
            max_movement_slots=construct.max_movement_slots,
            max_tactical_slots=construct.max_tactical_slots,
            resistances={k.value: v for k, v in construct.resistances.items()},
            passive=construct.passive.effect.value if construct.passive else None,
            passive_value=construct.passive.value if construct.passive else None,
        )

    # =========================================================================
    # Loadouts
    # =========================================================================

    def _hydrate_loadout(
        self,
        movement: list[LoadoutProtocol],
        tactical: list[LoadoutProtocol],
    ) -> tuple[list[Protocol], list[Protocol], list[DroppedPair]]:
        movement_protocols, dropped_movement = hydrate_protocols(
            _persisted(movement), self.triggers, self.actions, CoreType.MOVEMENT
        )
        tactical_protocols, dropped_tactical = hydrate_protocols(
            _persisted(tactical), self.triggers, self.actions, CoreType.TACTICAL
        )
        return movement_protocols, tactical_protocols, dropped_movement + dropped_tactical

    @staticmethod
    def _capacity_errors(construct: Construct, movement: list[Protocol], tactical: list[Protocol]) -> list[str]:
        errors = []
        for core, protocols in ((CoreType.MOVEMENT, movement), (CoreType.TACTICAL, tactical)):
            capacity = construct.max_slots(core)
            if len(protocols) > capacity:
                errors.append(f"{core.value} core holds {capacity} protocols, got {len(protocols)}")
            seen = set()
            for p in protocols:
                if p.id in seen:
                    errors.append(f"duplicate pair {p.id} in {core.value} core")
                seen.add(p.id)
        return errors

    def validate_loadout(self, request: ValidateLoadoutRequest) -> ValidateLoadoutResponse | ErrorResponse:
        """Hydrate a loadout and report dropped pairs and capacity problems."""
        movement, tactical, dropped = self._hydrate_loadout(
            request.movement_protocols, request.tactical_protocols
        )

        errors: list[str] = []
        if request.construct_id is not None:
            construct = self.constructs.lookup(request.construct_id)
            if not construct.found:
                return ErrorResponse(
                    error=f"Unknown construct: {request.construct_id}",
                    error_code=ErrorCode.UNKNOWN_CONSTRUCT,
                )
            errors = self._capacity_errors(construct.value, movement, tactical)

        return ValidateLoadoutResponse(
            valid=not dropped and not errors,
            movement_count=len(movement),
            tactical_count=len(tactical),
            dropped=_dropped_info(dropped),
            errors=errors,
        )

    # =========================================================================
    # Simulation
    # =========================================================================

    def simulate(self, request: SimulateRequest) -> SimulateResponse | ErrorResponse:
        """
        Run one battle to the end (or the time limit).

        Unknown pairs are dropped and reported; masteries are evaluated
        as they would be after a guardian battle.
        """
        construct = self.constructs.lookup(request.construct_id)
        if not construct.found:
            return ErrorResponse(
                error=f"Unknown construct: {request.construct_id}",
                error_code=ErrorCode.UNKNOWN_CONSTRUCT,
            )
        enemy = self.enemies.lookup(request.enemy_id)
        if not enemy.found:
            return ErrorResponse(
                error=f"Unknown enemy: {request.enemy_id}",
                error_code=ErrorCode.UNKNOWN_ENEMY,
            )

        movement, tactical, dropped = self._hydrate_loadout(
            request.movement_protocols, request.tactical_protocols
        )
        errors = self._capacity_errors(construct.value, movement, tactical)
        if errors:
            return ErrorResponse(
                error="Loadout does not fit the construct",
                error_code=ErrorCode.INVALID_LOADOUT,
                details={"errors": errors},
            )

        enemy_movement, _ = hydrate_pairs(enemy.value.movement, self.triggers, self.actions, CoreType.MOVEMENT)
        enemy_tactical, _ = hydrate_pairs(enemy.value.tactical, self.triggers, self.actions, CoreType.TACTICAL)

        state = BattleState(
            battle_id=f"sim-{request.seed}",
            player=construct.value.build_fighter(Side.PLAYER),
            enemy=enemy.value.build_fighter(),
            random_seed=request.seed,
            is_guardian=enemy.value.is_guardian,
        )
        bus = EventBus()
        executed: list[ExecutedProtocol] = []
        bus.subscribe(ExecutedProtocol, executed.append)
        tracker = MasteryTracker(self.masteries)
        tracker.attach(bus)

        battle = Battle(
            state,
            movement,
            tactical,
            enemy_movement + enemy_tactical,
            table=self.table,
            bus=bus,
            time_limit_ms=request.duration_ms,
        )
        battle.run(request.duration_ms, step_ms=request.tick_ms or self.tick_ms)
        completed = tracker.on_battle_end(battle.summary())
        logger.info("Simulated %s vs %s: %s", construct.value.id, enemy.value.id, battle.outcome.value)

        return SimulateResponse(
            battle_id=battle.state.battle_id,
            outcome=battle.outcome.value,
            duration_s=battle.duration_s,
            player_hp=battle.state.player.hp,
            enemy_hp=battle.state.enemy.hp,
            executed=[ExecutedProtocolInfo(**event_to_dict(e)) for e in executed],
            damage_by_type=dict(tracker.stats.damage_by_type),
            completed_masteries=[m.id for m in completed],
            dropped=_dropped_info(dropped),
            history=[
                HistoryPointInfo(time_s=h.time_s, player_hp=h.player_hp, enemy_hp=h.enemy_hp)
                for h in battle.history
            ],
        )
