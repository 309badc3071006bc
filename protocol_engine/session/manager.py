"""
Run Manager - Loadouts, runs, node rewards and saved progress.

LIFECYCLE:
1. Load progress from the store, hydrate construct slots (unknown ids dropped)
2. Edit loadouts: assign a construct, add/remove/reorder/toggle protocols
3. start_run(slot_id) -> start_battle(node_type) -> tick the Battle
4. finish_battle() -> the node's reward flow (guardians also evaluate masteries)
5. Claim the pending reward (module, upgrade, perk), then the next node
6. end_run() or extract() -> cipher fragments credited, progress saved

PERSISTENCE RULES:
- Only ids, priorities and enabled flags are saved
- Battle state and run state are never saved
- A failed save never loses in-memory progress; it comes back as a warning
"""

from __future__ import annotations
import logging
import random
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..balance import InteractionTable, default_table
from ..catalog.actions import ActionCatalog
from ..catalog.constructs import ConstructCatalog, EnemyArchetype, EnemyCatalog
from ..catalog.triggers import TriggerRegistry
from ..engine_core.action import CoreType
from ..engine_core.events import EventBus
from ..engine_core.protocol import ConstructSlot, Protocol
from ..engine_core.state import BattleState, Side
from ..mastery.masteries import MasteryRegistry, RewardBreakdown
from ..mastery.tracker import MasteryTracker
from ..persistence.hydration import DroppedPair, dehydrate_slot, hydrate_pairs, hydrate_slot
from ..persistence.schemas import PlayerProgress
from ..persistence.store import InMemoryProgressStore, ProgressStore
from .battle import Battle, BattleOutcome

logger = logging.getLogger(__name__)


FRAGMENT_NODE_REWARD = 50
HEAL_NODE_FRACTION = 0.3
UPGRADE_COOLDOWN_SCALE = 0.8
MODULE_CHOICES = 3
PERK_DAMAGE_BONUS = 0.1
MALWARE_DAMAGE_BONUS = 0.25
MALWARE_MAX_HP_PENALTY = 0.15


class NodeType(str, Enum):
    BATTLE = "battle"
    UPGRADE = "upgrade"
    FRAGMENT = "fragment"
    HEAL = "heal"
    SPECIAL = "special"
    GUARDIAN = "guardian"


class RewardFlow(str, Enum):
    MODULE_CHOICE = "module_choice"
    COOLDOWN_UPGRADE = "cooldown_upgrade"
    FRAGMENTS = "fragments"
    REPAIR = "repair"
    SPECIAL_CHOICE = "special_choice"


class SpecialChoice(str, Enum):
    PERK = "perk"
    MALWARE = "malware"


REWARD_FLOWS = {
    NodeType.BATTLE: RewardFlow.MODULE_CHOICE,
    NodeType.UPGRADE: RewardFlow.COOLDOWN_UPGRADE,
    NodeType.FRAGMENT: RewardFlow.FRAGMENTS,
    NodeType.HEAL: RewardFlow.REPAIR,
    NodeType.SPECIAL: RewardFlow.SPECIAL_CHOICE,
    NodeType.GUARDIAN: RewardFlow.MODULE_CHOICE,
}


class LoadoutError(ValueError):
    """Raised for an invalid loadout edit (full core, wrong core, duplicate, bad index)."""
    pass


class RunError(RuntimeError):
    """Raised when a run operation is called out of order."""
    pass


def calculate_currency_reward(nodes_completed: int) -> int:
    """Base cipher fragments for a run: 10 per node plus 25 per 5 nodes."""
    return nodes_completed * 10 + (nodes_completed // 5) * 25


@dataclass
class NodeReward:
    """The reward flow a won node opened."""
    node_type: NodeType
    flow: RewardFlow
    fragments: int = 0
    repaired: float = 0.0
    module_options: list[str] = field(default_factory=list)
    masteries: list[str] = field(default_factory=list)
    claimed: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_type": self.node_type.value,
            "flow": self.flow.value,
            "fragments": self.fragments,
            "repaired": self.repaired,
            "module_options": list(self.module_options),
            "masteries": list(self.masteries),
            "claimed": self.claimed,
        }


@dataclass
class RunState:
    """One run through the network. Never persisted."""
    run_id: str
    slot_id: str
    player_hp: float | None = None  # None: start the next battle at full HP
    nodes_completed: int = 0
    node_fragments: int = 0
    damage_bonus: float = 0.0
    max_hp_scale: float = 1.0
    unlocked_modules: list[str] = field(default_factory=list)
    battle: Battle | None = None
    node_type: NodeType | None = None
    pending_reward: NodeReward | None = None
    failed: bool = False


@dataclass
class RunResult:
    nodes_completed: int
    reward: RewardBreakdown
    node_fragments: int
    total_fragments: int
    extracted: bool = False
    warning: str | None = None


class RunManager:
    """
    Owns the player's slots and the current run.

    Usage:
        manager = RunManager(store=JsonFileProgressStore(data_dir))
        manager.assign_construct("slot-1", "vanguard")
        manager.add_protocol("slot-1", "always", "shoot")
        manager.start_run("slot-1")
        battle = manager.start_battle(NodeType.BATTLE, seed=7)
        battle.run(60_000)
        reward = manager.finish_battle()
        result = manager.end_run()
    """

    def __init__(
        self,
        store: ProgressStore | None = None,
        triggers: TriggerRegistry | None = None,
        actions: ActionCatalog | None = None,
        constructs: ConstructCatalog | None = None,
        enemies: EnemyCatalog | None = None,
        masteries: MasteryRegistry | None = None,
        table: InteractionTable | None = None,
    ):
        self.store = store or InMemoryProgressStore()
        self.triggers = triggers or TriggerRegistry.default()
        self.actions = actions or ActionCatalog.default()
        self.constructs = constructs or ConstructCatalog.default()
        self.enemies = enemies or EnemyCatalog.default()
        self.table = table or default_table()

        self.progress: PlayerProgress = self.store.load_progress()
        self.tracker = MasteryTracker(masteries, self.progress.completed_masteries)
        self.slots: dict[str, ConstructSlot] = {}
        self.dropped: list[DroppedPair] = []
        self.run: RunState | None = None
        self._hydrate_slots()

    def _hydrate_slots(self) -> None:
        for slot_id, saved in self.progress.slots.items():
            slot, dropped = hydrate_slot(saved, self.triggers, self.actions)
            if slot.construct_id is not None and slot.construct_id not in self.constructs:
                logger.warning("Slot %s has unknown construct %s, unassigned", slot_id, slot.construct_id)
                slot = ConstructSlot(slot_id=slot_id)
            self.slots[slot_id] = slot
            self.dropped.extend(dropped)

    # =========================================================================
    # Loadouts
    # =========================================================================

    def slot(self, slot_id: str) -> ConstructSlot:
        """Get a slot, creating an empty one on first use."""
        if slot_id not in self.slots:
            self.slots[slot_id] = ConstructSlot(slot_id=slot_id)
        return self.slots[slot_id]

    def assign_construct(self, slot_id: str, construct_id: str) -> ConstructSlot:
        """Put a construct in a slot. A different construct starts with empty cores."""
        if construct_id not in self.constructs:
            raise LoadoutError(f"Unknown construct: {construct_id}")
        slot = self.slot(slot_id)
        if slot.construct_id != construct_id:
            slot.construct_id = construct_id
            slot.movement_protocols.clear()
            slot.tactical_protocols.clear()
        return slot

    def add_protocol(
        self,
        slot_id: str,
        trigger_id: str,
        action_id: str,
        priority: float = 1,
    ) -> Protocol:
        slot = self._assigned_slot(slot_id)
        trigger = self.triggers.lookup(trigger_id)
        if not trigger.found:
            raise LoadoutError(f"Unknown trigger: {trigger_id}")
        action = self.actions.lookup(action_id)
        if not action.found:
            raise LoadoutError(f"Unknown action: {action_id}")

        core = action.value.core_type
        protocols = slot.protocols(core)
        capacity = self.constructs.lookup(slot.construct_id).value.max_slots(core)
        if len(protocols) >= capacity:
            raise LoadoutError(f"{core.value} core of {slot_id} is full ({capacity} slots)")
        if any(p.trigger.id == trigger_id and p.action.id == action_id for p in protocols):
            raise LoadoutError(f"{trigger_id} -> {action_id} is already loaded in {slot_id}")

        protocol = Protocol(trigger=trigger.value, action=action.value, priority=priority)
        protocols.append(protocol)
        return protocol

    def remove_protocol(self, slot_id: str, core: CoreType | str, index: int) -> Protocol:
        protocols = self._assigned_slot(slot_id).protocols(CoreType(core))
        self._check_index(protocols, index)
        return protocols.pop(index)

    def update_priority(self, slot_id: str, core: CoreType | str, index: int, priority: float) -> Protocol:
        protocols = self._assigned_slot(slot_id).protocols(CoreType(core))
        self._check_index(protocols, index)
        protocols[index].priority = priority
        return protocols[index]

    def toggle_protocol(self, slot_id: str, core: CoreType | str, index: int) -> bool:
        """Flip enabled; returns the new value."""
        protocols = self._assigned_slot(slot_id).protocols(CoreType(core))
        self._check_index(protocols, index)
        protocol = protocols[index]
        protocol.enabled = not protocol.enabled
        return protocol.enabled

    def _assigned_slot(self, slot_id: str) -> ConstructSlot:
        slot = self.slots.get(slot_id)
        if slot is None or slot.construct_id is None:
            raise LoadoutError(f"No construct assigned to slot {slot_id}")
        return slot

    @staticmethod
    def _check_index(protocols: list[Protocol], index: int) -> None:
        if not 0 <= index < len(protocols):
            raise LoadoutError(f"No protocol at index {index}")

    # =========================================================================
    # Runs and battles
    # =========================================================================

    def start_run(self, slot_id: str) -> RunState:
        if self.run is not None:
            raise RunError("A run is already in progress")
        slot = self._assigned_slot(slot_id)
        if not slot.all_protocols():
            raise LoadoutError(f"Slot {slot_id} has no protocols loaded")
        self.tracker.reset_run()
        self.run = RunState(run_id=str(uuid.uuid4())[:8], slot_id=slot_id)
        logger.info("Run %s started with %s", self.run.run_id, slot.construct_id)
        return self.run

    def start_battle(
        self,
        node_type: NodeType | str,
        enemy_id: str | None = None,
        seed: int = 0,
        time_limit_ms: float | None = None,
    ) -> Battle:
        run = self._active_run()
        if run.failed:
            raise RunError("The run is lost; end or extract it")
        if run.battle is not None:
            raise RunError("Finish the current battle first")
        if run.pending_reward is not None and not run.pending_reward.claimed:
            raise RunError("Claim the pending reward first")

        node_type = NodeType(node_type)
        enemy = self._pick_enemy(node_type, enemy_id, seed)
        slot = self.slots[run.slot_id]
        construct = self.constructs.lookup(slot.construct_id).value

        player = construct.build_fighter(Side.PLAYER)
        player.max_hp = player.max_hp * run.max_hp_scale
        player.hp = player.max_hp if run.player_hp is None else min(run.player_hp, player.max_hp)
        player.damage_bonus += run.damage_bonus

        enemy_movement, dropped_movement = hydrate_pairs(enemy.movement, self.triggers, self.actions, CoreType.MOVEMENT)
        enemy_tactical, dropped_tactical = hydrate_pairs(enemy.tactical, self.triggers, self.actions, CoreType.TACTICAL)
        if dropped_movement or dropped_tactical:
            logger.warning("Enemy %s loadout lost %d pairs", enemy.id, len(dropped_movement) + len(dropped_tactical))

        state = BattleState(
            battle_id=f"{run.run_id}-{run.nodes_completed + 1}",
            player=player,
            enemy=enemy.build_fighter(),
            random_seed=seed,
            is_guardian=node_type is NodeType.GUARDIAN,
            metadata={"node_type": node_type.value, "enemy_id": enemy.id},
        )
        bus = EventBus()
        self.tracker.attach(bus)
        run.battle = Battle(
            state,
            slot.movement_protocols,
            slot.tactical_protocols,
            enemy_movement + enemy_tactical,
            table=self.table,
            bus=bus,
            time_limit_ms=time_limit_ms,
        )
        run.node_type = node_type
        run.pending_reward = None
        return run.battle

    def _pick_enemy(self, node_type: NodeType, enemy_id: str | None, seed: int) -> EnemyArchetype:
        if enemy_id is not None:
            lookup = self.enemies.lookup(enemy_id)
            if not lookup.found:
                raise RunError(f"Unknown enemy: {enemy_id}")
            return lookup.value
        if node_type is NodeType.GUARDIAN:
            pool = self.enemies.guardians()
        else:
            pool = [e for e in self.enemies if not e.is_guardian]
        if not pool:
            raise RunError(f"No enemies available for a {node_type.value} node")
        return random.Random(f"enemy:{seed}").choice(pool)

    def finish_battle(self) -> NodeReward | None:
        """
        Close the finished battle and open the node's reward flow.

        Returns None when the battle was lost; the run is then over and
        only end_run() or extract() remain.
        """
        run = self._active_run()
        battle = run.battle
        if battle is None or not battle.finished:
            raise RunError("No finished battle to close")
        self.tracker.detach(battle.bus)
        run.battle = None

        if battle.outcome is not BattleOutcome.VICTORY:
            run.failed = True
            logger.info("Run %s lost at node %d (%s)", run.run_id, run.nodes_completed + 1, battle.outcome.value)
            return None

        summary = battle.summary()
        newly = self.tracker.on_battle_end(summary)
        run.nodes_completed += 1
        run.player_hp = battle.state.player.hp

        reward = self._open_reward(run, battle)
        reward.masteries = [m.id for m in newly]
        run.pending_reward = reward
        return reward

    def _open_reward(self, run: RunState, battle: Battle) -> NodeReward:
        node_type = run.node_type or NodeType.BATTLE
        reward = NodeReward(node_type=node_type, flow=REWARD_FLOWS[node_type])

        if reward.flow is RewardFlow.FRAGMENTS:
            reward.fragments = FRAGMENT_NODE_REWARD
            run.node_fragments += FRAGMENT_NODE_REWARD
            reward.claimed = True
        elif reward.flow is RewardFlow.REPAIR:
            max_hp = battle.state.player.max_hp
            healed = min(max_hp - run.player_hp, float(int(max_hp * HEAL_NODE_FRACTION)))
            run.player_hp += healed
            reward.repaired = healed
            reward.claimed = True
        elif reward.flow is RewardFlow.MODULE_CHOICE:
            pool = [m for m in self.triggers.ids() + self.actions.ids() if m not in run.unlocked_modules]
            rng = random.Random(f"modules:{battle.state.random_seed}:{run.nodes_completed}")
            reward.module_options = rng.sample(pool, min(MODULE_CHOICES, len(pool)))
            reward.claimed = not reward.module_options
        return reward

    # =========================================================================
    # Reward claims
    # =========================================================================

    def claim_module(self, module_id: str) -> list[str]:
        reward = self._pending(RewardFlow.MODULE_CHOICE)
        if module_id not in reward.module_options:
            raise RunError(f"{module_id} was not offered")
        self.run.unlocked_modules.append(module_id)
        reward.claimed = True
        return self.run.unlocked_modules

    def claim_upgrade(self, core: CoreType | str, index: int) -> Protocol:
        """Cut one loaded protocol's cooldown by 20% for the rest of the run."""
        reward = self._pending(RewardFlow.COOLDOWN_UPGRADE)
        protocols = self.slots[self.run.slot_id].protocols(CoreType(core))
        self._check_index(protocols, index)
        protocol = protocols[index]
        protocol.cooldown_scale *= UPGRADE_COOLDOWN_SCALE
        reward.claimed = True
        return protocol

    def claim_special(self, choice: SpecialChoice | str) -> RunState:
        reward = self._pending(RewardFlow.SPECIAL_CHOICE)
        run = self.run
        if SpecialChoice(choice) is SpecialChoice.PERK:
            run.damage_bonus += PERK_DAMAGE_BONUS
        else:
            run.damage_bonus += MALWARE_DAMAGE_BONUS
            run.max_hp_scale *= 1 - MALWARE_MAX_HP_PENALTY
        reward.claimed = True
        return run

    def _pending(self, flow: RewardFlow) -> NodeReward:
        reward = self._active_run().pending_reward
        if reward is None or reward.claimed or reward.flow is not flow:
            raise RunError(f"No pending {flow.value} reward")
        return reward

    # =========================================================================
    # Run end
    # =========================================================================

    def end_run(self) -> RunResult:
        """Finish the run: base currency plus mastery bonuses, then save."""
        run = self._active_run()
        self._cancel_live_battle(run)
        reward = self.tracker.end_run(calculate_currency_reward(run.nodes_completed))
        return self._close_run(run, reward, extracted=False)

    def extract(self) -> RunResult:
        """
        Leave the run early. Uncommitted run stats and this run's mastery
        bonus are discarded; completed masteries stay completed.
        """
        run = self._active_run()
        self._cancel_live_battle(run)
        self.tracker.discard_run()
        base = calculate_currency_reward(run.nodes_completed)
        reward = RewardBreakdown(bonus_fragments=0, total_fragments=base, masteries=[])
        return self._close_run(run, reward, extracted=True)

    def _cancel_live_battle(self, run: RunState) -> None:
        if run.battle is not None:
            run.battle.cancel()
            self.tracker.detach(run.battle.bus)
            run.battle = None

    def _close_run(self, run: RunState, reward: RewardBreakdown, extracted: bool) -> RunResult:
        total = reward.total_fragments + run.node_fragments
        self.progress.cipher_fragments += total
        self.progress.total_runs += 1
        self.progress.total_nodes_completed += run.nodes_completed
        self.progress.completed_masteries = list(self.tracker.progress.completed_masteries)
        for protocol in self.slots[run.slot_id].all_protocols():
            protocol.cooldown_scale = 1.0
            protocol.reset()
        self.run = None

        logger.info("Run %s closed: %d nodes, %d fragments", run.run_id, run.nodes_completed, total)
        return RunResult(
            nodes_completed=run.nodes_completed,
            reward=reward,
            node_fragments=run.node_fragments,
            total_fragments=total,
            extracted=extracted,
            warning=self.save(),
        )

    def _active_run(self) -> RunState:
        if self.run is None:
            raise RunError("No run in progress")
        return self.run

    # =========================================================================
    # Persistence
    # =========================================================================

    def save(self) -> str | None:
        """Write progress and slots. Returns a warning instead of raising on failure."""
        self.progress.slots = {slot_id: dehydrate_slot(slot) for slot_id, slot in self.slots.items()}
        self.progress.completed_masteries = list(self.tracker.progress.completed_masteries)
        try:
            self.store.save_progress(self.progress)
        except (OSError, TypeError, ValueError) as e:
            warning = f"Progress not saved: {e}"
            logger.warning(warning)
            return warning
        return None
