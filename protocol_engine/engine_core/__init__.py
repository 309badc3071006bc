"""
Engine Core - Deterministic battle state and combat resolution.

The engine is the runtime that:
1. Holds the canonical BattleState
2. Selects protocols per core per actor (resolver)
3. Applies effects via the reducer
4. Ticks stacking status effects
5. Queues battle events for end-of-tick delivery
"""

from .state import (
    GRID_WIDTH,
    GRID_HEIGHT,
    Side,
    Position,
    StatusEffect,
    FighterState,
    BattleState,
    BattleContext,
    normalize_state_payload,
)
from .action import (
    CoreType,
    HitPattern,
    StatusTarget,
    DamageSpec,
    StatusSpec,
    HealOverTime,
    EffectDescriptor,
    DamageEvent,
    ResolutionResult,
)
from .protocol import (
    Trigger,
    TriggerCategory,
    Action,
    Protocol,
    TriggerActionPair,
    ConstructSlot,
    sort_by_priority,
)
from .status import StatusEngine, StatusModifiers, TickOutcome
from .damage import resolve_hit
from .reducer import CombatReducer, apply_effect, hits_target
from .resolver import ProtocolResolver, FiredProtocol
from .events import EventBus, ExecutedProtocol, DamageDealt, BattleEnded, event_to_dict

__all__ = [
    "GRID_WIDTH",
    "GRID_HEIGHT",
    "Side",
    "Position",
    "StatusEffect",
    "FighterState",
    "BattleState",
    "BattleContext",
    "normalize_state_payload",
    "CoreType",
    "HitPattern",
    "StatusTarget",
    "DamageSpec",
    "StatusSpec",
    "HealOverTime",
    "EffectDescriptor",
    "DamageEvent",
    "ResolutionResult",
    "Trigger",
    "TriggerCategory",
    "Action",
    "Protocol",
    "TriggerActionPair",
    "ConstructSlot",
    "sort_by_priority",
    "StatusEngine",
    "StatusModifiers",
    "TickOutcome",
    "resolve_hit",
    "CombatReducer",
    "apply_effect",
    "hits_target",
    "ProtocolResolver",
    "FiredProtocol",
    "EventBus",
    "ExecutedProtocol",
    "DamageDealt",
    "BattleEnded",
    "event_to_dict",
]
