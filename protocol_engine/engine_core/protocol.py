"""
Protocols - Triggers, actions and the trigger-action pairs built from them.

A Trigger is a named pure predicate over a BattleContext.
An Action is a named factory of EffectDescriptors with a cooldown and a core.
A Protocol pairs one of each with a priority.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from ..balance import DamageType
from .action import CoreType, EffectDescriptor
from .state import BattleContext


class TriggerCategory(str, Enum):
    GENERAL = "general"
    POSITIONING = "positioning"
    HEALTH = "health"
    DEFENSE = "defense"
    STATUS_EFFECT = "status_effect"


@dataclass(frozen=True)
class Trigger:
    """A named condition. check() must give the same answer for the same context."""
    id: str
    name: str
    description: str
    category: TriggerCategory
    predicate: Callable[[BattleContext], bool] = field(repr=False, compare=False)

    def check(self, context: BattleContext) -> bool:
        return bool(self.predicate(context))


@dataclass(frozen=True)
class Action:
    """
    A named effect with a cooldown.

    execute() only describes the effect; the reducer applies it.
    """
    id: str
    name: str
    description: str
    cooldown_ms: float
    core_type: CoreType
    build: Callable[[BattleContext], EffectDescriptor] = field(repr=False, compare=False)
    damage_type: DamageType | None = None
    group: str = "utility"

    def execute(self, context: BattleContext) -> EffectDescriptor:
        return self.build(context)


@dataclass
class Protocol:
    """
    A trigger-action pair owned by a construct slot.

    last_fired_at is transient battle state and is never persisted.
    """
    trigger: Trigger
    action: Action
    priority: float = 1
    enabled: bool = True
    last_fired_at: float | None = None

    # Run-scoped cooldown upgrade (0.8 = 20% faster)
    cooldown_scale: float = 1.0

    @property
    def id(self) -> str:
        return f"{self.trigger.id}:{self.action.id}"

    @property
    def core_type(self) -> CoreType:
        return self.action.core_type

    @property
    def base_cooldown_ms(self) -> float:
        return self.action.cooldown_ms * self.cooldown_scale

    def is_ready(self, now: float, cooldown_ms: float) -> bool:
        """True when the cooldown since the last firing has elapsed."""
        return self.last_fired_at is None or now - self.last_fired_at >= cooldown_ms

    def reset(self) -> None:
        self.last_fired_at = None


# Alias used by loadout code
TriggerActionPair = Protocol


def sort_by_priority(protocols: list[Protocol]) -> list[Protocol]:
    """Descending priority; equal priorities keep their list order."""
    return sorted(protocols, key=lambda p: -p.priority)


@dataclass
class ConstructSlot:
    """A construct and the protocols loaded into each of its cores."""
    slot_id: str
    construct_id: str | None = None
    movement_protocols: list[Protocol] = field(default_factory=list)
    tactical_protocols: list[Protocol] = field(default_factory=list)

    def protocols(self, core: CoreType) -> list[Protocol]:
        if core is CoreType.MOVEMENT:
            return self.movement_protocols
        return self.tactical_protocols

    def all_protocols(self) -> list[Protocol]:
        return self.movement_protocols + self.tactical_protocols

    def reset_cooldowns(self) -> None:
        for protocol in self.all_protocols():
            protocol.reset()
