"""
Hydration - Rebuild live protocols from saved ids, and back.

Unknown ids are dropped with a warning and reported; hydration never
raises for bad saved data.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable

from ..catalog.actions import ActionCatalog
from ..catalog.triggers import TriggerRegistry
from ..engine_core.action import CoreType
from ..engine_core.protocol import ConstructSlot, Protocol
from .schemas import PersistedProtocol, PersistedSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DroppedPair:
    """A saved pair that could not be rebuilt."""
    trigger_id: str
    action_id: str
    reason: str
    slot_id: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "slotId": self.slot_id,
            "triggerId": self.trigger_id,
            "actionId": self.action_id,
            "reason": self.reason,
        }


def hydrate_protocol(
    saved: PersistedProtocol,
    triggers: TriggerRegistry,
    actions: ActionCatalog,
    core: CoreType | None = None,
    slot_id: str | None = None,
) -> Protocol | DroppedPair:
    """Rebuild one protocol, or describe why it was dropped."""
    trigger = triggers.lookup(saved.trigger_id)
    action = actions.lookup(saved.action_id)

    reason = None
    if not trigger.found:
        reason = f"unknown trigger '{saved.trigger_id}'"
    elif not action.found:
        reason = f"unknown action '{saved.action_id}'"
    elif core is not None and action.value.core_type is not core:
        reason = f"action '{saved.action_id}' belongs to the {action.value.core_type.value} core"

    if reason:
        logger.warning("Dropping saved protocol %s:%s (%s)", saved.trigger_id, saved.action_id, reason)
        return DroppedPair(saved.trigger_id, saved.action_id, reason, slot_id)

    return Protocol(
        trigger=trigger.value,
        action=action.value,
        priority=saved.priority,
        enabled=saved.enabled,
    )


def hydrate_protocols(
    saved: Iterable[PersistedProtocol],
    triggers: TriggerRegistry,
    actions: ActionCatalog,
    core: CoreType | None = None,
    slot_id: str | None = None,
) -> tuple[list[Protocol], list[DroppedPair]]:
    protocols: list[Protocol] = []
    dropped: list[DroppedPair] = []
    for item in saved:
        result = hydrate_protocol(item, triggers, actions, core, slot_id)
        if isinstance(result, DroppedPair):
            dropped.append(result)
        else:
            protocols.append(result)
    return protocols, dropped


def hydrate_pairs(
    pairs: Iterable[tuple[str, str, float]],
    triggers: TriggerRegistry,
    actions: ActionCatalog,
    core: CoreType | None = None,
) -> tuple[list[Protocol], list[DroppedPair]]:
    """Hydrate (trigger_id, action_id, priority) triples such as enemy loadouts."""
    saved = [
        PersistedProtocol(trigger_id=t, action_id=a, priority=p)
        for t, a, p in pairs
    ]
    return hydrate_protocols(saved, triggers, actions, core)


def hydrate_slot(
    saved: PersistedSlot,
    triggers: TriggerRegistry,
    actions: ActionCatalog,
) -> tuple[ConstructSlot, list[DroppedPair]]:
    movement, dropped_movement = hydrate_protocols(
        saved.movement_protocols, triggers, actions, CoreType.MOVEMENT, saved.slot_id
    )
    tactical, dropped_tactical = hydrate_protocols(
        saved.tactical_protocols, triggers, actions, CoreType.TACTICAL, saved.slot_id
    )
    slot = ConstructSlot(
        slot_id=saved.slot_id,
        construct_id=saved.construct_id,
        movement_protocols=movement,
        tactical_protocols=tactical,
    )
    return slot, dropped_movement + dropped_tactical


def dehydrate_protocol(protocol: Protocol) -> PersistedProtocol:
    """Only ids, priority and enabled are saved; last_fired_at is transient."""
    return PersistedProtocol(
        trigger_id=protocol.trigger.id,
        action_id=protocol.action.id,
        priority=protocol.priority,
        enabled=protocol.enabled,
    )


def dehydrate_slot(slot: ConstructSlot) -> PersistedSlot:
    return PersistedSlot(
        slot_id=slot.slot_id,
        construct_id=slot.construct_id,
        movement_protocols=[dehydrate_protocol(p) for p in slot.movement_protocols],
        tactical_protocols=[dehydrate_protocol(p) for p in slot.tactical_protocols],
    )
