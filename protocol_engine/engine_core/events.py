"""
Battle events and an in-memory bus with per-tick flush semantics.

Events are queued while a tick resolves and delivered only when the
battle flushes at the end of the tick, so listeners never observe a
half-resolved step.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable


@dataclass(frozen=True)
class ExecutedProtocol:
    """A protocol fired."""
    id: str
    action_id: str
    action_name: str
    trigger_id: str
    trigger_name: str
    cooldown: float
    source: str  # movement | tactical
    side: str
    timestamp: float


@dataclass(frozen=True)
class DamageDealt:
    """One hit (or damage-over-time pulse) landed on `side`."""
    side: str
    damage_type: str
    amount: float
    shield_damage: float = 0.0
    armor_damage: float = 0.0
    hp_damage: float = 0.0
    timestamp: float = 0.0


@dataclass(frozen=True)
class BattleEnded:
    battle_id: str
    outcome: str
    timestamp: float


def event_to_dict(event: Any) -> dict[str, Any]:
    data = asdict(event)
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in data.items()}


Handler = Callable[[Any], None]


class EventBus:
    """
    Typed pub/sub keyed by event class.

    Usage:
        bus = EventBus()
        bus.subscribe(DamageDealt, on_damage)
        bus.publish(DamageDealt(...))
        bus.flush()  # end of tick
    """

    def __init__(self) -> None:
        self._subscribers: dict[type, list[Handler]] = {}
        self._queue: list[Any] = []

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._subscribers.setdefault(event_type, []).append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._subscribers.get(event_type)
        if handlers is None:
            return
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def publish(self, event: Any) -> None:
        self._queue.append(event)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def flush(self) -> list[Any]:
        """Deliver queued events in publish order and return them."""
        snapshot = self._queue
        self._queue = []
        for event in snapshot:
            for handler in list(self._subscribers.get(type(event), [])):
                handler(event)
        return snapshot

    def clear(self) -> None:
        self._queue.clear()
