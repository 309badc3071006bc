"""
Protocol Resolver - First-match-wins selection per core per actor.

For one actor and one core, once per tick:
1. Walk protocols by descending priority (stable for ties)
2. Skip disabled protocols, other-core actions and cooling-down actions
3. The first true trigger fires, unless a lag stutter roll fails it,
   in which case evaluation moves on to the next protocol
4. No match means the core idles this tick

The resolver never raises for bad data: a trigger or action that raises
is logged and treated as not matching.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass

from ..balance import InteractionTable, default_table
from .action import CoreType, EffectDescriptor
from .events import ExecutedProtocol
from .protocol import Protocol, sort_by_priority
from .state import BattleState, Side
from .status import StatusEngine

logger = logging.getLogger(__name__)


@dataclass
class FiredProtocol:
    """A protocol the resolver selected, with the effect it produced."""
    protocol: Protocol
    effect: EffectDescriptor
    cooldown_ms: float
    core: CoreType
    side: Side
    timestamp: float

    def to_event(self) -> ExecutedProtocol:
        action = self.protocol.action
        trigger = self.protocol.trigger
        return ExecutedProtocol(
            id=self.protocol.id,
            action_id=action.id,
            action_name=action.name,
            trigger_id=trigger.id,
            trigger_name=trigger.name,
            cooldown=self.cooldown_ms,
            source=self.core.value,
            side=self.side.value,
            timestamp=self.timestamp,
        )


class ProtocolResolver:
    """
    Selects which protocol fires for a core.

    Usage:
        resolver = ProtocolResolver(StatusEngine(table))
        fired = resolver.select(state, Side.PLAYER, protocols, CoreType.TACTICAL)
        if fired:
            result = reducer.apply(state, Side.PLAYER, fired.effect)
    """

    def __init__(self, status_engine: StatusEngine | None = None, table: InteractionTable | None = None):
        self.status_engine = status_engine or StatusEngine(table or default_table())

    def select(
        self,
        state: BattleState,
        side: Side,
        protocols: list[Protocol],
        core: CoreType,
    ) -> FiredProtocol | None:
        """
        Pick and fire at most one protocol of `core` for `side`.

        Marks the fired protocol's last_fired_at; nothing else changes.
        """
        context = state.context_for(side)
        mods = self.status_engine.modifiers(context.me)
        if mods.suppressed:
            return None

        now = state.now
        for protocol in sort_by_priority(protocols):
            if not protocol.enabled or protocol.core_type is not core:
                continue

            cooldown = mods.effective_cooldown(
                protocol.base_cooldown_ms, movement=core is CoreType.MOVEMENT
            )
            if not protocol.is_ready(now, cooldown):
                continue

            try:
                matched = protocol.trigger.check(context)
            except Exception as e:
                logger.warning("Trigger %s raised, treated as false: %s", protocol.trigger.id, e)
                matched = False
            if not matched:
                continue

            if mods.action_fail_chance > 0:
                roll = context.rng(f"stutter:{core.value}:{protocol.id}").random()
                if roll < mods.action_fail_chance:
                    logger.debug("%s %s stuttered on %s", side.value, core.value, protocol.id)
                    continue

            try:
                effect = protocol.action.execute(context)
            except Exception as e:
                logger.warning("Action %s raised, skipped: %s", protocol.action.id, e)
                continue

            protocol.last_fired_at = now
            return FiredProtocol(
                protocol=protocol,
                effect=effect,
                cooldown_ms=cooldown,
                core=core,
                side=side,
                timestamp=now,
            )
        return None
