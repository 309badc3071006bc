"""
Trigger Catalog - Condition definitions built from factories.

Every trigger reads the battle through an actor-relative BattleContext,
so the same trigger works for the player and for enemies.

HP thresholds are percentages of max HP.
Columns are side-relative: "back" is the column furthest from the opponent.
"""

from __future__ import annotations

from ..balance import StatusType
from ..engine_core.protocol import Trigger, TriggerCategory
from ..engine_core.state import BattleContext, back_column, front_column
from .registry import Lookup, Registry


def _compare(value: float, threshold: float, comparison: str) -> bool:
    if comparison == "below":
        return value < threshold
    if comparison == "above":
        return value > threshold
    if comparison == "at_least":
        return value >= threshold
    return value == threshold


# ============================================================================
# Factories
# ============================================================================

def own_hp_trigger(trigger_id: str, name: str, threshold: float, comparison: str) -> Trigger:
    """Own HP percent below / above / equal to / at least a threshold."""
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when your HP is {comparison.replace('_', ' ')} {threshold:g}%",
        category=TriggerCategory.HEALTH,
        predicate=lambda ctx: _compare(ctx.me.hp_percent, threshold, comparison),
    )


def enemy_hp_trigger(trigger_id: str, name: str, threshold: float, comparison: str) -> Trigger:
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when enemy HP is {comparison.replace('_', ' ')} {threshold:g}%",
        category=TriggerCategory.HEALTH,
        predicate=lambda ctx: _compare(ctx.opponent.hp_percent, threshold, comparison),
    )


def own_defense_trigger(trigger_id: str, name: str, defense: str, has_it: bool) -> Trigger:
    """defense is "shield" or "armor"."""
    attr = "shields" if defense == "shield" else "armor"
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when you {'have' if has_it else 'lack'} {defense}",
        category=TriggerCategory.DEFENSE,
        predicate=lambda ctx: (getattr(ctx.me, attr) > 0) == has_it,
    )


def enemy_defense_trigger(trigger_id: str, name: str, defense: str, has_it: bool) -> Trigger:
    attr = "shields" if defense == "shield" else "armor"
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when enemy {'has' if has_it else 'lacks'} {defense}",
        category=TriggerCategory.DEFENSE,
        predicate=lambda ctx: (getattr(ctx.opponent, attr) > 0) == has_it,
    )


def own_row_trigger(trigger_id: str, name: str, row: int) -> Trigger:
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when in row {row}",
        category=TriggerCategory.POSITIONING,
        predicate=lambda ctx: ctx.me.position.y == row,
    )


def own_column_trigger(trigger_id: str, name: str, where: str) -> Trigger:
    """where is "front" or "back", relative to the actor's side."""
    column = front_column if where == "front" else back_column
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when at your {where} column",
        category=TriggerCategory.POSITIONING,
        predicate=lambda ctx: ctx.me.position.x == column(ctx.side),
    )


def enemy_column_trigger(trigger_id: str, name: str, where: str) -> Trigger:
    column = front_column if where == "front" else back_column
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when enemy is at their {where}most position",
        category=TriggerCategory.POSITIONING,
        predicate=lambda ctx: ctx.opponent.position.x == column(ctx.side.opponent),
    )


def distance_trigger(trigger_id: str, name: str, distance: int, comparison: str) -> Trigger:
    """comparison: "equals", "at_most" (<=) or "greater" (>)."""
    def check(ctx: BattleContext) -> bool:
        d = ctx.distance()
        if comparison == "equals":
            return d == distance
        if comparison == "at_most":
            return d <= distance
        return d > distance

    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when distance is {comparison.replace('_', ' ')} {distance} tiles",
        category=TriggerCategory.POSITIONING,
        predicate=check,
    )


def row_relation_trigger(trigger_id: str, name: str, relation: str) -> Trigger:
    """relation: "above", "below", "same" or "different" (enemy vs own row)."""
    def check(ctx: BattleContext) -> bool:
        diff = ctx.opponent.position.y - ctx.me.position.y
        if relation == "above":
            return diff < 0
        if relation == "below":
            return diff > 0
        if relation == "same":
            return diff == 0
        return diff != 0

    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when enemy is {relation} your row",
        category=TriggerCategory.POSITIONING,
        predicate=check,
    )


def enemy_status_trigger(trigger_id: str, name: str, status_type: StatusType) -> Trigger:
    return Trigger(
        id=trigger_id,
        name=name,
        description=f"Triggers when enemy has {status_type.value}",
        category=TriggerCategory.STATUS_EFFECT,
        predicate=lambda ctx: ctx.opponent.has_status(status_type),
    )


def damage_taken_trigger(trigger_id: str, name: str) -> Trigger:
    return Trigger(
        id=trigger_id,
        name=name,
        description="Triggers immediately after taking damage",
        category=TriggerCategory.STATUS_EFFECT,
        predicate=lambda ctx: ctx.just_took_damage,
    )


# ============================================================================
# Catalog
# ============================================================================

ALWAYS = Trigger(
    id="always",
    name="Always",
    description="Always triggers (use as fallback!)",
    category=TriggerCategory.GENERAL,
    predicate=lambda ctx: True,
)

POSITIONING_TRIGGERS = [
    own_column_trigger("at-back", "At Back Position", "back"),
    own_column_trigger("at-front", "At Front Position", "front"),
    own_row_trigger("top-row", "In Top Row", 0),
    own_row_trigger("middle-row", "In Middle Row", 1),
    own_row_trigger("bottom-row", "In Bottom Row", 2),
    distance_trigger("enemy-at-min-distance", "Enemy at Minimum Distance", 1, "equals"),
    distance_trigger("enemy-close", "Enemy Close", 1, "at_most"),
    distance_trigger("in-range", "In Attack Range", 2, "at_most"),
    distance_trigger("enemy-in-range", "Enemy in Range", 2, "at_most"),
    distance_trigger("enemy-far", "Enemy Far", 2, "greater"),
    distance_trigger("enemy-very-far", "Enemy Very Far", 3, "greater"),
    row_relation_trigger("same-row", "Same Row as Enemy", "same"),
    row_relation_trigger("different-row", "Different Row", "different"),
    row_relation_trigger("enemy-above", "Enemy Above", "above"),
    row_relation_trigger("enemy-below", "Enemy Below", "below"),
    enemy_column_trigger("enemy-at-back", "Enemy at Back", "back"),
    enemy_column_trigger("enemy-at-front", "Enemy at Front", "front"),
]

HEALTH_TRIGGERS = [
    own_hp_trigger("full-hp", "Full HP", 100, "at_least"),
    own_hp_trigger("high-hp", "High HP", 70, "above"),
    own_hp_trigger("low-hp", "Low HP", 30, "below"),
    own_hp_trigger("critical-hp", "Critical HP", 15, "below"),
    enemy_hp_trigger("enemy-high-hp", "Enemy High HP", 70, "above"),
    enemy_hp_trigger("enemy-low-hp", "Enemy Low HP", 30, "below"),
    enemy_hp_trigger("enemy-critical-hp", "Enemy Critical HP", 15, "below"),
]

DEFENSE_TRIGGERS = [
    own_defense_trigger("shield-active", "Shield Active", "shield", True),
    own_defense_trigger("shield-depleted", "Shield Depleted", "shield", False),
    own_defense_trigger("shields-up", "Shields Active", "shield", True),
    own_defense_trigger("armor-active", "Armor Active", "armor", True),
    enemy_defense_trigger("enemy-has-shield", "Enemy Has Shield", "shield", True),
    enemy_defense_trigger("enemy-shield-down", "Enemy Shield Down", "shield", False),
    enemy_defense_trigger("enemy-has-armor", "Enemy Has Armor", "armor", True),
    enemy_defense_trigger("enemy-armor-down", "Enemy Armor Down", "armor", False),
    Trigger(
        id="enemy-exposed",
        name="Enemy Exposed",
        description="Triggers when enemy has no shields or armor",
        category=TriggerCategory.DEFENSE,
        predicate=lambda ctx: ctx.opponent.shields <= 0 and ctx.opponent.armor <= 0,
    ),
]

STATUS_EFFECT_TRIGGERS = [
    enemy_status_trigger("enemy-burning", "Enemy Burning", StatusType.BURN),
    enemy_status_trigger("enemy-corroded", "Enemy Corroded", StatusType.CORRODE),
    enemy_status_trigger("enemy-infected", "Enemy Infected", StatusType.VIRAL_INFECTION),
    enemy_status_trigger("enemy-emp", "Enemy EMP'd", StatusType.EMP),
    enemy_status_trigger("enemy-stunned", "Enemy Stunned", StatusType.STUN),
    enemy_status_trigger("enemy-lagged", "Enemy Lagged", StatusType.LAG),
    enemy_status_trigger("enemy-displaced", "Enemy Displaced", StatusType.DISPLACE),
    enemy_status_trigger("enemy-logic-disabled", "Enemy Logic Disabled", StatusType.DISABLE),
    damage_taken_trigger("took-damage", "Just Took Damage"),
    damage_taken_trigger("just-took-damage", "Just Damaged"),
]


class TriggerRegistry(Registry[Trigger]):
    """
    All known triggers, keyed by id.

    Usage:
        registry = TriggerRegistry.default()
        match registry.lookup("low-hp"): ...
        registry.category(TriggerCategory.HEALTH)
    """

    @classmethod
    def default(cls) -> TriggerRegistry:
        return cls(
            [ALWAYS]
            + POSITIONING_TRIGGERS
            + HEALTH_TRIGGERS
            + DEFENSE_TRIGGERS
            + STATUS_EFFECT_TRIGGERS
        )

    def category(self, category: TriggerCategory | str) -> list[Trigger]:
        category = TriggerCategory(category)
        return [t for t in self if t.category is category]

    def get(self, trigger_id: str) -> Lookup[Trigger]:
        return self.lookup(trigger_id)
