"""
Catalog - Static trigger, action, construct and enemy definitions.

Every catalog is an explicitly constructed registry:

    triggers = TriggerRegistry.default()
    actions = ActionCatalog.default()
    constructs = ConstructCatalog.default()
    enemies = EnemyCatalog.default()
"""

from .registry import Present, Absent, Lookup, Registry, DuplicateIdError
from .triggers import TriggerRegistry
from .actions import ActionCatalog, ACTION_GROUPS
from .constructs import (
    Construct,
    ConstructCatalog,
    EnemyArchetype,
    EnemyCatalog,
    EnemyTier,
    Passive,
    PassiveEffect,
)

__all__ = [
    "Present",
    "Absent",
    "Lookup",
    "Registry",
    "DuplicateIdError",
    "TriggerRegistry",
    "ActionCatalog",
    "ACTION_GROUPS",
    "Construct",
    "ConstructCatalog",
    "EnemyArchetype",
    "EnemyCatalog",
    "EnemyTier",
    "Passive",
    "PassiveEffect",
]
