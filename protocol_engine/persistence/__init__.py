"""Persistence - saved progress schemas, protocol hydration and stores."""

from .schemas import PersistedProtocol, PersistedSlot, PlayerProgress, PROGRESS_SCHEMA_VERSION
from .hydration import (
    DroppedPair,
    hydrate_protocol,
    hydrate_protocols,
    hydrate_pairs,
    hydrate_slot,
    dehydrate_protocol,
    dehydrate_slot,
)
from .store import ProgressStore, InMemoryProgressStore, JsonFileProgressStore

__all__ = [
    "PersistedProtocol",
    "PersistedSlot",
    "PlayerProgress",
    "PROGRESS_SCHEMA_VERSION",
    "DroppedPair",
    "hydrate_protocol",
    "hydrate_protocols",
    "hydrate_pairs",
    "hydrate_slot",
    "dehydrate_protocol",
    "dehydrate_slot",
    "ProgressStore",
    "InMemoryProgressStore",
    "JsonFileProgressStore",
]
