"""
Pydantic Schemas for Persistence - The saved-progress wire shape.

Field names are camelCase on the wire (slotId, triggerId, ...) and
snake_case in Python. Only ids cross the boundary: triggers and actions
are looked up again on load, never serialized.
"""

from typing import Optional
from pydantic import BaseModel, Field


PROGRESS_SCHEMA_VERSION = 1


class PersistedProtocol(BaseModel):
    """One trigger-action pair as saved."""
    trigger_id: str = Field(alias="triggerId")
    action_id: str = Field(alias="actionId")
    priority: float = 1
    enabled: bool = True

    model_config = {"populate_by_name": True}


class PersistedSlot(BaseModel):
    """A construct slot as saved."""
    slot_id: str = Field(alias="slotId")
    construct_id: Optional[str] = Field(None, alias="constructId")
    movement_protocols: list[PersistedProtocol] = Field(default_factory=list, alias="movementProtocols")
    tactical_protocols: list[PersistedProtocol] = Field(default_factory=list, alias="tacticalProtocols")

    model_config = {"populate_by_name": True}


class PlayerProgress(BaseModel):
    """Everything that survives between runs."""
    version: int = PROGRESS_SCHEMA_VERSION
    cipher_fragments: int = Field(0, ge=0, alias="cipherFragments")
    completed_masteries: list[str] = Field(default_factory=list, alias="completedMasteries")
    total_runs: int = Field(0, ge=0, alias="totalRuns")
    total_nodes_completed: int = Field(0, ge=0, alias="totalNodesCompleted")
    slots: dict[str, PersistedSlot] = Field(default_factory=dict)

    model_config = {"populate_by_name": True}

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
