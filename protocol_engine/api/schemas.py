"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between clients (loadout editors,
balance tools) and the engine.

Error Codes:
- UNKNOWN_CONSTRUCT: Construct id not in the catalog
- UNKNOWN_ENEMY: Enemy id not in the catalog
- INVALID_LOADOUT: Loadout does not fit the construct
- VALIDATION_ERROR: Request body failed validation
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    UNKNOWN_CONSTRUCT = "UNKNOWN_CONSTRUCT"
    UNKNOWN_ENEMY = "UNKNOWN_ENEMY"
    INVALID_LOADOUT = "INVALID_LOADOUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Catalog Models
# =============================================================================

class TriggerInfo(BaseModel):
    id: str
    name: str
    description: str
    category: str


class ActionInfo(BaseModel):
    id: str
    name: str
    description: str
    cooldown_ms: float
    core_type: str = Field(description="movement or tactical")
    damage_type: Optional[str] = None
    group: str


class ConstructInfo(BaseModel):
    id: str
    name: str
    description: str
    base_hp: int
    base_shields: int
    base_armor: int
    max_movement_slots: int
    max_tactical_slots: int
    resistances: dict[str, float] = Field(default_factory=dict)
    passive: Optional[str] = None
    passive_value: Optional[float] = None


class MasteryInfo(BaseModel):
    id: str
    name: str
    description: str
    category: str
    flat_bonus: int = 0
    multiplier: float = 0.0


class TriggerListResponse(BaseModel):
    triggers: list[TriggerInfo]
    count: int


class ActionListResponse(BaseModel):
    actions: list[ActionInfo]
    count: int


class ConstructListResponse(BaseModel):
    constructs: list[ConstructInfo]
    count: int


class MasteryListResponse(BaseModel):
    masteries: list[MasteryInfo]
    count: int


# =============================================================================
# Loadouts
# =============================================================================

class LoadoutProtocol(BaseModel):
    """One trigger-action pair, in the saved-progress wire shape."""
    trigger_id: str = Field(alias="triggerId")
    action_id: str = Field(alias="actionId")
    priority: float = 1
    enabled: bool = True

    model_config = {"populate_by_name": True}


class DroppedPairInfo(BaseModel):
    trigger_id: str
    action_id: str
    reason: str
    slot_id: Optional[str] = None


class ValidateLoadoutRequest(BaseModel):
    """Request to check a loadout against the catalogs and a construct."""
    construct_id: Optional[str] = Field(None, description="Check slot capacity for this construct")
    movement_protocols: list[LoadoutProtocol] = Field(default_factory=list)
    tactical_protocols: list[LoadoutProtocol] = Field(default_factory=list)


class ValidateLoadoutResponse(BaseModel):
    valid: bool
    movement_count: int
    tactical_count: int
    dropped: list[DroppedPairInfo] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


# =============================================================================
# Simulation
# =============================================================================

class SimulateRequest(BaseModel):
    """Request to run one battle to completion."""
    construct_id: str = Field(..., description="Player construct id")
    enemy_id: str = Field(..., description="Enemy archetype id")
    movement_protocols: list[LoadoutProtocol] = Field(default_factory=list)
    tactical_protocols: list[LoadoutProtocol] = Field(default_factory=list)
    seed: int = Field(0, description="Seed for every random roll in the battle")
    duration_ms: int = Field(60_000, gt=0, le=600_000, description="Simulated time limit")
    tick_ms: Optional[int] = Field(None, gt=0, le=1000, description="Step size (server default if omitted)")


class ExecutedProtocolInfo(BaseModel):
    id: str
    action_id: str
    action_name: str
    trigger_id: str
    trigger_name: str
    cooldown: float
    source: str
    side: str
    timestamp: float


class HistoryPointInfo(BaseModel):
    time_s: float
    player_hp: float
    enemy_hp: float


class SimulateResponse(BaseModel):
    battle_id: str
    outcome: str
    duration_s: float
    player_hp: float
    enemy_hp: float
    executed: list[ExecutedProtocolInfo] = Field(default_factory=list)
    damage_by_type: dict[str, float] = Field(default_factory=dict)
    completed_masteries: list[str] = Field(default_factory=list)
    dropped: list[DroppedPairInfo] = Field(default_factory=list)
    history: list[HistoryPointInfo] = Field(default_factory=list)


# =============================================================================
# Errors / System
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
    table_version: str
