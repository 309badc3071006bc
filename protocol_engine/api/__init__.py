"""
API Module - HTTP interface to the engine.

Clients use it to:
1. Browse the trigger, action, construct and mastery catalogs
2. Validate loadouts before saving them
3. Simulate battles for balance checks

The API holds no player state; saved progress stays with the run manager.
"""

from .schemas import (
    # Requests
    SimulateRequest,
    ValidateLoadoutRequest,
    LoadoutProtocol,
    # Responses
    SimulateResponse,
    ValidateLoadoutResponse,
    TriggerListResponse,
    ActionListResponse,
    ConstructListResponse,
    MasteryListResponse,
    ErrorResponse,
    HealthResponse,
    ErrorCode,
)
from .service import EngineService
from .app import create_app

__all__ = [
    # Requests
    "SimulateRequest",
    "ValidateLoadoutRequest",
    "LoadoutProtocol",
    # Responses
    "SimulateResponse",
    "ValidateLoadoutResponse",
    "TriggerListResponse",
    "ActionListResponse",
    "ConstructListResponse",
    "MasteryListResponse",
    "ErrorResponse",
    "HealthResponse",
    "ErrorCode",
    # Service
    "EngineService",
    "create_app",
]
