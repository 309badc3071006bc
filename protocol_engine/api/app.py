"""
FastAPI Application - REST API for loadout tools and balance checks.

Endpoints:
    GET    /api/v1/health               Health check
    GET    /api/v1/triggers             List triggers (?category=health)
    GET    /api/v1/actions              List actions (?core=movement)
    GET    /api/v1/constructs           List player constructs
    GET    /api/v1/masteries            List masteries
    POST   /api/v1/simulate             Run one battle to the end
    POST   /api/v1/loadouts/validate    Hydrate a loadout, report dropped pairs

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union

from .. import __version__
from ..config import EngineConfig, configure_logging


def create_app(service=None, config: Optional[EngineConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional EngineService instance (creates new if not provided)
        config: Optional EngineConfig (read from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, Query
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import EngineService
    from .schemas import (
        # Request models
        SimulateRequest,
        ValidateLoadoutRequest,
        # Response models
        TriggerListResponse,
        ActionListResponse,
        ConstructListResponse,
        MasteryListResponse,
        SimulateResponse,
        ValidateLoadoutResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )

    config = config or EngineConfig.from_env()
    configure_logging(config.log_level)

    app = FastAPI(
        title="Protocol Engine API",
        description="""
Trigger/action protocol combat engine.

## Error Codes

| Code | Description |
|------|-------------|
| `UNKNOWN_CONSTRUCT` | Construct id not in the catalog |
| `UNKNOWN_ENEMY` | Enemy id not in the catalog |
| `INVALID_LOADOUT` | Loadout does not fit the construct |
| `VALIDATION_ERROR` | Request failed validation |
        """,
        version=__version__,
        docs_url=None if config.is_production else "/api/docs",
        redoc_url=None if config.is_production else "/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    api_service = service or EngineService(table=config.load_table(), tick_ms=config.tick_ms)

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(mode="json"),
        )

    def error_status(error: ErrorResponse) -> int:
        if error.error_code in (ErrorCode.UNKNOWN_CONSTRUCT, ErrorCode.UNKNOWN_ENEMY):
            return 404
        return 422

    # =========================================================================
    # Catalog Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/triggers",
        response_model=TriggerListResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Catalog"],
        summary="List triggers",
    )
    async def list_triggers(
        category: Optional[str] = Query(None, description="general, positioning, health, defense, status_effect"),
    ) -> Union[TriggerListResponse, JSONResponse]:
        try:
            return api_service.list_triggers(category)
        except ValueError:
            return make_error_response(
                ErrorCode.VALIDATION_ERROR, f"Unknown trigger category: {category}", 422
            )

    @app.get(
        "/api/v1/actions",
        response_model=ActionListResponse,
        responses={422: {"model": ErrorResponse}},
        tags=["Catalog"],
        summary="List actions",
    )
    async def list_actions(
        core: Optional[str] = Query(None, description="movement or tactical"),
    ) -> Union[ActionListResponse, JSONResponse]:
        try:
            return api_service.list_actions(core)
        except ValueError:
            return make_error_response(ErrorCode.VALIDATION_ERROR, f"Unknown core: {core}", 422)

    @app.get(
        "/api/v1/constructs",
        response_model=ConstructListResponse,
        tags=["Catalog"],
        summary="List player constructs",
    )
    async def list_constructs() -> ConstructListResponse:
        return api_service.list_constructs()

    @app.get(
        "/api/v1/masteries",
        response_model=MasteryListResponse,
        tags=["Catalog"],
        summary="List masteries",
    )
    async def list_masteries() -> MasteryListResponse:
        return api_service.list_masteries()

    # =========================================================================
    # Simulation / Loadout Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/simulate",
        response_model=SimulateResponse,
        responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
        tags=["Battle"],
        summary="Simulate one battle",
    )
    async def simulate(request: SimulateRequest) -> Union[SimulateResponse, JSONResponse]:
        """
        Run a battle between a loadout and an enemy archetype.

        Returns the outcome, the executed protocol log, damage dealt by type
        and any masteries the battle would complete.
        """
        response = api_service.simulate(request)
        if isinstance(response, ErrorResponse):
            return make_error_response(
                response.error_code, response.error, error_status(response), response.details
            )
        return response

    @app.post(
        "/api/v1/loadouts/validate",
        response_model=ValidateLoadoutResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Loadouts"],
        summary="Validate a loadout",
    )
    async def validate_loadout(request: ValidateLoadoutRequest) -> Union[ValidateLoadoutResponse, JSONResponse]:
        """Unknown ids and wrong-core actions are reported, not rejected."""
        response = api_service.validate_loadout(request)
        if isinstance(response, ErrorResponse):
            return make_error_response(
                response.error_code, response.error, error_status(response), response.details
            )
        return response

    # =========================================================================
    # Health Check
    # =========================================================================

    @app.get(
        "/api/v1/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="protocol-engine",
            version=__version__,
            table_version=api_service.table.version,
        )

    return app


# For running directly: uvicorn protocol_engine.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
