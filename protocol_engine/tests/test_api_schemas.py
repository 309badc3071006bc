"""
Tests for API Pydantic schemas and the HTTP app.

Validates that:
- Request models accept both wire spellings and enforce limits
- Error codes are properly structured
- The OpenAPI schema generates with every response model
- Endpoints map service errors to status codes
"""

import pytest
from pydantic import ValidationError


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from ..api.app import create_app
    from ..config import EngineConfig

    return TestClient(create_app(config=EngineConfig()))


class TestPydanticSchemas:
    """Tests for Pydantic schema validation."""

    def test_loadout_protocol_aliases(self):
        from ..api.schemas import LoadoutProtocol

        by_alias = LoadoutProtocol.model_validate({"triggerId": "always", "actionId": "shoot"})
        by_name = LoadoutProtocol(trigger_id="always", action_id="shoot")
        assert by_alias == by_name
        assert by_alias.priority == 1
        assert by_alias.enabled is True

    def test_simulate_duration_limits(self):
        from ..api.schemas import SimulateRequest

        with pytest.raises(ValidationError):
            SimulateRequest(construct_id="vanguard", enemy_id="sentry-alpha", duration_ms=0)
        with pytest.raises(ValidationError):
            SimulateRequest(construct_id="vanguard", enemy_id="sentry-alpha", duration_ms=600_001)

    def test_error_response_schema(self):
        from ..api.schemas import ErrorCode, ErrorResponse

        response = ErrorResponse(
            error="Unknown enemy: dragon",
            error_code=ErrorCode.UNKNOWN_ENEMY,
            details={"enemy_id": "dragon"},
        )
        data = response.model_dump(mode="json")
        assert data["error_code"] == "UNKNOWN_ENEMY"
        assert data["api_version"] == "v1"

    def test_error_code_values_are_strings(self):
        from ..api.schemas import ErrorCode

        for code in ErrorCode:
            assert isinstance(code.value, str)
            assert code.value == code.value.upper()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_response_models_in_schema(self):
        from fastapi.openapi.utils import get_openapi
        from ..api.app import create_app
        from ..config import EngineConfig

        app = create_app(config=EngineConfig())
        schema = get_openapi(title=app.title, version=app.version, routes=app.routes)

        schemas = schema["components"]["schemas"]
        for name in (
            "TriggerListResponse",
            "ActionListResponse",
            "SimulateResponse",
            "ValidateLoadoutResponse",
            "ErrorResponse",
            "HealthResponse",
        ):
            assert name in schemas, f"Missing schema: {name}"

        assert "200" in schema["paths"]["/api/v1/simulate"]["post"]["responses"]


class TestEndpoints:

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["table_version"] == "1.0.0"

    def test_triggers_by_category(self, client):
        response = client.get("/api/v1/triggers", params={"category": "defense"})
        assert response.status_code == 200
        assert response.json()["count"] > 0

    def test_bad_category(self, client):
        response = client.get("/api/v1/triggers", params={"category": "astrology"})
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_bad_core(self, client):
        assert client.get("/api/v1/actions", params={"core": "brain"}).status_code == 422

    def test_simulate(self, client):
        response = client.post("/api/v1/simulate", json={
            "construct_id": "vanguard",
            "enemy_id": "sentry-alpha",
            "tactical_protocols": [{"triggerId": "always", "actionId": "shoot"}],
            "seed": 3,
        })
        assert response.status_code == 200
        assert response.json()["outcome"] == "victory"

    def test_simulate_unknown_enemy_is_404(self, client):
        response = client.post("/api/v1/simulate", json={
            "construct_id": "vanguard",
            "enemy_id": "dragon",
        })
        assert response.status_code == 404
        assert response.json()["error_code"] == "UNKNOWN_ENEMY"

    def test_simulate_overfull_is_422(self, client):
        movement = [
            {"triggerId": t, "actionId": "move-forward"}
            for t in ("always", "enemy-far", "enemy-close", "same-row")
        ]
        response = client.post("/api/v1/simulate", json={
            "construct_id": "breacher",
            "enemy_id": "sentry-alpha",
            "movement_protocols": movement,
        })
        assert response.status_code == 422
        assert response.json()["error_code"] == "INVALID_LOADOUT"

    def test_validate_loadout(self, client):
        response = client.post("/api/v1/loadouts/validate", json={
            "tactical_protocols": [{"triggerId": "always", "actionId": "dash"}],
        })
        assert response.status_code == 200
        assert response.json()["valid"] is False

    def test_docs_served_outside_production(self, client):
        assert client.get("/api/docs").status_code == 200

    def test_docs_hidden_in_production(self):
        from fastapi.testclient import TestClient
        from ..api.app import create_app
        from ..config import EngineConfig

        client = TestClient(create_app(config=EngineConfig(env="production")))
        assert client.get("/api/docs").status_code == 404
        assert client.get("/api/v1/health").status_code == 200
