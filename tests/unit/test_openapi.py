"""
Unit tests for OpenAPI documentation.

Verifies the OpenAPI schema is generated for all endpoints. The lifespan
is not entered, so no database is needed.
"""

import pytest
from fastapi.testclient import TestClient

from heroes_portal.api.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client for the application."""
    return TestClient(app)


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_title(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()

        assert schema["info"]["title"] == "heroes-portal"
        assert schema["info"]["version"] == "1.0.0"

    @pytest.mark.parametrize(
        ("path", "method"),
        [
            ("/api/users", "get"),
            ("/api/users/health", "get"),
            ("/api/users/signup", "post"),
            ("/api/users/login", "post"),
            ("/api/users/logout", "post"),
            ("/health", "get"),
            ("/api/heroes/profile/{user_id}", "get"),
        ],
    )
    def test_endpoint_documented(self, client: TestClient, path: str, method: str) -> None:
        schema = client.get("/openapi.json").json()

        assert method in schema["paths"][path]

    def test_signup_request_uses_camel_case(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()
        props = schema["components"]["schemas"]["SignupRequest"]["properties"]

        assert {"step", "serialId", "step1Token", "step2Token", "dob"} <= set(props)

    def test_user_endpoints_tagged(self, client: TestClient) -> None:
        schema = client.get("/openapi.json").json()

        assert "users" in schema["paths"]["/api/users/signup"]["post"]["tags"]
        assert "users" in [t["name"] for t in schema.get("tags", [])]


class TestSwaggerUI:
    """Tests for Swagger UI availability."""

    def test_docs_endpoint_accessible(self, client: TestClient) -> None:
        response = client.get("/docs")
        assert response.status_code == 200
        assert "swagger" in response.text.lower()
