"""
Integration tests for OpenAPI documentation.

Verifies OpenAPI schema is correctly generated for all endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from src.api.main import app

AUTH_PATHS = [
    "/v1/auth/register",
    "/v1/auth/resend-otp",
    "/v1/auth/verify-otp",
    "/v1/auth/login",
    "/v1/auth/forgot-password",
    "/v1/auth/verify-reset-otp",
    "/v1/auth/reset-password",
    "/v1/auth/change-password",
    "/v1/auth/logout",
    "/v1/auth/delete-account/request",
    "/v1/auth/delete-account/resend",
    "/v1/auth/delete-account/confirm",
]


@pytest.fixture
def client() -> TestClient:
    """Create test client for the application (no lifespan)."""
    return TestClient(app)


@pytest.fixture
def schema(client: TestClient) -> dict:
    response = client.get("/openapi.json")
    assert response.status_code == 200
    return response.json()


class TestOpenAPISchema:
    """Tests for OpenAPI schema generation."""

    def test_openapi_title_and_version(self, schema: dict) -> None:
        assert schema["info"]["title"] == "otp-identity"
        assert "Email OTP" in schema["info"]["description"]
        assert schema["info"]["version"] == "0.1.0"

    @pytest.mark.parametrize("path", AUTH_PATHS)
    def test_auth_endpoint_documented(self, schema: dict, path: str) -> None:
        assert "post" in schema["paths"][path]
        assert "auth" in schema["paths"][path]["post"]["tags"]

    def test_register_summary(self, schema: dict) -> None:
        assert schema["paths"]["/v1/auth/register"]["post"]["summary"] == "Register a new user"

    def test_diagnostic_endpoint_documented(self, schema: dict) -> None:
        last_otp = schema["paths"]["/v1/auth/test/last-otp"]["get"]
        assert "auth - testing" in last_otp["tags"]

    def test_register_request_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["RegisterRequest"]["properties"]
        assert {"email", "username", "password", "role"} <= set(props)

    def test_verify_request_schema(self, schema: dict) -> None:
        props = schema["components"]["schemas"]["VerifyOtpRequest"]["properties"]
        assert props["otp"]["pattern"] == r"^\d+$"

    def test_code_errors_documented(self, schema: dict) -> None:
        responses = schema["paths"]["/v1/auth/verify-otp"]["post"]["responses"]
        assert {"400", "409", "410"} <= set(responses)

    def test_tags_defined(self, schema: dict) -> None:
        tag_names = [t["name"] for t in schema.get("tags", [])]
        assert "auth" in tag_names
        assert "auth - testing" in tag_names


class TestSwaggerUI:
    """Tests for Swagger UI availability."""

    def test_docs_endpoint_accessible(self, client: TestClient) -> None:
        """Swagger UI is accessible at /docs."""
        response = client.get("/docs")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "swagger" in response.text.lower()

    def test_redoc_endpoint_accessible(self, client: TestClient) -> None:
        """ReDoc is accessible at /redoc."""
        response = client.get("/redoc")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "redoc" in response.text.lower()
