"""
Unit tests for CORS middleware configuration.
Version: 1.0.0
"""
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from commerce_sync.core.middleware import apply_cors


def _app_with_cors(settings):
    app = FastAPI()
    apply_cors(app, settings)

    @app.get("/test")
    def test_endpoint():
        return {"ok": True}

    return app


@pytest.mark.unit
class TestApplyCors:
    """Tests for the apply_cors middleware function."""

    def test_apply_cors_adds_middleware(self, mock_settings):
        """CORS middleware is attached to the FastAPI app."""
        app = FastAPI()
        apply_cors(app, mock_settings)
        middleware_classes = [m.cls.__name__ for m in app.user_middleware]
        assert "CORSMiddleware" in middleware_classes

    def test_cors_allows_any_origin_by_default(self, mock_settings):
        client = TestClient(_app_with_cors(mock_settings))
        resp = client.get("/test", headers={"Origin": "https://example.com"})
        assert resp.status_code == 200
        assert resp.headers.get("access-control-allow-origin") == "*"

    def test_cors_restricted_origins(self, mock_settings):
        mock_settings.cors_allowed_origins = "https://admin.example.com, https://ops.example.com"
        client = TestClient(_app_with_cors(mock_settings))

        allowed = client.get("/test", headers={"Origin": "https://ops.example.com"})
        denied = client.get("/test", headers={"Origin": "https://evil.example.com"})

        assert allowed.headers.get("access-control-allow-origin") == "https://ops.example.com"
        assert allowed.headers.get("access-control-allow-credentials") == "true"
        assert "access-control-allow-origin" not in denied.headers

    def test_cors_preflight(self, mock_settings):
        """OPTIONS preflight requests are handled."""
        client = TestClient(_app_with_cors(mock_settings))
        resp = client.options(
            "/test",
            headers={
                "Origin": "https://example.com",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert resp.status_code == 200
