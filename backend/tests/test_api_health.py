"""
Tests for API health and basic endpoints.
"""

import importlib
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient


class TestHealthEndpoints:
    """Test basic health and status endpoints"""

    @pytest.mark.unit
    def test_root_endpoint(self, client: TestClient):
        """Test root endpoint returns API info"""
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "SolvedSense API"
        assert "version" in data
        assert data["docs"] == "/docs"

    @pytest.mark.unit
    def test_health_check(self, client: TestClient):
        """Test health check reports the cache backend"""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["cache"] == "memory"

    @pytest.mark.unit
    def test_docs_available(self, client: TestClient):
        """Test OpenAPI docs are available"""
        response = client.get("/docs")
        assert response.status_code == 200

    @pytest.mark.unit
    def test_openapi_json(self, client: TestClient):
        """Test OpenAPI schema lists the analytics routes"""
        response = client.get("/openapi.json")
        assert response.status_code == 200
        data = response.json()
        assert "/api/analytics/{handle}/recommendations" in data["paths"]
        assert "/api/users/{handle}" in data["paths"]

    @pytest.mark.unit
    def test_rate_limit_headers_on_api_routes(self, client: TestClient):
        """Test API responses carry rate limit headers"""
        response = client.get("/api/users/solver")
        assert response.status_code == 200
        assert "X-RateLimit-Limit" in response.headers


class TestServerEntryPoint:
    """Test the uvicorn entry point"""

    @pytest.mark.unit
    def test_run_serves_app_with_env_settings(self, monkeypatch):
        from solvedsense import main

        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.setenv("HOST", "0.0.0.0")
        monkeypatch.setenv("PORT", "9001")
        with patch("solvedsense.main.uvicorn.run") as mock_run:
            main.run()

        mock_run.assert_called_once_with(main.app, host="0.0.0.0", port=9001, log_level="info")

    @pytest.mark.unit
    def test_run_defaults_to_localhost(self, monkeypatch):
        from solvedsense import main

        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.delenv("PORT", raising=False)
        with patch("solvedsense.main.uvicorn.run") as mock_run:
            main.run()

        assert mock_run.call_args.kwargs["host"] == "127.0.0.1"
        assert mock_run.call_args.kwargs["port"] == 8000


class TestPackageExports:
    """Test that package re-exports resolve"""

    @pytest.mark.unit
    @pytest.mark.parametrize("package", [
        "solvedsense.schemas",
        "solvedsense.services",
        "solvedsense.utils",
        "solvedsense.middleware",
        "solvedsense.dependencies",
    ])
    def test_all_names_resolve(self, package):
        module = importlib.import_module(package)
        missing = [name for name in module.__all__ if not hasattr(module, name)]
        assert missing == []

    @pytest.mark.unit
    def test_recommendation_models_exported(self):
        from solvedsense import schemas

        assert {"ImmediateRecommendation", "ShortTermRecommendation", "LongTermRecommendation",
                "RecommendationSet"} <= set(schemas.__all__)
        assert "Recommendation" not in schemas.__all__
