"""
CrimeWatch - Application Tests

Health check, middleware headers, CORS, error mapping and startup
configuration failures.
"""

import asyncio

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from crimewatch.app import app, lifespan
from crimewatch.config import Settings, settings
from crimewatch.database import get_engine, validate_database_url
from crimewatch.errors import ConfigurationError


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"] == {"database": True, "session_store": "database"}

    def test_health_degraded_when_database_unreachable(self, client):
        app.state.db_engine = get_engine("sqlite:////nonexistent-dir/crimewatch.db")

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["services"]["database"] is False


class TestMiddleware:

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["X-Request-ID"]

    def test_request_ids_differ(self, client):
        first = client.get("/health").headers["X-Request-ID"]
        second = client.get("/health").headers["X-Request-ID"]

        assert first != second

    def test_header_takes_precedence_over_cookie(self, client, test_reporter, test_admin):
        admin = client.post("/api/login", json={"username": "admin", "password": "AdminPass123"})
        reporter = client.post("/api/login", json={"username": "reporter", "password": "ReportPass123"})
        assert admin.status_code == reporter.status_code == 200

        # Cookie jar now holds the reporter session
        response = client.get("/api/user", headers={"X-Session-ID": admin.headers["X-Session-ID"]})

        assert response.json()["username"] == "admin"


class TestCORS:

    def test_preflight_short_circuits(self, client):
        response = client.options(
            "/api/reports",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers

    def test_preflight_echoes_any_requested_header(self, client):
        response = client.options(
            "/api/reports",
            headers={
                "Origin": "http://localhost:5173",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type, x-requested-with",
            },
        )

        assert response.status_code == 200
        assert "x-requested-with" in response.headers["access-control-allow-headers"].lower()

    def test_bare_options_is_200(self, client):
        with_origin = client.options("/api/reports", headers={"Origin": "http://localhost:5173"})
        without_origin = client.options("/api/reports/1/status")

        assert with_origin.status_code == 200
        assert "access-control-allow-origin" in with_origin.headers
        assert without_origin.status_code == 200

    def test_simple_request_gets_cors_headers(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})

        assert "access-control-allow-origin" in response.headers


class TestErrorMapping:

    def test_unknown_route(self, client):
        assert client.get("/api/nothing-here").status_code == 404

    def test_invalid_query_parameter(self, client, admin_headers):
        response = client.get("/api/reports", params={"status": "bogus"}, headers=admin_headers)

        assert response.status_code == 400
        body = response.json()
        assert body["message"] == "Validation failed"
        assert body["errors"][0]["field"] == "status"

    def test_unhandled_exception_is_generic_500(self):
        with TestClient(app, raise_server_exceptions=False) as c:
            app.state.session_store = None

            response = c.get("/health", headers={"Origin": "http://localhost:5173"})

        assert response.status_code == 500
        assert response.json() == {"message": "Internal Server Error"}
        # Still readable by a cross-origin front end, and still traced
        assert "access-control-allow-origin" in response.headers
        assert response.headers["X-Request-ID"]


class TestStartupConfiguration:

    def test_database_url_has_no_default(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)

        assert Settings(_env_file=None).DATABASE_URL is None

    def test_missing_database_url_stops_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "DATABASE_URL", None)

        async def start():
            async with lifespan(FastAPI()):
                pass

        with pytest.raises(SystemExit):
            asyncio.run(start())

    @pytest.mark.parametrize("url", ["", "mysql://user:pw@host/db", "not a url"])
    def test_rejects_unsupported_urls(self, url):
        with pytest.raises(ConfigurationError):
            validate_database_url(url)

    @pytest.mark.parametrize(
        "url",
        ["sqlite://", "sqlite:///./crimewatch.db", "postgresql://u:p@h/db", "postgres://u:p@h/db"],
    )
    def test_accepts_supported_urls(self, url):
        validate_database_url(url)

    def test_bad_database_url_stops_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "DATABASE_URL", "mysql://user:pw@host/db")

        async def start():
            async with lifespan(FastAPI()):
                pass

        with pytest.raises(SystemExit):
            asyncio.run(start())

    def test_unknown_session_store_stops_startup(self, monkeypatch):
        monkeypatch.setattr(settings, "SESSION_STORE", "redis")

        async def start():
            async with lifespan(FastAPI()):
                pass

        with pytest.raises(SystemExit):
            asyncio.run(start())
