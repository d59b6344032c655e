"""Tests for application wiring: health check, headers and error envelopes."""

import sys

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from winehub import __version__
from winehub.config import SecretsConfig, WinehubConfig, get_settings
from winehub.config.settings import Settings
from winehub.main import app, register_exception_handlers


@pytest.mark.asyncio
async def test_health_check() -> None:
    """Test the health endpoint and the security headers on the real app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "WineHub API is running"
    assert body["version"] == __version__
    assert body["timestamp"]
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_unknown_route(unauthenticated_client) -> None:
    response = await unauthenticated_client.get("/api/nothing-here")
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found"}


@pytest.mark.asyncio
async def test_malformed_json_body(client) -> None:
    response = await client.post(
        "/api/wineries",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"


def failing_app() -> FastAPI:
    test_app = FastAPI()
    register_exception_handlers(test_app)

    @test_app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    return test_app


@pytest.mark.asyncio
async def test_unhandled_error_envelope() -> None:
    """Test that unexpected errors become a generic 500 envelope."""
    transport = ASGITransport(app=failing_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Server error"}


@pytest.mark.asyncio
async def test_unhandled_error_details_in_debug(monkeypatch) -> None:
    monkeypatch.setattr(get_settings().config.server, "debug", True)

    transport = ASGITransport(app=failing_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    body = response.json()
    assert body["error"] == "kaboom"
    assert "RuntimeError" in body["stack"]


class TestSecurityConfiguration:
    """Tests for the startup security checks."""

    def test_short_key_blocks_only_in_production(self, monkeypatch):
        from winehub.main import check_security_configuration, security_problems

        monkeypatch.setattr(get_settings().secrets, "secret_key", "short")

        blocking, _ = security_problems(production=False)
        assert blocking == ["WINEHUB_SECRET_KEY must be set to at least 32 characters"]
        # Outside production the finding is only logged
        check_security_configuration()

        monkeypatch.setattr("winehub.main._is_production", lambda: True)
        with pytest.raises(RuntimeError, match="Refusing to start"):
            check_security_configuration()

    def test_production_advisories(self, monkeypatch):
        from winehub.main import security_problems

        config = get_settings().config
        monkeypatch.setattr(get_settings().secrets, "secret_key", "k" * 40)
        monkeypatch.setattr(config.database, "mongodb_url", "mongodb://localhost:27017")
        monkeypatch.setattr(config.server, "enforce_https", False)

        blocking, advisory = security_problems(production=True)
        assert blocking == []
        assert len(advisory) == 2

        assert security_problems(production=False) == ([], [])

    def test_generated_key_blocks_production(self, monkeypatch):
        from winehub.main import check_security_configuration, security_problems

        generated = Settings(config=WinehubConfig(), secrets=SecretsConfig())
        assert generated.secret_key_generated
        assert len(generated.secret_key) >= 32
        monkeypatch.setattr(sys.modules["winehub.config.settings"], "_settings", generated)

        blocking, _ = security_problems(production=False)
        assert blocking == ["WINEHUB_SECRET_KEY is not set, tokens are signed with a throwaway key"]

        monkeypatch.setattr("winehub.main._is_production", lambda: True)
        with pytest.raises(RuntimeError, match="throwaway key"):
            check_security_configuration()

    def test_configured_key_is_not_generated(self):
        configured = Settings(config=WinehubConfig(), secrets=SecretsConfig(secret_key="k" * 40))
        assert configured.secret_key_generated is False
