"""
Shared test fixtures for dashboard tests.

Provides environment isolation for DashboardSettings tests, raw upstream
payload builders, and an httpx MockTransport factory that serves canned
responses per path.

CHANGELOG:
- 2026-10-13: Add routed MockTransport factory (STORY-105)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest

# All DashboardSettings environment variable names, used for cleanup.
_ALL_DASHBOARD_ENV_VARS = (
    "CENTRAL_BASE_URL",
    "REFRESH_INTERVAL_S",
    "REQUEST_TIMEOUT_S",
    "HEALTH_PATH",
    "API_HOST",
    "API_PORT",
    "CORS_ORIGINS",
    "LOG_LEVEL",
)

Route = httpx.Response | Exception | Callable[[httpx.Request], Any]


@pytest.fixture(autouse=True)
def _clean_dashboard_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all dashboard env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_DASHBOARD_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every DashboardSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "CENTRAL_BASE_URL": "http://192.168.1.50:8080/",
        "REFRESH_INTERVAL_S": "5",
        "REQUEST_TIMEOUT_S": "3",
        "HEALTH_PATH": "/tmp/dashboard-health.json",
        "API_HOST": "127.0.0.1",
        "API_PORT": "9000",
        "CORS_ORIGINS": "https://ops.example.com, https://wall.example.com",
        "LOG_LEVEL": "debug",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


# ---------------------------------------------------------------------------
# Upstream payload builders
# ---------------------------------------------------------------------------


def _make_cp_raw(**overrides: Any) -> dict[str, Any]:
    """Return a raw CP item shaped like the central's /api/cps output."""
    raw: dict[str, Any] = {
        "cp": "CP-001",
        "estado": "ACTIVADO",
        "parado": False,
        "ocupado": False,
        "lastHbMs": 800,
        "precio": "0.2500",
        "sesion": "",
        "kwh": "0.00000",
        "eur": "0.0000",
    }
    raw.update(overrides)
    return raw


@pytest.fixture()
def cp_raw() -> Callable[..., dict[str, Any]]:
    """Builder for raw CP items; keyword arguments override defaults."""
    return _make_cp_raw


@pytest.fixture()
def routed_transport() -> Callable[[dict[str, Route]], httpx.MockTransport]:
    """Factory building a MockTransport that answers by request path.

    Each route value may be an ``httpx.Response``, an exception to raise, or
    a callable taking the request (sync or async). Unknown paths get 404.
    The returned transport records every requested path in ``.calls``.
    """

    def _factory(routes: dict[str, Route]) -> httpx.MockTransport:
        calls: list[str] = []

        def handler(request: httpx.Request) -> Any:
            calls.append(request.url.path)
            route = routes.get(request.url.path)
            if route is None:
                return httpx.Response(404)
            if isinstance(route, Exception):
                raise route
            if isinstance(route, httpx.Response):
                return httpx.Response(
                    route.status_code, content=route.content, headers=route.headers
                )
            return route(request)

        transport = httpx.MockTransport(handler)
        transport.calls = calls  # type: ignore[attr-defined]
        return transport

    return _factory
