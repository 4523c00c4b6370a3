"""
Dashboard configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
the upstream central URL is never hard-coded.

CHANGELOG:
- 2026-10-16: Allow empty CENTRAL_BASE_URL; the operator can set it at runtime
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings


class DashboardSettings(BaseSettings):
    """Configuration for the charging-point fleet dashboard.

    All values are loaded from environment variables and have defaults, so
    the service starts unconfigured and prompts the operator for the
    upstream URL.

    Attributes:
        central_base_url: Base URL of the central system's HTTP API. Empty
            until the operator configures it; trailing slashes are stripped.
        refresh_interval_s: Seconds between refresh ticks.
        request_timeout_s: Per-request timeout for upstream calls.
        health_path: Health JSON file path; empty disables the file.
        api_host: Bind address for the dashboard HTTP API.
        api_port: Bind port for the dashboard HTTP API.
        cors_origins: Comma-separated origins allowed to call the API.
        log_level: Root log level name.
    """

    central_base_url: str = ""
    refresh_interval_s: float = 2.0
    request_timeout_s: float = 5.0
    health_path: str = "/data/health.json"
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    cors_origins: str = "*"
    log_level: str = "INFO"

    @field_validator("central_base_url")
    @classmethod
    def central_base_url_must_be_http(cls, v: str) -> str:
        """Validate the central URL scheme and strip trailing slashes.

        An empty value is accepted: refresh cycles then abort with a
        configuration prompt until a URL is set.
        """
        v = v.strip().rstrip("/")
        if v and not v.lower().startswith(("http://", "https://")):
            raise ValueError(
                "CENTRAL_BASE_URL must start with http:// or https:// "
                f"(got: '{v[:20]}')"
            )
        return v

    @field_validator("refresh_interval_s")
    @classmethod
    def refresh_interval_must_be_valid(cls, v: float) -> float:
        """Validate refresh interval is positive and at most one hour."""
        if v <= 0 or v > 3600:
            raise ValueError("REFRESH_INTERVAL_S must be > 0 and <= 3600")
        return v

    @field_validator("request_timeout_s")
    @classmethod
    def request_timeout_must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("REQUEST_TIMEOUT_S must be > 0")
        return v

    @field_validator("api_port")
    @classmethod
    def api_port_must_be_valid(cls, v: int) -> int:
        """Validate API port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("API_PORT must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"LOG_LEVEL must be a logging level name (got: '{v}')")
        return level

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
