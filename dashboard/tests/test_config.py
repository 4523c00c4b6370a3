"""
Unit tests for dashboard configuration (DashboardSettings).

Tests verify:
- Config loads from environment variables with correct defaults.
- CENTRAL_BASE_URL may be empty, must be http(s) otherwise, and loses
  trailing slashes.
- Numeric constraints are enforced (refresh interval, timeout, port).
- LOG_LEVEL must name a logging level.

CHANGELOG:
- 2026-10-16: Allow empty CENTRAL_BASE_URL
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

import pytest
from pydantic import ValidationError

from dashboard.src.config import DashboardSettings


class TestDashboardSettingsLoadsFromEnv:
    """Config loads all values from environment variables."""

    def test_loads_all_env_vars(self, env_vars_full: dict[str, str]) -> None:
        """All env vars are read and assigned correctly."""
        settings = DashboardSettings()

        assert settings.central_base_url == "http://192.168.1.50:8080"
        assert settings.refresh_interval_s == 5.0
        assert settings.request_timeout_s == 3.0
        assert settings.health_path == env_vars_full["HEALTH_PATH"]
        assert settings.api_host == "127.0.0.1"
        assert settings.api_port == 9000
        assert settings.cors_origin_list == [
            "https://ops.example.com",
            "https://wall.example.com",
        ]
        assert settings.log_level == "DEBUG"

    def test_defaults_applied_when_env_empty(self) -> None:
        """Every variable is optional; defaults apply."""
        settings = DashboardSettings()

        assert settings.central_base_url == ""
        assert settings.refresh_interval_s == 2.0
        assert settings.request_timeout_s == 5.0
        assert settings.health_path == "/data/health.json"
        assert settings.api_port == 8000
        assert settings.cors_origin_list == ["*"]
        assert settings.log_level == "INFO"


class TestCentralBaseUrlValidation:
    """CENTRAL_BASE_URL must be http(s) when set."""

    def test_https_url_accepted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CENTRAL_BASE_URL", "https://central.example.com")

        settings = DashboardSettings()
        assert settings.central_base_url == "https://central.example.com"

    def test_trailing_slashes_stripped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CENTRAL_BASE_URL", "http://10.0.0.5:8080///")

        settings = DashboardSettings()
        assert settings.central_base_url == "http://10.0.0.5:8080"

    def test_ftp_url_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Non-HTTP schemes are rejected at startup."""
        monkeypatch.setenv("CENTRAL_BASE_URL", "ftp://central.example.com")

        with pytest.raises(ValidationError) as exc_info:
            DashboardSettings()
        assert "central_base_url" in str(exc_info.value).lower()

    def test_bare_host_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CENTRAL_BASE_URL", "central.example.com")

        with pytest.raises(ValidationError):
            DashboardSettings()

    def test_blank_url_means_not_configured(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("CENTRAL_BASE_URL", "   ")

        settings = DashboardSettings()
        assert settings.central_base_url == ""


class TestNumericConstraints:
    """Numeric configuration values must be within valid ranges."""

    @pytest.mark.parametrize("value", ["0", "-1", "3601"])
    def test_refresh_interval_out_of_range_rejected(
        self, monkeypatch: pytest.MonkeyPatch, value: str
    ) -> None:
        monkeypatch.setenv("REFRESH_INTERVAL_S", value)

        with pytest.raises(ValidationError) as exc_info:
            DashboardSettings()
        assert "refresh_interval_s" in str(exc_info.value).lower()

    def test_fractional_refresh_interval_accepted(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("REFRESH_INTERVAL_S", "0.5")

        settings = DashboardSettings()
        assert settings.refresh_interval_s == 0.5

    def test_zero_timeout_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("REQUEST_TIMEOUT_S", "0")

        with pytest.raises(ValidationError) as exc_info:
            DashboardSettings()
        assert "request_timeout_s" in str(exc_info.value).lower()

    def test_api_port_over_65535_rejected(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("API_PORT", "70000")

        with pytest.raises(ValidationError) as exc_info:
            DashboardSettings()
        assert "api_port" in str(exc_info.value).lower()


class TestLogLevel:
    def test_unknown_log_level_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        with pytest.raises(ValidationError):
            DashboardSettings()

    def test_log_level_upper_cased(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "warning")

        assert DashboardSettings().log_level == "WARNING"
