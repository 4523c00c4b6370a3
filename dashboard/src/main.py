"""
Dashboard service entrypoint for the charging-point fleet monitor.

Loads configuration, installs structured JSON logging, and serves the
FastAPI application whose lifespan runs the refresh loop:

1. **Refresh loop**: every ``REFRESH_INTERVAL_S`` seconds fetches all
   upstream sections concurrently, normalizes them into canonical records,
   derives alerts and weather, and publishes one snapshot.
2. **HTTP API**: serves the latest snapshot to the view layer and accepts
   manual refresh / base URL changes from the operator.

uvicorn owns SIGTERM/SIGINT handling; on shutdown the lifespan lets the
in-flight cycle finish before exiting.

CHANGELOG:
- 2026-10-17: Serve the dashboard API with uvicorn (STORY-109)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import UTC, datetime

import uvicorn

from dashboard.src.api.main import create_app
from dashboard.src.config import DashboardSettings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the dashboard service.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root log level name.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: DashboardSettings) -> None:
    """Log the effective configuration at startup.

    Args:
        settings: A DashboardSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Dashboard starting with config: "
        "central_base_url=%s, refresh_interval_s=%s, request_timeout_s=%s, "
        "health_path=%s, api_host=%s, api_port=%s, cors_origins=%s",
        settings.central_base_url or "<not configured>",
        settings.refresh_interval_s,
        settings.request_timeout_s,
        settings.health_path or "<disabled>",
        settings.api_host,
        settings.api_port,
        settings.cors_origins,
    )


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, configure logging, serve the API."""
    settings = DashboardSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    app = create_app(settings)
    config = uvicorn.Config(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,
    )
    await uvicorn.Server(config).serve()


def main() -> None:
    """Synchronous entrypoint for the dashboard service."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
