"""
Operator control endpoints: manual refresh and upstream URL configuration.

- ``POST /v1/refresh`` fires a scheduler tick. A tick that lands while a
  cycle is running is dropped, never queued.
- ``PUT /v1/config/base-url`` replaces the upstream base URL in memory and
  fires a tick. The value is not persisted across restarts.

CHANGELOG:
- 2026-10-17: Initial creation (STORY-109)

TODO:
- None
"""

import logging

from fastapi import APIRouter
from pydantic import BaseModel, field_validator

from dashboard.src.api.deps import Fetcher, Scheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["control"])


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class BaseUrlUpdate(BaseModel):
    """New upstream base URL."""

    base_url: str

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.lower().startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v


class RefreshResponse(BaseModel):
    """Whether the tick started a cycle, and the cycle's outcome when awaited."""

    started: bool
    cycle_ts: str | None = None
    failed_sections: list[str] = []


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


async def _tick(scheduler: Scheduler, wait: bool) -> RefreshResponse:
    task = scheduler.tick()
    if task is None:
        logger.info("Manual refresh dropped: cycle already running")
        return RefreshResponse(started=False)
    if not wait:
        return RefreshResponse(started=True)

    snapshot = await task
    if snapshot is None:
        return RefreshResponse(started=True)
    return RefreshResponse(
        started=True,
        cycle_ts=snapshot.cycle_ts.isoformat() if snapshot.cycle_ts else None,
        failed_sections=snapshot.failed_sections,
    )


@router.post("/refresh")
async def refresh(scheduler: Scheduler, wait: bool = False) -> RefreshResponse:
    """Trigger a refresh cycle now.

    Args:
        scheduler: The refresh scheduler.
        wait: Await the cycle and report its outcome before responding.

    Returns:
        RefreshResponse: ``started`` is false when a cycle was already running.
    """
    return await _tick(scheduler, wait)


@router.put("/config/base-url")
async def set_base_url(
    payload: BaseUrlUpdate,
    fetcher: Fetcher,
    scheduler: Scheduler,
    wait: bool = False,
) -> RefreshResponse:
    """Replace the upstream base URL and trigger a refresh."""
    fetcher.base_url = payload.base_url
    return await _tick(scheduler, wait)
