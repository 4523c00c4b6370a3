"""
Read-only GET endpoints over the current published snapshot.

Every handler reads ``store.current`` exactly once, so a response is always
built from a single cycle's snapshot even if a new one is published while
the response is being serialised.

CHANGELOG:
- 2026-10-19: Add per-section progress view (STORY-110)
- 2026-10-17: Initial creation (STORY-109)

TODO:
- None
"""

import logging

from fastapi import APIRouter

from dashboard.src.api.deps import Store
from dashboard.src.models import Snapshot

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["snapshot"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _cycle_fields(snapshot: Snapshot) -> dict:
    """Fields every view carries so the client can show freshness and failures."""
    return {
        "cycle_ts": snapshot.cycle_ts.isoformat() if snapshot.cycle_ts else None,
        "failed_sections": snapshot.failed_sections,
    }


def _dump(records: tuple) -> list[dict]:
    return [record.model_dump(mode="json") for record in records]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.get("/snapshot")
async def snapshot(store: Store) -> dict:
    """Return the full current snapshot.

    Returns:
        dict: All canonical and derived collections, the aggregate weather
        status, section diagnostics, and the configuration prompt (``null``
        when the upstream URL is configured).
    """
    current = store.current
    body = current.model_dump(mode="json")
    body["failed_sections"] = current.failed_sections
    body["config_error"] = store.config_error
    return body


@router.get("/cps")
async def charge_points(store: Store) -> dict:
    current = store.current
    return {**_cycle_fields(current), "items": _dump(current.charge_points)}


@router.get("/drivers")
async def drivers(store: Store) -> dict:
    current = store.current
    return {**_cycle_fields(current), "items": _dump(current.drivers)}


@router.get("/sessions")
async def sessions(store: Store) -> dict:
    current = store.current
    return {**_cycle_fields(current), "items": _dump(current.sessions)}


@router.get("/alerts")
async def alerts(store: Store) -> dict:
    """Return derived and upstream-native alerts as two separate lists.

    The two sources are not merged or deduplicated.
    """
    current = store.current
    return {
        **_cycle_fields(current),
        "derived": _dump(current.alerts),
        "upstream": _dump(current.upstream_alerts),
    }


@router.get("/weather")
async def weather(store: Store) -> dict:
    current = store.current
    return {
        **_cycle_fields(current),
        "status": current.weather_status.value,
        "items": _dump(current.weather),
    }


@router.get("/audit")
async def audit(store: Store) -> dict:
    current = store.current
    return {**_cycle_fields(current), "items": _dump(current.audit)}


@router.get("/sections")
async def sections(store: Store) -> dict:
    """Return the freshest records per section, including the running cycle's.

    Sections appear as soon as their own fetch resolves, so a view can show
    progress before the full snapshot is published. Sections not yet fetched
    since startup are absent from the mapping.
    """
    view = store.sections
    return {
        "sections": {section.value: _dump(records) for section, records in view.items()}
    }
