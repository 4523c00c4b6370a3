"""
FastAPI dependency providers.

Exposes the snapshot store and refresh scheduler built by the application
lifespan (stored on ``app.state``) to route handlers via Depends().

CHANGELOG:
- 2026-10-17: Initial creation (STORY-109)
"""

from typing import Annotated

from fastapi import Depends, Request

from dashboard.src.fetcher import FetchClient
from dashboard.src.scheduler import RefreshScheduler
from dashboard.src.store import SnapshotStore


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


def get_scheduler(request: Request) -> RefreshScheduler:
    return request.app.state.scheduler


def get_fetcher(request: Request) -> FetchClient:
    return request.app.state.fetcher


# Type aliases for injecting lifespan-owned components.
# Usage in route handlers:
#   async def my_route(store: Store):
#       snapshot = store.current
Store = Annotated[SnapshotStore, Depends(get_store)]
Scheduler = Annotated[RefreshScheduler, Depends(get_scheduler)]
Fetcher = Annotated[FetchClient, Depends(get_fetcher)]
