"""
Exception taxonomy for the charging-point dashboard engine.

Only ``NoBaseUrlConfigured`` ever leaves the component that raises it:
fetch failures are converted to an absent :class:`~dashboard.src.fetcher.FetchResult`
inside the fetch client, and malformed records are dropped one by one inside
:func:`~dashboard.src.normalizer.normalize_batch`.

CHANGELOG:
- 2026-10-13: Add MalformedPayload for non-list response bodies (STORY-104)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for every error raised by the dashboard engine."""


class FetchFailure(DashboardError):
    """A section could not be fetched from the upstream API.

    Attributes:
        url: The URL that was requested.
    """

    def __init__(self, url: str, message: str) -> None:
        super().__init__(message)
        self.url = url


class TransportFailure(FetchFailure):
    """Network, DNS, or timeout failure before an HTTP response was received."""


class HttpStatusFailure(FetchFailure):
    """The upstream answered with a non-2xx status code."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(url, f"HTTP {status_code} from {url}")
        self.status_code = status_code


class MalformedPayload(FetchFailure):
    """The body is neither a JSON array nor an ``{"items": [...]}`` envelope."""


class MalformedRecord(DashboardError):
    """A single upstream item could not be turned into a canonical record.

    Attributes:
        kind: Entity kind being normalized (``"cp"``, ``"driver"``, ...).
        reason: Human-readable reason the item was dropped.
    """

    def __init__(self, kind: str, reason: str) -> None:
        super().__init__(f"{kind}: {reason}")
        self.kind = kind
        self.reason = reason


class NoBaseUrlConfigured(DashboardError):
    """The operator has not configured the upstream base URL yet."""

    def __init__(self) -> None:
        super().__init__(
            "Upstream base URL is not configured; set CENTRAL_BASE_URL "
            "or PUT /v1/config/base-url"
        )
