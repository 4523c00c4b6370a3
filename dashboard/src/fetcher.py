"""
HTTP fetch client for the central's ``/api/*`` endpoints.

Issues GET requests against the operator-configured base URL, optionally
retries once against a fallback path, and turns every transport or HTTP
failure into an absent :class:`FetchResult` instead of raising. Callers treat
an absent result exactly like an empty section.

Response bodies are unwrapped from the optional ``{"items": [...]}`` envelope
to a bare sequence; a bare JSON array is accepted as-is.

There is no backoff and no retry beyond the single fallback hop: the refresh
scheduler's fixed cadence is the retry mechanism.

Operations:
- fetch(path, fallback): GET path, then fallback on failure.
- base_url: Upstream base URL (settable at runtime).

CHANGELOG:
- 2026-10-16: Allow base URL to be replaced at runtime
- 2026-10-13: Reject non-list bodies as MalformedPayload (STORY-104)
- 2026-10-12: Initial creation (STORY-105)

TODO:
- None
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from dashboard.src.errors import (
    FetchFailure,
    HttpStatusFailure,
    MalformedPayload,
    NoBaseUrlConfigured,
    TransportFailure,
)

logger = logging.getLogger(__name__)

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Accept": "application/json",
}

_DEFAULT_TIMEOUT_S = 5.0


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Outcome of fetching one section.

    Exactly one of *items* / *failure* is meaningful: an absent result carries
    the failure that caused it and no items.

    Attributes:
        items: Unwrapped upstream items (empty when absent).
        failure: Why the section is absent, or ``None`` on success.
    """

    items: tuple[Any, ...] = ()
    failure: FetchFailure | None = None

    @classmethod
    def ok(cls, items: list[Any] | tuple[Any, ...]) -> FetchResult:
        return cls(items=tuple(items))

    @classmethod
    def absent(cls, failure: FetchFailure) -> FetchResult:
        return cls(failure=failure)

    @property
    def is_absent(self) -> bool:
        return self.failure is not None


def unwrap_items(body: Any, url: str = "") -> list[Any]:
    """Return the item sequence from a bare array or ``{"items": [...]}``.

    Raises:
        MalformedPayload: If *body* has neither shape.
    """
    if isinstance(body, list):
        return body
    if isinstance(body, dict) and isinstance(body.get("items"), list):
        return body["items"]
    raise MalformedPayload(url, f"unexpected response shape from {url}")


def normalize_base_url(value: str) -> str:
    """Strip surrounding whitespace and trailing slashes."""
    return value.strip().rstrip("/")


class FetchClient:
    """Async GET client with single-hop fallback and typed absent results.

    Args:
        base_url: Upstream base URL, e.g. ``http://central.local:8080``.
            May be empty until the operator configures it.
        timeout_s: Per-request timeout in seconds.
        transport: Optional httpx transport (tests inject a MockTransport).

    Usage::

        async with FetchClient("http://central.local:8080") as client:
            result = await client.fetch("/api/cps", fallback="/api/status")
            if not result.is_absent:
                ...
    """

    def __init__(
        self,
        base_url: str = "",
        timeout_s: float = _DEFAULT_TIMEOUT_S,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            timeout=timeout_s,
            headers=_NO_CACHE_HEADERS,
            transport=transport,
        )

    async def __aenter__(self) -> FetchClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def base_url(self) -> str:
        return self._base_url

    @base_url.setter
    def base_url(self, value: str) -> None:
        self._base_url = normalize_base_url(value)
        logger.info("Upstream base URL set to %s", self._base_url or "<empty>")

    async def fetch(self, path: str, fallback: str | None = None) -> FetchResult:
        """GET *path*, retrying once against *fallback* on failure.

        Args:
            path: Endpoint path, e.g. ``/api/cps``.
            fallback: Optional alternative path tried once if *path* fails.

        Returns:
            :class:`FetchResult` with the unwrapped items, or an absent
            result carrying the last failure.

        Raises:
            NoBaseUrlConfigured: If no base URL has been configured.
        """
        if not self._base_url:
            raise NoBaseUrlConfigured()

        try:
            return FetchResult.ok(await self._get_items(path))
        except FetchFailure as exc:
            if fallback is None:
                logger.warning("Fetch %s failed: %s", path, exc)
                return FetchResult.absent(exc)
            logger.warning(
                "Fetch %s failed (%s), trying fallback %s", path, exc, fallback
            )

        try:
            return FetchResult.ok(await self._get_items(fallback))
        except FetchFailure as exc:
            logger.warning("Fallback %s failed: %s", fallback, exc)
            return FetchResult.absent(exc)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_items(self, path: str) -> list[Any]:
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise TransportFailure(url, f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise HttpStatusFailure(url, response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise MalformedPayload(url, f"invalid JSON from {url}") from exc

        return unwrap_items(body, url)
