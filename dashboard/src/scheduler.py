"""
Refresh scheduler: one fetch -> normalize -> derive -> publish cycle per tick.

A fixed-period loop ticks every ``interval_s`` seconds, the first tick firing
immediately at startup. The scheduler is a two-state machine:

- **IDLE**: a tick starts a new cycle and moves to RUNNING.
- **RUNNING**: ticks are dropped. A slow cycle makes the following ticks
  no-ops until it finishes; requests never pile up.

Within a cycle every section is fetched concurrently. Each section is
normalized and handed to the publisher as soon as its own fetch resolves,
and a failed section degrades to an empty collection plus a diagnostic
without affecting the others. Once all sections resolve, derived alerts and
weather are computed from the CP section and the full snapshot is published
in one step.

A missing base URL aborts the cycle before any request is made and surfaces
a configuration prompt; nothing else aborts a cycle, and no cycle failure
stops the loop.

CHANGELOG:
- 2026-10-19: Isolate post-fetch section failures as diagnostics (STORY-110)
- 2026-10-16: Abort cycle with config prompt when base URL is missing (STORY-108)
- 2026-10-15: Write health file after every cycle (STORY-107)
- 2026-10-14: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

from dashboard.src.derivation import derive
from dashboard.src.errors import NoBaseUrlConfigured
from dashboard.src.models import Section, SectionDiagnostic, Snapshot
from dashboard.src.normalizer import normalize_batch

if TYPE_CHECKING:
    from dashboard.src.fetcher import FetchClient
    from dashboard.src.health import HealthWriter
    from dashboard.src.store import Publisher

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"


# ---------------------------------------------------------------------------
# Section definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SectionSpec:
    """How to fetch and normalize one upstream section.

    Attributes:
        section: Section identifier.
        path: Primary endpoint path.
        kind: Entity kind passed to the normalizer.
        fallback: Endpoint tried once when *path* fails.
        optional: Absence is expected (feature not offered upstream) and is
            not reported as a diagnostic.
    """

    section: Section
    path: str
    kind: str
    fallback: str | None = None
    optional: bool = False


SECTIONS: tuple[SectionSpec, ...] = (
    SectionSpec(Section.CPS, "/api/cps", "cp", fallback="/api/status"),
    SectionSpec(Section.SESSIONS, "/api/sessions", "session"),
    SectionSpec(Section.DRIVERS, "/api/drivers", "driver"),
    SectionSpec(Section.ALERTS, "/api/alerts", "alert", optional=True),
    SectionSpec(Section.AUDIT, "/api/audit", "audit", optional=True),
)


@dataclass(frozen=True, slots=True)
class _SectionOutcome:
    section: Section
    records: tuple[BaseModel, ...]
    diagnostic: SectionDiagnostic | None
    dropped: int


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------


class RefreshScheduler:
    """Drives refresh cycles on a fixed cadence without overlap.

    Args:
        fetcher: Fetch client used for every section.
        publisher: Receiver of section and snapshot output.
        interval_s: Seconds between ticks.
        health: HealthWriter instance, or None to skip health writes.
        clock: Returns the cycle timestamp (injected by tests).
    """

    def __init__(
        self,
        *,
        fetcher: FetchClient,
        publisher: Publisher,
        interval_s: float,
        health: HealthWriter | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._fetcher = fetcher
        self._publisher = publisher
        self._interval_s = interval_s
        self._health = health
        self._clock = clock
        self._state = SchedulerState.IDLE
        self._current_task: asyncio.Task[Snapshot | None] | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def interval_s(self) -> float:
        return self._interval_s

    # ------------------------------------------------------------------
    # Ticks
    # ------------------------------------------------------------------

    def tick(self) -> asyncio.Task[Snapshot | None] | None:
        """Start a cycle if IDLE; drop the tick if a cycle is in flight.

        The state moves to RUNNING before the task is scheduled, so a second
        tick in the same event-loop iteration is already dropped.

        Returns:
            The task running the new cycle, or ``None`` if the tick was dropped.
        """
        if self._state is SchedulerState.RUNNING:
            logger.debug("Tick dropped: refresh cycle still running")
            return None
        self._state = SchedulerState.RUNNING
        task = asyncio.create_task(self._guarded_cycle())
        self._current_task = task
        return task

    async def run_cycle(self) -> Snapshot | None:
        """Run one cycle inline (the tick path without a background task).

        Returns:
            The published snapshot, or ``None`` if the cycle was dropped,
            aborted on configuration, or failed unexpectedly.
        """
        if self._state is SchedulerState.RUNNING:
            logger.debug("run_cycle skipped: refresh cycle still running")
            return None
        self._state = SchedulerState.RUNNING
        return await self._guarded_cycle()

    async def run(self, shutdown_event: asyncio.Event) -> None:
        """Tick every ``interval_s`` until *shutdown_event* is set.

        The first tick fires immediately. On shutdown the in-flight cycle,
        if any, is awaited before returning.
        """
        logger.info("Refresh loop started (interval=%ss)", self._interval_s)
        while not shutdown_event.is_set():
            self.tick()
            # Use wait with timeout so we can check shutdown between ticks
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(shutdown_event.wait(), timeout=self._interval_s)

        await self.drain()
        logger.info("Refresh loop stopped")

    async def drain(self) -> None:
        """Wait for the in-flight cycle, if any, to finish."""
        if self._current_task is not None and not self._current_task.done():
            await self._current_task

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------

    async def _guarded_cycle(self) -> Snapshot | None:
        """Run a cycle, never letting an exception escape; always end IDLE."""
        try:
            return await self._cycle()
        except NoBaseUrlConfigured as exc:
            logger.warning("Refresh cycle aborted: %s", exc)
            self._publisher.publish_config_error(str(exc))
            return None
        except Exception:
            logger.error("Refresh cycle error", exc_info=True)
            return None
        finally:
            self._state = SchedulerState.IDLE

    async def _cycle(self) -> Snapshot:
        if not self._fetcher.base_url:
            raise NoBaseUrlConfigured()

        ts = self._clock()
        # Let every section settle before acting on a failure, so no section
        # outlives its cycle.
        results = await asyncio.gather(
            *(self._section(spec) for spec in SECTIONS), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        outcomes: list[_SectionOutcome] = list(results)  # type: ignore[arg-type]
        by_section = {outcome.section: outcome for outcome in outcomes}

        charge_points = by_section[Section.CPS].records
        derived = derive(charge_points, ts)  # type: ignore[arg-type]

        snapshot = Snapshot(
            cycle_ts=ts,
            charge_points=charge_points,
            drivers=by_section[Section.DRIVERS].records,
            sessions=by_section[Section.SESSIONS].records,
            alerts=derived.alerts,
            upstream_alerts=by_section[Section.ALERTS].records,
            audit=by_section[Section.AUDIT].records,
            weather=derived.weather,
            weather_status=derived.weather_status,
            diagnostics=tuple(o.diagnostic for o in outcomes if o.diagnostic),
            malformed_count=sum(o.dropped for o in outcomes),
        )
        self._publisher.publish(snapshot)

        logger.info(
            "Refresh cycle done: cps=%d drivers=%d sessions=%d alerts=%d "
            "weather=%s failed_sections=%s malformed=%d",
            len(snapshot.charge_points),
            len(snapshot.drivers),
            len(snapshot.sessions),
            len(snapshot.alerts),
            snapshot.weather_status.value,
            snapshot.failed_sections,
            snapshot.malformed_count,
        )

        if self._health is not None:
            try:
                self._health.record_cycle(snapshot)
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

        return snapshot

    async def _section(self, spec: SectionSpec) -> _SectionOutcome:
        """Fetch, normalize, and publish one section in isolation."""
        result = await self._fetcher.fetch(spec.path, spec.fallback)

        diagnostic: SectionDiagnostic | None = None
        records: tuple[BaseModel, ...] = ()
        dropped = 0

        if result.is_absent:
            if spec.optional:
                logger.debug(
                    "Optional section %s unavailable: %s",
                    spec.section.value,
                    result.failure,
                )
            else:
                diagnostic = SectionDiagnostic(
                    section=spec.section, reason=str(result.failure)
                )

        try:
            if not result.is_absent:
                batch = normalize_batch(result.items, spec.kind)
                records = batch.records
                dropped = len(batch.dropped)
            self._publisher.publish_section(spec.section, records)
        except Exception as exc:
            # Reported like a failed fetch; the other sections are unaffected.
            logger.error(
                "Section %s failed after fetch", spec.section.value, exc_info=True
            )
            records, dropped = (), 0
            diagnostic = SectionDiagnostic(
                section=spec.section, reason=f"{type(exc).__name__}: {exc}"
            )

        return _SectionOutcome(
            section=spec.section,
            records=records,
            diagnostic=diagnostic,
            dropped=dropped,
        )
