"""
Pydantic models for canonical charging-point records and derived views.

Canonical records (ChargePoint, Driver, Session, UpstreamAlert, AuditEntry)
are produced by the normalizer from heterogeneous upstream JSON. Derived views
(Alert, WeatherObservation, WeatherStatus) are computed by the derivation
engine and never come from upstream. A Snapshot bundles everything one
refresh cycle produced.

All models are frozen: a cycle builds new instances and the publisher swaps
the whole Snapshot, so nothing published is ever mutated in place.

CHANGELOG:
- 2026-10-14: Add SectionDiagnostic and Snapshot.failed_sections (STORY-106)
- 2026-10-13: Add UpstreamAlert and AuditEntry for optional sections (STORY-104)
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CPState(str, Enum):
    """Operational state of a charging point."""

    AVAILABLE = "AVAILABLE"
    CHARGING = "CHARGING"
    STOPPED = "STOPPED"
    BROKEN = "BROKEN"
    DISCONNECTED = "DISCONNECTED"
    UNKNOWN = "UNKNOWN"


class AlertKind(str, Enum):
    CP_STATE = "CP_STATE"
    HEARTBEAT = "HEARTBEAT"
    WEATHER = "WEATHER"


class WeatherStatus(str, Enum):
    """Fleet-level weather indicator, in precedence order."""

    NO_CPS = "NO_CPS"
    NO_DATA = "NO_DATA"
    ALERT = "ALERT"
    OK = "OK"


class Section(str, Enum):
    """Upstream sections fetched once per refresh cycle."""

    CPS = "cps"
    SESSIONS = "sessions"
    DRIVERS = "drivers"
    ALERTS = "alerts"
    AUDIT = "audit"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------------
# Canonical records
# ---------------------------------------------------------------------------


class ChargePoint(_Frozen):
    """A charging point after alias resolution.

    Attributes:
        id: Stable identifier (required upstream under some alias).
        location: Display label; the normalizer defaults it to ``id``.
        state: Operational state; unmatched upstream strings are UNKNOWN.
        occupied: Whether a vehicle is plugged in.
        stopped: Whether the operator stopped the CP.
        heartbeat_lag_ms: Milliseconds since the last heartbeat, 0 if unknown.
        session_id: Active session identifier, if any.
        driver_id: Driver of the active session, if any.
        energy_kwh: Energy delivered in the active session.
        cost_eur: Cost accumulated in the active session.
        price_eur_per_kwh: Tariff configured on the CP.
        temperature_c: Last temperature reading at the CP location.
        weather_alert: Explicit upstream weather flag. ``None`` means the
            upstream did not send one; inference happens at derivation time.
        registered: Whether the CP is registered with the central system.
        token: Registration token, if the upstream exposes it.
        weather_observed_at: When the temperature reading was taken.
    """

    id: str
    location: str
    state: CPState = CPState.UNKNOWN
    occupied: bool = False
    stopped: bool = False
    heartbeat_lag_ms: int = Field(default=0, ge=0)
    session_id: str | None = None
    driver_id: str | None = None
    energy_kwh: float = Field(default=0.0, ge=0)
    cost_eur: float = Field(default=0.0, ge=0)
    price_eur_per_kwh: float = Field(default=0.0, ge=0)
    temperature_c: float | None = None
    weather_alert: bool | None = None
    registered: bool | None = None
    token: str | None = None
    weather_observed_at: datetime | None = None


class Driver(_Frozen):
    id: str
    vehicle: str | None = None
    state: str | None = None
    assigned_cp_id: str | None = None


class Session(_Frozen):
    """A charging session as reported by ``/api/sessions``."""

    id: str
    cp_id: str | None = None
    driver_id: str | None = None
    started_at_utc: datetime | None = None
    energy_kwh: float = Field(default=0.0, ge=0)
    cost_eur: float = Field(default=0.0, ge=0)


class UpstreamAlert(_Frozen):
    """An alert the upstream sends natively, shown beside derived alerts."""

    timestamp: datetime | None = None
    kind: str | None = None
    source: str | None = None
    message: str = ""


class AuditEntry(_Frozen):
    timestamp: datetime | None = None
    source_ip: str | None = None
    action: str | None = None
    details: str = ""


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


class Alert(_Frozen):
    """An operational alert synthesized from the current CP collection.

    Attributes:
        timestamp: Cycle time the alert was derived at.
        kind: Alert category.
        source: CP id the alert is about (``"fleet"`` for fleet-level alerts).
        message: Human-readable text.
    """

    timestamp: datetime
    kind: AlertKind
    source: str
    message: str


class WeatherObservation(_Frozen):
    cp_id: str
    city: str
    state: CPState
    temperature_c: float | None = None
    alert: bool
    observed_at: str | None = None


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


class SectionDiagnostic(_Frozen):
    """Why a section came back empty this cycle."""

    section: Section
    reason: str


class Snapshot(_Frozen):
    """Everything one refresh cycle produced, published as a single value.

    Attributes:
        cycle_ts: Timestamp of the cycle (also stamped on derived alerts).
        charge_points: Canonical CPs.
        drivers: Canonical drivers.
        sessions: Canonical sessions.
        alerts: Derived alerts, including the fleet weather pseudo-alert.
        upstream_alerts: Alerts sent natively by upstream, kept separate.
        audit: Upstream audit log entries.
        weather: Derived weather observations.
        weather_status: Aggregate fleet weather status.
        diagnostics: One entry per section that failed this cycle.
        malformed_count: Items dropped by the normalizer this cycle.
    """

    cycle_ts: datetime | None = None
    charge_points: tuple[ChargePoint, ...] = ()
    drivers: tuple[Driver, ...] = ()
    sessions: tuple[Session, ...] = ()
    alerts: tuple[Alert, ...] = ()
    upstream_alerts: tuple[UpstreamAlert, ...] = ()
    audit: tuple[AuditEntry, ...] = ()
    weather: tuple[WeatherObservation, ...] = ()
    weather_status: WeatherStatus = WeatherStatus.NO_CPS
    diagnostics: tuple[SectionDiagnostic, ...] = ()
    malformed_count: int = 0

    @classmethod
    def empty(cls) -> Snapshot:
        """Snapshot published before the first cycle completes."""
        return cls()

    @property
    def failed_sections(self) -> list[str]:
        return [d.section.value for d in self.diagnostics]
