"""
Derivation engine: alerts and weather views computed from canonical CPs.

The upstream never sends operational alerts or weather observations for the
charging-point list explicitly; they are synthesized here from the current
:class:`~dashboard.src.models.ChargePoint` collection.

Rules (evaluated per CP, every matching rule emits an alert):

- ``BROKEN``        -> CP_STATE  "state BROKEN"
- ``DISCONNECTED``  -> CP_STATE  "state DISCONNECTED (no heartbeats)"
- ``STOPPED``       -> CP_STATE  "CP stopped"
- heartbeat lag above :data:`HEARTBEAT_LAG_THRESHOLD_MS` and not
  ``DISCONNECTED`` -> HEARTBEAT (a disconnected CP's lag is stale and the
  disconnection is already reported)
- weather alert (explicit flag, else temperature below zero) -> WEATHER

Every function here is pure and deterministic: the cycle timestamp is passed
in by the caller.

CHANGELOG:
- 2026-10-16: Emit fleet pseudo-alert when no CP reports weather data
- 2026-10-14: Initial creation (STORY-103)

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from dashboard.src.models import (
    Alert,
    AlertKind,
    ChargePoint,
    CPState,
    WeatherObservation,
    WeatherStatus,
)

HEARTBEAT_LAG_THRESHOLD_MS: int = 5000
"""Heartbeat lag (ms) above which a connected CP raises a HEARTBEAT alert."""

FLEET_SOURCE: str = "fleet"
"""Alert source used for fleet-level alerts that concern no single CP."""

_STATE_MESSAGES: dict[CPState, str] = {
    CPState.BROKEN: "state BROKEN",
    CPState.DISCONNECTED: "state DISCONNECTED (no heartbeats)",
    CPState.STOPPED: "CP stopped",
}


# ---------------------------------------------------------------------------
# Weather inference
# ---------------------------------------------------------------------------


def infer_weather_alert(cp: ChargePoint) -> bool:
    """Explicit upstream flag if present, else ``temperature_c < 0``."""
    if cp.weather_alert is not None:
        return cp.weather_alert
    return cp.temperature_c is not None and cp.temperature_c < 0


def _has_weather_data(cp: ChargePoint) -> bool:
    return cp.temperature_c is not None or infer_weather_alert(cp)


def _format_observed_at(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.strftime("%Y-%m-%d %H:%M:%SZ")


def derive_weather(cps: Sequence[ChargePoint]) -> tuple[WeatherObservation, ...]:
    """Build one weather observation per connected CP that has weather data.

    A CP is skipped when it is ``DISCONNECTED`` or carries neither a
    temperature reading nor an (explicit or inferred) alert.
    """
    observations: list[WeatherObservation] = []
    for cp in cps:
        if cp.state is CPState.DISCONNECTED or not _has_weather_data(cp):
            continue
        observations.append(
            WeatherObservation(
                cp_id=cp.id,
                city=cp.location or cp.id,
                state=cp.state,
                temperature_c=cp.temperature_c,
                alert=infer_weather_alert(cp),
                observed_at=_format_observed_at(cp.weather_observed_at),
            )
        )
    return tuple(observations)


def aggregate_weather_status(cps: Sequence[ChargePoint]) -> WeatherStatus:
    """Fleet weather status: NO_CPS, then NO_DATA, then ALERT, else OK.

    NO_DATA means CPs exist but none reports a temperature or alert; it
    signals an upstream integration fault, not fleet health.
    """
    if not cps:
        return WeatherStatus.NO_CPS
    if not any(_has_weather_data(cp) for cp in cps):
        return WeatherStatus.NO_DATA
    if any(infer_weather_alert(cp) for cp in cps):
        return WeatherStatus.ALERT
    return WeatherStatus.OK


def weather_status_alert(status: WeatherStatus, ts: datetime) -> Alert | None:
    """The fleet pseudo-alert raised when no CP reports weather data."""
    if status is not WeatherStatus.NO_DATA:
        return None
    return Alert(
        timestamp=ts,
        kind=AlertKind.WEATHER,
        source=FLEET_SOURCE,
        message="no weather data received for any CP (weather service offline?)",
    )


# ---------------------------------------------------------------------------
# Alert synthesis
# ---------------------------------------------------------------------------


def _alerts_for(cp: ChargePoint, ts: datetime) -> list[Alert]:
    alerts: list[Alert] = []

    state_message = _STATE_MESSAGES.get(cp.state)
    if state_message is not None:
        alerts.append(
            Alert(
                timestamp=ts,
                kind=AlertKind.CP_STATE,
                source=cp.id,
                message=state_message,
            )
        )

    if (
        cp.heartbeat_lag_ms > HEARTBEAT_LAG_THRESHOLD_MS
        and cp.state is not CPState.DISCONNECTED
    ):
        alerts.append(
            Alert(
                timestamp=ts,
                kind=AlertKind.HEARTBEAT,
                source=cp.id,
                message=f"heartbeat delayed ({cp.heartbeat_lag_ms} ms)",
            )
        )

    if infer_weather_alert(cp):
        if cp.temperature_c is not None:
            message = f"weather alert (temp={cp.temperature_c:.2f}°C)"
        else:
            message = "weather alert"
        alerts.append(
            Alert(timestamp=ts, kind=AlertKind.WEATHER, source=cp.id, message=message)
        )

    return alerts


def derive_alerts(cps: Sequence[ChargePoint], ts: datetime) -> tuple[Alert, ...]:
    """Synthesize per-CP alerts, in CP order, all stamped with *ts*."""
    alerts: list[Alert] = []
    for cp in cps:
        alerts.extend(_alerts_for(cp, ts))
    return tuple(alerts)


# ---------------------------------------------------------------------------
# Public bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Derived:
    """All derived views for one cycle.

    Attributes:
        alerts: Per-CP alerts followed by the fleet pseudo-alert, if any.
        weather: Weather observations.
        weather_status: Aggregate fleet weather status.
    """

    alerts: tuple[Alert, ...]
    weather: tuple[WeatherObservation, ...]
    weather_status: WeatherStatus


def derive(cps: Sequence[ChargePoint], ts: datetime) -> Derived:
    """Compute every derived view from the cycle's CP collection.

    Args:
        cps: Canonical charging points from this cycle.
        ts: Cycle timestamp, stamped on every alert.

    Returns:
        A :class:`Derived` bundle.
    """
    status = aggregate_weather_status(cps)
    alerts = derive_alerts(cps, ts)
    pseudo = weather_status_alert(status, ts)
    if pseudo is not None:
        alerts = (*alerts, pseudo)
    return Derived(alerts=alerts, weather=derive_weather(cps), weather_status=status)
