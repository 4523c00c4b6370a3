"""
Upstream field alias tables -- single source of truth for field names.

The central system has exposed the same logical attribute under different
JSON keys across its API versions (``cp`` / ``id`` / ``cpID``, ``estado`` /
``status``, ``tempC`` / ``temperature`` ...). Each canonical attribute is
described here by a :class:`FieldDef` carrying its ordered alias list; the
normalizer takes the first alias holding a present value.

Supporting a new upstream variant means adding an alias string here, not a
new branch in the normalizer.

CHANGELOG:
- 2026-10-15: Add Spanish state names used by the central's status feed
- 2026-10-13: Add upstream alert and audit tables (STORY-104)
- 2026-10-12: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass

from dashboard.src.models import CPState

# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------

FIELD_KINDS = ("str", "float", "int", "bool", "state", "datetime")
"""Value coercions the normalizer knows how to apply."""


@dataclass(frozen=True, slots=True)
class FieldDef:
    """Definition of one canonical attribute and its upstream aliases.

    Attributes:
        name: Canonical field name on the target pydantic model.
        aliases: Upstream keys to try, highest priority first.
        kind: Coercion to apply -- one of :data:`FIELD_KINDS`.
        required: Whether the record is malformed when no alias resolves.
        non_negative: Whether negative numbers are treated as absent.
    """

    name: str
    aliases: tuple[str, ...]
    kind: str = "str"
    required: bool = False
    non_negative: bool = False

    def __post_init__(self) -> None:  # noqa: D105
        if self.kind not in FIELD_KINDS:
            msg = f"Field '{self.name}': unsupported kind '{self.kind}'"
            raise ValueError(msg)
        if not self.aliases:
            msg = f"Field '{self.name}': at least one alias is required"
            raise ValueError(msg)


# ---------------------------------------------------------------------------
# Charging points (/api/cps, /api/status)
# ---------------------------------------------------------------------------

CP_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("id", ("cp", "id", "cpID", "cpId"), required=True),
    FieldDef("location", ("loc", "location", "ubicacion")),
    FieldDef("state", ("estado", "status", "state"), kind="state"),
    FieldDef("occupied", ("ocupado", "occupied"), kind="bool"),
    FieldDef("stopped", ("parado", "stopped"), kind="bool"),
    FieldDef(
        "heartbeat_lag_ms",
        ("lastHbMs", "heartbeatLagMs", "lagMs"),
        kind="int",
        non_negative=True,
    ),
    FieldDef("session_id", ("sesion", "session", "sessionId")),
    FieldDef("driver_id", ("driver", "driverId")),
    FieldDef("energy_kwh", ("kwh", "energyKwh"), kind="float", non_negative=True),
    FieldDef("cost_eur", ("eur", "costEur"), kind="float", non_negative=True),
    FieldDef(
        "price_eur_per_kwh",
        ("precio", "price", "priceEurPerKwh"),
        kind="float",
        non_negative=True,
    ),
    FieldDef("temperature_c", ("tempC", "temperature", "temperatureC"), kind="float"),
    FieldDef("weather_alert", ("weatherAlert",), kind="bool"),
    FieldDef("registered", ("registered", "registrado"), kind="bool"),
    FieldDef("token", ("token",)),
    FieldDef(
        "weather_observed_at", ("weatherTs", "lastWeatherTs", "ts"), kind="datetime"
    ),
)

# ---------------------------------------------------------------------------
# Drivers (/api/drivers)
# ---------------------------------------------------------------------------

DRIVER_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("id", ("id", "driver", "driverId"), required=True),
    FieldDef("vehicle", ("vehicle", "matricula")),
    FieldDef("state", ("status", "estado")),
    FieldDef("assigned_cp_id", ("cp", "cpId", "assignedCp")),
)

# ---------------------------------------------------------------------------
# Sessions (/api/sessions)
# ---------------------------------------------------------------------------

SESSION_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("id", ("session", "sesion", "sessionId", "id"), required=True),
    FieldDef("cp_id", ("cp", "cpId")),
    FieldDef("driver_id", ("driver", "driverId")),
    FieldDef(
        "started_at_utc", ("startUTC", "startedAtUtc", "startedAt"), kind="datetime"
    ),
    FieldDef("energy_kwh", ("kwh", "energyKwh"), kind="float", non_negative=True),
    FieldDef("cost_eur", ("eur", "costEur"), kind="float", non_negative=True),
)

# ---------------------------------------------------------------------------
# Upstream-native alerts (/api/alerts) and audit log (/api/audit)
# ---------------------------------------------------------------------------

UPSTREAM_ALERT_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("timestamp", ("ts", "timestamp"), kind="datetime"),
    FieldDef("kind", ("type", "eventType")),
    FieldDef("source", ("src", "source")),
    FieldDef("message", ("msg", "message", "detail")),
)

AUDIT_FIELDS: tuple[FieldDef, ...] = (
    FieldDef("timestamp", ("ts", "timestamp"), kind="datetime"),
    FieldDef("source_ip", ("sourceIp", "ip")),
    FieldDef("action", ("action", "event")),
    FieldDef("details", ("details", "detail")),
)

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

ENTITY_FIELDS: dict[str, tuple[FieldDef, ...]] = {
    "cp": CP_FIELDS,
    "driver": DRIVER_FIELDS,
    "session": SESSION_FIELDS,
    "alert": UPSTREAM_ALERT_FIELDS,
    "audit": AUDIT_FIELDS,
}
"""Maps entity kind -> ordered field definitions."""

STATE_NAMES: dict[str, CPState] = {
    **{state.value: state for state in CPState},
    "ACTIVADO": CPState.AVAILABLE,
    "SUMINISTRANDO": CPState.CHARGING,
    "PARADO": CPState.STOPPED,
    "AVERIADO": CPState.BROKEN,
    "DESCONECTADO": CPState.DISCONNECTED,
}
"""Upper-cased upstream state string -> canonical state."""

TRUE_STRINGS = frozenset({"true", "yes", "si", "sí", "on", "1"})
FALSE_STRINGS = frozenset({"false", "no", "off", "0"})
