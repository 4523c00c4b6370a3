"""
Pure normalizer that converts raw upstream JSON items into canonical records.

Each raw item is an open-ended mapping as returned by one of the central's
``/api/*`` endpoints. For every canonical attribute the normalizer walks the
ordered alias list in :mod:`dashboard.src.aliases`, takes the first present
value, and coerces it:

- numbers use locale-free decimal parsing; anything that is not a finite
  number is treated as absent (never as zero),
- state strings are upper-cased and matched against the known states;
  unmatched strings become ``UNKNOWN``,
- boolean flags are honored verbatim when present; inference of missing
  flags (``weather_alert``) belongs to the derivation engine.

An item whose identifier cannot be resolved raises :class:`MalformedRecord`.
:func:`normalize_batch` drops such items one at a time and never raises, so
one bad item never costs the whole section.

This is a pure function: no side effects, no I/O, no clock, and the input
mapping is never mutated.

CHANGELOG:
- 2026-10-19: Treat oversized and non-finite numbers as absent (STORY-110)
- 2026-10-15: Accept ISO-8601 strings for timestamp fields
- 2026-10-13: Add upstream alert and audit normalization (STORY-104)
- 2026-10-12: Initial creation (STORY-102)

TODO:
- None
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ValidationError

from dashboard.src.aliases import (
    ENTITY_FIELDS,
    FALSE_STRINGS,
    STATE_NAMES,
    TRUE_STRINGS,
    FieldDef,
)
from dashboard.src.errors import MalformedRecord
from dashboard.src.models import (
    AuditEntry,
    ChargePoint,
    CPState,
    Driver,
    Session,
    UpstreamAlert,
)

logger = logging.getLogger(__name__)

_MODELS: dict[str, type[BaseModel]] = {
    "cp": ChargePoint,
    "driver": Driver,
    "session": Session,
    "alert": UpstreamAlert,
    "audit": AuditEntry,
}
"""Maps entity kind -> canonical pydantic model."""

_DECIMAL_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


# ---------------------------------------------------------------------------
# Value coercion helpers
# ---------------------------------------------------------------------------


def _is_present(value: Any) -> bool:
    """A value is present when it is not null and not a blank string."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def _to_float(value: Any) -> float | None:
    """Parse a finite float without locale rules; ``None`` when not a number."""
    if isinstance(value, bool):
        return None
    try:
        if isinstance(value, int | float):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            if not _DECIMAL_RE.match(text):
                return None
            number = float(text)
        else:
            return None
    except OverflowError:
        # JSON integers are unbounded; float() cannot hold them.
        return None
    if not math.isfinite(number):
        return None
    return number


def _to_bool(value: Any) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        if value in (0, 1):
            return bool(value)
        return None
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    return None


def _to_str(value: Any) -> str | None:
    if isinstance(value, str):
        return value.strip()
    # Numeric identifiers ("cp": 7) are common in older payloads.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return str(value)
        except ValueError:
            # Past the interpreter's int-to-str digit limit.
            return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            return str(int(value))
        return str(value)
    return None


def _to_state(value: Any) -> CPState:
    if not isinstance(value, str):
        return CPState.UNKNOWN
    return STATE_NAMES.get(value.strip().upper(), CPState.UNKNOWN)


def _to_datetime(value: Any) -> datetime | None:
    """Epoch milliseconds or ISO-8601 string -> aware UTC datetime."""
    millis = _to_float(value)
    if millis is not None:
        try:
            return datetime.fromtimestamp(millis / 1000.0, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    return None


def _coerce(field: FieldDef, value: Any) -> Any:
    """Apply the field's coercion; ``None`` means the value counts as absent."""
    kind = field.kind
    if kind == "str":
        return _to_str(value)
    if kind == "bool":
        return _to_bool(value)
    if kind == "state":
        return _to_state(value)
    if kind == "datetime":
        return _to_datetime(value)

    number = _to_float(value)
    if number is None:
        return None
    if field.non_negative and number < 0:
        return None
    if kind == "int":
        return int(number)
    return number


def _resolve(raw: Mapping[str, Any], field: FieldDef) -> Any:
    """Return the first alias value that is present and coerces cleanly."""
    for alias in field.aliases:
        value = raw.get(alias)
        if not _is_present(value):
            continue
        coerced = _coerce(field, value)
        if coerced is not None:
            return coerced
    return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def normalize_record(raw: Any, kind: str) -> BaseModel:
    """Convert one raw upstream item into its canonical model.

    Args:
        raw: One element of the upstream ``items`` array.
        kind: Entity kind -- a key of :data:`~dashboard.src.aliases.ENTITY_FIELDS`.

    Returns:
        The canonical, frozen pydantic model for *kind*.

    Raises:
        MalformedRecord: If *raw* is not a JSON object or no alias of a
            required attribute resolves.
        KeyError: If *kind* is not a known entity kind.
    """
    fields_def = ENTITY_FIELDS[kind]
    if not isinstance(raw, Mapping):
        raise MalformedRecord(kind, f"expected a JSON object, got {type(raw).__name__}")

    fields: dict[str, Any] = {}
    for field in fields_def:
        value = _resolve(raw, field)
        if value is None:
            if field.required:
                raise MalformedRecord(
                    kind,
                    f"no '{field.name}' under any of {', '.join(field.aliases)}",
                )
            continue
        fields[field.name] = value

    if kind == "cp":
        fields.setdefault("location", fields["id"])

    try:
        return _MODELS[kind](**fields)
    except ValidationError as exc:
        raise MalformedRecord(kind, str(exc)) from exc


def normalize_charge_point(raw: Any) -> ChargePoint:
    return normalize_record(raw, "cp")  # type: ignore[return-value]


def normalize_driver(raw: Any) -> Driver:
    return normalize_record(raw, "driver")  # type: ignore[return-value]


def normalize_session(raw: Any) -> Session:
    return normalize_record(raw, "session")  # type: ignore[return-value]


@dataclass(frozen=True, slots=True)
class NormalizedBatch:
    """Result of normalizing one section's items.

    Attributes:
        records: Canonical records, in upstream order.
        dropped: One :class:`MalformedRecord` per item that was skipped.
    """

    records: tuple[BaseModel, ...]
    dropped: tuple[MalformedRecord, ...] = ()


def normalize_batch(items: Iterable[Any], kind: str) -> NormalizedBatch:
    """Normalize every item of a section, dropping malformed ones individually.

    Never raises for bad items; each dropped item is logged at WARNING and
    recorded in :attr:`NormalizedBatch.dropped`.

    Args:
        items: Raw upstream items (the unwrapped ``items`` array).
        kind: Entity kind -- a key of :data:`~dashboard.src.aliases.ENTITY_FIELDS`.

    Returns:
        A :class:`NormalizedBatch`.
    """
    records: list[BaseModel] = []
    dropped: list[MalformedRecord] = []

    for index, raw in enumerate(items):
        try:
            records.append(normalize_record(raw, kind))
        except MalformedRecord as exc:
            logger.warning(
                "Dropping malformed %s item #%d: %s", kind, index, exc.reason
            )
            dropped.append(exc)

    return NormalizedBatch(records=tuple(records), dropped=tuple(dropped))
