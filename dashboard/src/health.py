"""
Health file writer for the dashboard refresh loop.

Writes a JSON health file at a configurable path with four fields:
- last_cycle_ts: ISO timestamp of the most recent completed refresh cycle.
- last_success_ts: ISO timestamp of the most recent cycle with no failed section.
- failed_sections: Sections that failed in the most recent cycle.
- cp_count: Number of charging points in the most recent cycle.

The file is overwritten on every cycle, providing a simple liveness signal
that Docker HEALTHCHECK or monitoring can inspect.

CHANGELOG:
- 2026-10-15: Track cycles and failed sections instead of poll/upload (STORY-107)

TODO:
- None
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from dashboard.src.models import Snapshot


class HealthWriter:
    """Writes dashboard health status to a JSON file.

    Args:
        path: Filesystem path for the health JSON file. Accepts str or Path.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._last_cycle_ts: str | None = None
        self._last_success_ts: str | None = None
        self._failed_sections: list[str] = []
        self._cp_count: int = 0

    def record_cycle(self, snapshot: Snapshot) -> None:
        """Record a completed cycle and write health file.

        Args:
            snapshot: The snapshot the cycle published.
        """
        ts = (snapshot.cycle_ts or datetime.now(tz=UTC)).isoformat()
        self._last_cycle_ts = ts
        self._failed_sections = snapshot.failed_sections
        self._cp_count = len(snapshot.charge_points)
        if not self._failed_sections:
            self._last_success_ts = ts
        self._write()

    def _write(self) -> None:
        """Write the health JSON file with current state."""
        data = {
            "last_cycle_ts": self._last_cycle_ts,
            "last_success_ts": self._last_success_ts,
            "failed_sections": self._failed_sections,
            "cp_count": self._cp_count,
        }
        self.path.write_text(json.dumps(data))
