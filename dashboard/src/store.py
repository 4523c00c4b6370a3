"""
In-process snapshot store: the publisher the view layer reads from.

The refresh scheduler hands each cycle's results to a :class:`Publisher`.
:class:`SnapshotStore` is the implementation used by the HTTP surface. It
holds the only shared mutable state in the process -- the reference to the
current :class:`~dashboard.src.models.Snapshot` -- and replaces it by whole
value substitution, so a reader always sees one cycle's complete output and
never a mix of two.

CHANGELOG:
- 2026-10-16: Track operator configuration prompt (STORY-108)
- 2026-10-14: Initial creation (STORY-106)

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from types import MappingProxyType
from typing import Protocol

from pydantic import BaseModel

from dashboard.src.models import Section, Snapshot

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    """Receiver of refresh-cycle output."""

    def publish_section(self, section: Section, records: tuple[BaseModel, ...]) -> None:
        """Called once per section as soon as that section is normalized."""

    def publish(self, snapshot: Snapshot) -> None:
        """Called once per completed cycle with the full snapshot."""

    def publish_config_error(self, message: str) -> None:
        """Called instead of :meth:`publish` when the cycle aborted on config."""


class SnapshotStore:
    """Holds the latest published snapshot and per-section records.

    Attributes:
        current: Latest complete snapshot (``Snapshot.empty()`` at start).
        sections: Read-only view of the freshest records per section,
            including sections of a cycle that has not finished yet. Served
            by ``GET /v1/sections``.
        config_error: Operator prompt when the base URL is missing, cleared
            by the next completed cycle.
    """

    def __init__(self) -> None:
        self._current: Snapshot = Snapshot.empty()
        self._sections: Mapping[Section, tuple[BaseModel, ...]] = MappingProxyType({})
        self._config_error: str | None = None

    @property
    def current(self) -> Snapshot:
        return self._current

    @property
    def sections(self) -> Mapping[Section, tuple[BaseModel, ...]]:
        return self._sections

    @property
    def config_error(self) -> str | None:
        return self._config_error

    def publish_section(self, section: Section, records: tuple[BaseModel, ...]) -> None:
        updated = dict(self._sections)
        updated[section] = records
        self._sections = MappingProxyType(updated)
        logger.debug("Section %s published (%d records)", section.value, len(records))

    def publish(self, snapshot: Snapshot) -> None:
        self._current = snapshot
        self._config_error = None

    def publish_config_error(self, message: str) -> None:
        self._config_error = message
