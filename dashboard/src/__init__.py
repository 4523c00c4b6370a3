"""
Charging-point fleet dashboard engine.

Polls the central system's HTTP status API, reconciles its inconsistent JSON
shapes into canonical charging-point, driver and session records, derives
operational alerts and weather status, and serves the resulting snapshot to
the dashboard view layer.

CHANGELOG:
- 2026-10-12: Initial creation (STORY-101)

TODO:
- None
"""
