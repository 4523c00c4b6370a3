"""
HTTP surface the dashboard view layer reads snapshots from.

CHANGELOG:
- 2026-10-17: Initial creation (STORY-109)
"""
