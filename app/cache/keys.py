"""
app/cache/keys.py

Cache key families.

    snapshot:<metric>           one metric snapshot (sorted values + rows)
    submissions_snapshot:all    full population snapshot
    dashboard:<fingerprint>     one dashboard payload per filter combination
"""

from __future__ import annotations

from typing import Final

METRIC_SNAPSHOT_PREFIX: Final[str] = "snapshot:"
SUBMISSIONS_SNAPSHOT_KEY: Final[str] = "submissions_snapshot:all"
DASHBOARD_PREFIX: Final[str] = "dashboard:"


def metric_snapshot_key(metric: str) -> str:
    return f"{METRIC_SNAPSHOT_PREFIX}{metric}"


def dashboard_key(fingerprint: str) -> str:
    return f"{DASHBOARD_PREFIX}{fingerprint}"
