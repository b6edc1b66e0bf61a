"""
Structured logging helpers for snapshot and cache events.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def elapsed_ms(started_at: float) -> float:
    """
    Milliseconds since a ``time.perf_counter()`` reading, rounded for logs.
    """

    return round((time.perf_counter() - started_at) * 1000, 2)
