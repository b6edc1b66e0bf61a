"""
tests/test_single_flight.py

Concurrent rebuild deduplication.
"""

from __future__ import annotations

import threading
import time

import pytest

from app.cache.single_flight import SingleFlight


class TestSingleFlight:
    def test_sequential_calls_each_run(self) -> None:
        flight = SingleFlight()
        calls = []
        assert flight.do("k", lambda: calls.append(1) or "a") == "a"
        assert flight.do("k", lambda: calls.append(2) or "b") == "b"
        assert calls == [1, 2]
        assert flight.in_flight() == 0

    def test_concurrent_callers_share_one_call(self) -> None:
        flight = SingleFlight()
        release = threading.Event()
        started = threading.Event()
        calls = []

        def slow() -> str:
            calls.append(1)
            started.set()
            release.wait(timeout=5)
            return "snapshot"

        results: list[str] = []
        leader = threading.Thread(target=lambda: results.append(flight.do("k", slow)))
        leader.start()
        assert started.wait(timeout=5)

        followers = [threading.Thread(target=lambda: results.append(flight.do("k", slow))) for _ in range(3)]
        for thread in followers:
            thread.start()
        time.sleep(0.2)
        assert flight.in_flight() == 1
        release.set()
        for thread in [leader, *followers]:
            thread.join(timeout=5)

        assert calls == [1]
        assert results == ["snapshot"] * 4

    def test_leader_error_propagates_and_clears(self) -> None:
        flight = SingleFlight()

        def boom() -> str:
            raise RuntimeError("store down")

        with pytest.raises(RuntimeError):
            flight.do("k", boom)
        assert flight.in_flight() == 0
        assert flight.do("k", lambda: "ok") == "ok"
