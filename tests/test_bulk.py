"""Tests for the bounded bulk worker pool."""

from __future__ import annotations

import threading
import time

from quotedesk.enrichment.bulk import BulkStats, run_bounded


class TestRunBounded:
    """Test run_bounded function."""

    def test_empty_items(self) -> None:
        stats = run_bounded([], lambda item: item)

        assert stats.total == 0
        assert stats.results == {}

    def test_every_item_processed_once(self) -> None:
        seen = []
        lock = threading.Lock()

        def worker(item: int) -> int:
            with lock:
                seen.append(item)
            return item * 2

        stats = run_bounded(list(range(20)), worker, concurrency=4)

        assert sorted(seen) == list(range(20))
        assert stats.succeeded == 20
        assert stats.failed == 0
        assert stats.results[7] == 14

    def test_failures_are_counted_and_do_not_stop_run(self) -> None:
        def worker(item: int) -> int:
            if item % 3 == 0:
                raise ValueError(f"bad item {item}")
            return item

        stats = run_bounded(list(range(9)), worker, concurrency=2)

        assert stats.failed == 3
        assert stats.succeeded == 6
        assert stats.errors[3] == "bad item 3"
        assert set(stats.results) == {1, 2, 4, 5, 7, 8}

    def test_concurrency_is_bounded(self) -> None:
        active = 0
        peak = 0
        lock = threading.Lock()

        def worker(item: int) -> None:
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            time.sleep(0.01)
            with lock:
                active -= 1

        run_bounded(list(range(16)), worker, concurrency=4)

        assert 1 <= peak <= 4

    def test_zero_concurrency_still_runs(self) -> None:
        stats = run_bounded([1, 2], lambda item: item, concurrency=0)
        assert stats.succeeded == 2


def test_bulk_stats_error_message_defaults_to_type() -> None:
    stats = BulkStats()
    stats.record_failure(0, KeyError())

    assert stats.errors[0] == "KeyError"
    assert stats.total == 1
