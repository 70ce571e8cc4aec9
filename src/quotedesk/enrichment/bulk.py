"""Best-effort bounded worker pool for bulk enrichment jobs."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Sequence, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

DEFAULT_CONCURRENCY = 4


@dataclass(slots=True)
class BulkStats:
    succeeded: int = 0
    failed: int = 0
    results: Dict[int, Any] = field(default_factory=dict)
    errors: Dict[int, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    def record_success(self, index: int, result: Any) -> None:
        self.succeeded += 1
        self.results[index] = result

    def record_failure(self, index: int, error: BaseException) -> None:
        self.failed += 1
        self.errors[index] = str(error) or type(error).__name__


def run_bounded(
    items: Sequence[T],
    worker: Callable[[T], R],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
) -> BulkStats:
    """Apply ``worker`` to every item using at most ``concurrency`` threads.

    Each item is attempted exactly once. Failures are counted and do not stop
    the remaining items.
    """
    stats = BulkStats()
    if not items:
        return stats

    pending: "queue.Queue[tuple[int, T]]" = queue.Queue()
    for index, item in enumerate(items):
        pending.put((index, item))
    lock = threading.Lock()

    def drain() -> None:
        while True:
            try:
                index, item = pending.get_nowait()
            except queue.Empty:
                return
            try:
                result = worker(item)
            except Exception as exc:
                LOGGER.error("Bulk item %d failed: %s", index, exc)
                with lock:
                    stats.record_failure(index, exc)
            else:
                with lock:
                    stats.record_success(index, result)
            finally:
                pending.task_done()

    workers: List[threading.Thread] = [
        threading.Thread(target=drain, name=f"bulk-worker-{n}", daemon=True)
        for n in range(max(1, min(concurrency, len(items))))
    ]
    for thread in workers:
        thread.start()
    for thread in workers:
        thread.join()

    LOGGER.info("Bulk run finished: %d succeeded, %d failed", stats.succeeded, stats.failed)
    return stats
