"""
Bookshelf Operational Metrics

Prometheus metrics for store latency and cache invalidation activity.
Cache hit rates are not tracked.
"""

import time
from contextlib import contextmanager
from typing import Iterator

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

STORE_OPERATION_SECONDS = Histogram(
    "bookshelf_store_operation_seconds",
    "Time spent executing store operations",
    ["operation", "outcome"],
)

CACHE_INVALIDATIONS = Counter(
    "bookshelf_cache_invalidations_total",
    "Cache invalidation actions applied after committed mutations",
    ["action"],
)


@contextmanager
def observe_store_operation(operation: str) -> Iterator[None]:
    """Record the duration of a store operation, labelled by outcome."""
    start_time = time.perf_counter()
    outcome = "success"
    try:
        yield
    except Exception:
        outcome = "error"
        raise
    finally:
        STORE_OPERATION_SECONDS.labels(operation=operation, outcome=outcome).observe(
            time.perf_counter() - start_time
        )


def render_metrics() -> tuple[bytes, str]:
    """Return the Prometheus exposition payload and its content type."""
    return generate_latest(), CONTENT_TYPE_LATEST
