"""Prometheus metrics for the vector store.

Provides metrics instrumentation for:
- Embedding request latency and counts
- Similarity search counts and result sizes
- Evictions and store size
- Persistence saves

The library serves no HTTP itself. Host applications expose the
metrics by returning `get_metrics()` with `get_metrics_content_type()`
from their own `/metrics` endpoint.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "vector_storage_embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "vector_storage_embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

EMBEDDING_BATCH_SIZE = Histogram(
    "vector_storage_embedding_batch_size",
    "Embedding batch size",
    ["model"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500],
)

# Search Metrics
SEARCH_TOTAL = Counter(
    "vector_storage_searches_total",
    "Total similarity searches",
)

SEARCH_RESULTS_RETURNED = Histogram(
    "vector_storage_search_results_returned",
    "Number of documents returned per search",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

SEARCH_TOP_SCORE = Histogram(
    "vector_storage_search_top_score",
    "Top normalized score per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Capacity Metrics
EVICTIONS_TOTAL = Counter(
    "vector_storage_evictions_total",
    "Total documents evicted to stay under the size budget",
)

STORE_DOCUMENTS = Gauge(
    "vector_storage_documents",
    "Documents currently held in memory",
)

STORE_SIZE_MB = Gauge(
    "vector_storage_size_megabytes",
    "Estimated serialized size of the collection",
)

# Persistence Metrics
PERSISTENCE_SAVE_TOTAL = Counter(
    "vector_storage_persistence_saves_total",
    "Total persistence saves",
    ["status"],
)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output.

    Export hook for host applications; the body of a `/metrics` response.
    """
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type to send with `get_metrics()` output."""
    return CONTENT_TYPE_LATEST


def track_embedding_request(
    model: str,
    duration: float,
    batch_size: int,
    success: bool = True,
) -> None:
    """Track embedding request metrics.

    Args:
        model: Model name.
        duration: Request duration in seconds.
        batch_size: Number of texts embedded.
        success: Whether request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()
    EMBEDDING_BATCH_SIZE.labels(model=model).observe(batch_size)


def track_search_request(results_returned: int, top_score: float | None) -> None:
    """Track similarity search metrics.

    Args:
        results_returned: Number of documents returned.
        top_score: Highest normalized score, if any.
    """
    SEARCH_TOTAL.inc()
    SEARCH_RESULTS_RETURNED.observe(results_returned)
    if top_score is not None:
        SEARCH_TOP_SCORE.observe(top_score)


def track_evictions(count: int) -> None:
    """Record evicted documents."""
    if count > 0:
        EVICTIONS_TOTAL.inc(count)


def update_store_gauges(documents: int, size_mb: float) -> None:
    """Update the store size gauges."""
    STORE_DOCUMENTS.set(documents)
    STORE_SIZE_MB.set(size_mb)


def track_persistence_save(success: bool = True) -> None:
    """Record a persistence save attempt."""
    PERSISTENCE_SAVE_TOTAL.labels(status="success" if success else "error").inc()
