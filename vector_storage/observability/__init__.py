"""Observability module for metrics and monitoring."""

from vector_storage.observability.metrics import (
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_evictions,
    track_persistence_save,
    track_search_request,
    update_store_gauges,
)

__all__ = [
    "get_metrics",
    "get_metrics_content_type",
    "track_embedding_request",
    "track_evictions",
    "track_persistence_save",
    "track_search_request",
    "update_store_gauges",
]
