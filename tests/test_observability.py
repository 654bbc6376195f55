"""Tests for observability module."""

from prometheus_client import REGISTRY

from vector_storage.observability import get_metrics as exported_get_metrics
from vector_storage.observability.metrics import (
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_evictions,
    track_persistence_save,
    track_search_request,
    update_store_gauges,
)


def _value(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetricsFunctions:
    """Tests for metrics tracking functions."""

    def test_get_metrics_returns_bytes(self) -> None:
        """get_metrics returns bytes."""
        metrics = get_metrics()
        assert isinstance(metrics, bytes)

    def test_content_type(self) -> None:
        """Metrics are served in the Prometheus text format."""
        assert get_metrics_content_type().startswith("text/plain")

    def test_track_embedding_request(self) -> None:
        """track_embedding_request records request."""
        labels = {"model": "test-model", "status": "success"}
        before = _value("vector_storage_embedding_requests_total", labels)

        track_embedding_request(
            model="test-model",
            duration=0.1,
            batch_size=10,
            success=True,
        )

        assert _value("vector_storage_embedding_requests_total", labels) == before + 1
        metrics = get_metrics().decode()
        assert "vector_storage_embedding_request_duration_seconds" in metrics
        assert "vector_storage_embedding_batch_size" in metrics

    def test_track_embedding_failure(self) -> None:
        """Failed requests are labelled as errors."""
        labels = {"model": "test-model", "status": "error"}
        before = _value("vector_storage_embedding_requests_total", labels)

        track_embedding_request(model="test-model", duration=0.5, batch_size=1, success=False)

        assert _value("vector_storage_embedding_requests_total", labels) == before + 1

    def test_track_search_request(self) -> None:
        """track_search_request records request."""
        before = _value("vector_storage_searches_total")

        track_search_request(results_returned=3, top_score=0.95)

        assert _value("vector_storage_searches_total") == before + 1
        assert "vector_storage_search_top_score" in get_metrics().decode()

    def test_track_search_without_score(self) -> None:
        """An empty search records no top score."""
        before = _value("vector_storage_search_top_score_count")

        track_search_request(results_returned=0, top_score=None)

        assert _value("vector_storage_search_top_score_count") == before

    def test_track_evictions(self) -> None:
        """Evictions are counted, and zero is ignored."""
        before = _value("vector_storage_evictions_total")

        track_evictions(4)
        track_evictions(0)

        assert _value("vector_storage_evictions_total") == before + 4

    def test_update_store_gauges(self) -> None:
        """Gauges reflect the last update."""
        update_store_gauges(documents=12, size_mb=0.25)

        assert _value("vector_storage_documents") == 12
        assert _value("vector_storage_size_megabytes") == 0.25

    def test_track_persistence_save(self) -> None:
        """Saves are counted by status."""
        before = _value("vector_storage_persistence_saves_total", {"status": "error"})

        track_persistence_save(success=False)

        assert (
            _value("vector_storage_persistence_saves_total", {"status": "error"})
            == before + 1
        )

    def test_export_hook_on_package(self) -> None:
        """Host applications can import the export hook from the package."""
        track_evictions(1)

        body = exported_get_metrics().decode()

        assert "vector_storage_evictions_total" in body
