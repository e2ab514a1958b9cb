"""Tests for common utilities."""

import pytest
from prometheus_client import CollectorRegistry
from pydantic import ValidationError

from localqa.common.config import BaseConfig, IngestionConfig, SearchConfig, get_config
from localqa.common.logging import configure_logging, get_logger
from localqa.common.metrics import MetricsCollector, get_metrics_collector, measure_time


def test_config_loading():
    """Test configuration loading."""
    config = BaseConfig()
    assert config.qa_env == "local"
    assert config.qa_log_level == "INFO"
    assert config.qa_vector_dimension == 384
    assert config.qa_hash_count == 3


def test_ingestion_config():
    """Test ingestion configuration."""
    config = IngestionConfig()
    assert config.qa_chunk_size == 500
    assert config.qa_chunk_overlap == 50
    assert config.qa_min_text_length == 10


def test_search_config():
    """Test search configuration."""
    config = SearchConfig()
    assert config.qa_similarity_threshold == 0.3
    assert config.qa_default_top_k == 5
    assert config.qa_keyword_weight == 0.1
    assert config.qa_strict_dimensions is False


def test_config_env_override(monkeypatch):
    """Test that environment variables override defaults."""
    monkeypatch.setenv("QA_CHUNK_SIZE", "200")
    monkeypatch.setenv("QA_STRICT_DIMENSIONS", "true")

    assert IngestionConfig().qa_chunk_size == 200
    assert SearchConfig().qa_strict_dimensions is True


def test_config_rejects_invalid_values(monkeypatch):
    """Test that out-of-range settings are rejected."""
    monkeypatch.setenv("QA_SIMILARITY_THRESHOLD", "1.5")
    with pytest.raises(ValidationError):
        SearchConfig()


def test_get_config():
    """Test component config selection."""
    assert isinstance(get_config("ingestion"), IngestionConfig)
    assert isinstance(get_config("search"), SearchConfig)
    assert type(get_config("unknown")) is BaseConfig


def test_logging_configuration():
    """Test logging configuration."""
    # This should not raise an exception
    configure_logging("test-service", "INFO", "json")
    configure_logging("test-service", "debug", "console", colors=False)
    get_logger("test").info("Logging configured")


def test_logging_rejects_unknown_settings():
    """Test invalid level and format names."""
    with pytest.raises(ValueError):
        configure_logging("test-service", "LOUD", "json")
    with pytest.raises(ValueError):
        configure_logging("test-service", "INFO", "xml")


def test_metrics_collector():
    """Test metrics collector."""
    collector = MetricsCollector("test-service", registry=CollectorRegistry())
    assert collector.service_name == "test-service"

    collector.record_ingestion("success", 3)
    collector.record_embedding("ok", 3)
    collector.record_embedding_batch(0.01)
    collector.record_search("vector", 0.05)
    collector.record_store_operation("put_chunks")

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert "qa_documents_ingested_total" in metrics
    assert "qa_chunks_created_total 3.0" in metrics
    assert 'qa_search_requests_total{query_type="vector"} 1.0' in metrics


def test_metrics_collector_singleton():
    """Test the process-wide collector is reused."""
    assert get_metrics_collector() is get_metrics_collector()


def test_measure_time_reraises():
    """Test the timing decorator passes results and errors through."""

    @measure_time("double")
    def double(x):
        return x * 2

    @measure_time("explode")
    def explode():
        raise RuntimeError("boom")

    assert double(4) == 8
    with pytest.raises(RuntimeError):
        explode()
