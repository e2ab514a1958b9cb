"""Metrics collection for ingestion and search.

Provides a thin convenience wrapper around ``prometheus_client`` so components
can consistently record ingestion, embedding, search, and store metrics.

Design notes
- Metrics and labels are predeclared to keep label sets bounded
- A single registry is kept per collector (can be injected for tests)
- A decorator is provided for quick timing instrumentation
"""

import time
from functools import wraps
from typing import Any, Callable, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)

    Exposes typed helpers for common events to keep label sets consistent.
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.documents_ingested = Counter(
            'qa_documents_ingested_total',
            'Total ingestion runs partitioned by outcome',
            ['status'],
            registry=self.registry
        )

        self.chunks_created = Counter(
            'qa_chunks_created_total',
            'Total chunks produced by the chunker',
            registry=self.registry
        )

        self.embeddings_generated = Counter(
            'qa_embeddings_generated_total',
            'Total chunk embeddings partitioned by outcome',
            ['outcome'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'qa_embedding_batch_duration_seconds',
            'Duration of a batch embedding run',
            registry=self.registry
        )

        self.search_requests = Counter(
            'qa_search_requests_total',
            'Total search requests',
            ['query_type'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'qa_search_duration_seconds',
            'Search duration',
            ['query_type'],
            registry=self.registry
        )

        self.store_operations = Counter(
            'qa_store_operations_total',
            'Total chunk store operations',
            ['operation'],
            registry=self.registry
        )

    def record_ingestion(self, status: str, chunk_count: int = 0) -> None:
        """Record the outcome of one ingestion run."""
        self.documents_ingested.labels(status=status).inc()
        if chunk_count:
            self.chunks_created.inc(chunk_count)

    def record_embedding(self, outcome: str, count: int = 1) -> None:
        """Record generated embeddings (``ok``) or zero-vector fallbacks (``fallback``)."""
        self.embeddings_generated.labels(outcome=outcome).inc(count)

    def record_embedding_batch(self, duration: float) -> None:
        """Record embedding batch duration in seconds."""
        self.embedding_duration.observe(duration)

    def record_search(self, query_type: str, duration: float) -> None:
        """Record search metrics."""
        self.search_requests.labels(query_type=query_type).inc()
        self.search_duration.labels(query_type=query_type).observe(duration)

    def record_store_operation(self, operation: str) -> None:
        """Record chunk store operation metrics."""
        self.store_operations.labels(operation=operation).inc()

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(self.registry).decode('utf-8')


_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str = "localqa") -> MetricsCollector:
    """Get or create the process-wide metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector


def measure_time(operation: str, **labels: Any) -> Callable:
    """Decorator to measure function execution time.

    Example
    >>> @measure_time("build_vocabulary")
    ... def build(chunks):
    ...     ...
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
                duration = time.time() - start_time
                logger.debug(
                    f"Operation {operation} completed",
                    operation=operation,
                    duration_ms=duration * 1000,
                    **labels
                )
                return result
            except Exception as e:
                duration = time.time() - start_time
                logger.error(
                    f"Operation {operation} failed",
                    operation=operation,
                    duration_ms=duration * 1000,
                    error=str(e),
                    **labels
                )
                raise
        return wrapper
    return decorator
