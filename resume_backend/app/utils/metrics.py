"""Prometheus metrics for composition operations."""

from prometheus_client import Counter, Histogram

composition_latency_ms = Histogram(
    "composition_latency_ms",
    "Composition operation latency in milliseconds",
    ["operation", "outcome"],
    buckets=[1, 5, 10, 25, 50, 100, 250, 500, 1000, 2500],
)

composition_operations_total = Counter(
    "composition_operations_total",
    "Total composition operations",
    ["operation", "outcome"],
)

snippet_relationships_migrated_total = Counter(
    "snippet_relationships_migrated_total",
    "Relationship rows repointed to a new text snippet version",
)


class PrometheusCompositionMetrics:
    """Prometheus-based composition metrics implementation."""

    def record(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record one finished operation."""
        composition_operations_total.labels(operation=operation, outcome=outcome).inc()
        composition_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_migrated(self, count: int) -> None:
        """Count relationship rows moved to a new snippet version."""
        if count:
            snippet_relationships_migrated_total.inc(count)
