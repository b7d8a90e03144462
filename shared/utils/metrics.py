"""Prometheus metrics helpers."""

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

DEFAULT_LATENCY_BUCKETS: tuple[float, ...] = (
    0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0,
)


def create_counter(
    name: str,
    description: str,
    labels: list[str] | None = None,
) -> Counter:
    """Create a Prometheus counter metric.

    Args:
        name: Metric name (e.g., 'ledger_operations_total')
        description: Human-readable description
        labels: List of label names for the metric
    """
    return Counter(name, description, labels or [])


def create_histogram(
    name: str,
    description: str,
    labels: list[str] | None = None,
    buckets: tuple[float, ...] | None = None,
) -> Histogram:
    """Create a Prometheus histogram metric.

    Args:
        name: Metric name (e.g., 'ledger_operation_duration_seconds')
        description: Human-readable description
        labels: List of label names for the metric
        buckets: Custom bucket boundaries (ledger operations are sub-millisecond)
    """
    return Histogram(name, description, labels or [], buckets=buckets or DEFAULT_LATENCY_BUCKETS)


def render_metrics() -> tuple[bytes, str]:
    """Render the default registry in the Prometheus exposition format.

    Returns:
        Tuple of (payload, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
