"""
Prometheus metrics for the data stream output.
Metrics live in the global REGISTRY; import this module at app startup to expose them.
"""

from prometheus_client import Counter, Histogram

BULK_REQUESTS_TOTAL = Counter(
    "es_datastream_bulk_requests_total",
    "Bulk requests issued against a data stream",
    ["data_stream", "outcome"],
)

BULK_RECORDS_TOTAL = Counter(
    "es_datastream_bulk_records_total",
    "Records seen by the bulk builder",
    ["data_stream", "status"],
)

BULK_WRITE_LATENCY = Histogram(
    "es_datastream_bulk_write_latency_seconds",
    "Bulk request latency in seconds",
    ["data_stream"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1, 2.5, 5, 10, 30],
)

PROVISION_TOTAL = Counter(
    "es_datastream_provision_total",
    "Provisioning calls by resource",
    ["data_stream", "resource", "outcome"],
)


def record_build(data_stream: str, written: int = 0, skipped: int = 0, dropped: int = 0) -> None:
    for status, n in (("written", written), ("skipped", skipped), ("dropped", dropped)):
        if n:
            metrics_registry.bulk_records_total.labels(data_stream=data_stream, status=status).inc(n)


class MetricsRegistry:
    """Centralized access to the output's metrics."""

    bulk_requests_total = BULK_REQUESTS_TOTAL
    bulk_records_total = BULK_RECORDS_TOTAL
    bulk_write_latency = BULK_WRITE_LATENCY
    provision_total = PROVISION_TOTAL


# Singleton instance
metrics_registry = MetricsRegistry()
