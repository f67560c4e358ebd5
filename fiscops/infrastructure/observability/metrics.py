"""Prometheus metrics for sync health, load fallbacks and HTTP latency"""

from prometheus_client import Counter, Histogram

from fiscops.domain.models import SyncResult

# Sync metrics
sync_counter = Counter(
    "fiscops_sync_total",
    "Persisted writes of the record store",
    ["backend", "outcome"],  # local | remote, ok | failed
)

sync_failed_chunks_counter = Counter(
    "fiscops_sync_failed_chunks_total",
    "Upsert chunks rejected by the data service",
)

# Load metrics
load_fallback_counter = Counter(
    "fiscops_load_fallback_total",
    "Loads that fell back to a synthetic dataset",
    ["reason"],  # seeded | remote_error
)

# Auth metrics
auth_failure_counter = Counter(
    "fiscops_auth_failures_total",
    "Rejected sign-in / sign-up attempts",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_sync(result: SyncResult) -> None:
    outcome = "ok" if result.ok else "failed"
    sync_counter.labels(backend=result.backend, outcome=outcome).inc()
    if result.failed_chunks:
        sync_failed_chunks_counter.inc(len(result.failed_chunks))
