"""Prometheus metrics for Jobly."""

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------

jobly_db_query_latency_seconds = Histogram(
    "jobly_db_query_latency_seconds",
    "Database query latency in seconds",
    ["query_name"],
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

jobly_db_query_failures_total = Counter(
    "jobly_db_query_failures_total",
    "Total database query failures",
    ["query_name"],
)

# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------

jobly_applications_total = Counter(
    "jobly_applications_total",
    "Job application attempts",
    ["outcome"],  # created | duplicate | not_found
)
