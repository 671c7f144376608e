"""Prometheus metrics for memlane.

Request tracking, ingest and search volumes, identity writes, review
transitions and storage failures.
"""

from prometheus_client import Counter, Histogram

# Request metrics
REQUEST_COUNT = Counter(
    "memlane_request_count_total",
    "Total number of requests processed",
    labelnames=["endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "memlane_request_latency_seconds",
    "Request latency in seconds",
    labelnames=["endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Memory metrics
MEMORY_CHUNKS_STORED = Counter(
    "memlane_memory_chunks_stored_total",
    "Total number of memory chunks stored",
    labelnames=["source"],
)

MEMORY_INDEX_FAILURES = Counter(
    "memlane_memory_index_failures_total",
    "Chunks stored whose tokens could not be indexed",
)

SEARCH_CANDIDATES = Histogram(
    "memlane_search_candidates",
    "Number of candidate chunks scored per search",
    buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250, 500, 1000),
)

# Identity metrics
IDENTITY_WRITES = Counter(
    "memlane_identity_writes_total",
    "Identity set attempts by outcome",
    labelnames=["outcome"],
)

IDENTITY_CONFLICTS = Counter(
    "memlane_identity_version_conflicts_total",
    "Compare-and-swap misses on identity versions",
)

# Review metrics
REVIEWS_CREATED = Counter(
    "memlane_reviews_created_total",
    "Total number of review items created",
)

REVIEW_TRANSITIONS = Counter(
    "memlane_review_transitions_total",
    "Review status transitions",
    labelnames=["status"],
)

# Storage metrics
STORAGE_ERRORS = Counter(
    "memlane_storage_errors_total",
    "Backend I/O failures",
    labelnames=["backend", "operation"],
)
