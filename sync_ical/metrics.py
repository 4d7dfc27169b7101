"""
Prometheus metrics for monitoring feed fetches, reconciliation and batches.

This module defines all Prometheus metrics used throughout the application for
observability and monitoring. Metrics are exposed via the /metrics endpoint for
scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., total feed fetches)
    - Histogram: Observations bucketed by value (e.g., fetch latency)
    - Gauge: Point-in-time value that can go up or down (e.g., syncable connections)

Example:
    >>> from sync_ical.metrics import feed_fetch_duration, feed_fetch_total
    >>> with feed_fetch_duration.labels(channel="airbnb").time():
    ...     events = fetch_and_parse(url)
    ...     feed_fetch_total.labels(channel="airbnb", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Feed Metrics
# =============================================================================

feed_fetch_total = Counter(
    "ical_feed_fetches_total",
    "Total number of feed fetch-and-parse operations (success and failure)",
    ["channel", "status"],
)
"""
Counter for feed fetch-and-parse operations.

Labels:
    channel: Channel type (airbnb, vrbo, booking, direct, other)
    status: success or failure
"""

feed_fetch_duration = Histogram(
    "ical_feed_fetch_duration_seconds",
    "Duration of feed fetch-and-parse operations in seconds",
    ["channel"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
)

feed_http_requests = Counter(
    "ical_feed_http_requests_total",
    "Total HTTP requests made to channel feed servers",
    ["status_code"],
)
"""
Counter for HTTP requests to feed servers.

Labels:
    status_code: HTTP status code, or "error" for transport failures
"""

feed_http_latency = Histogram(
    "ical_feed_http_latency_seconds",
    "Feed server HTTP request latency in seconds",
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)

# =============================================================================
# Reconciliation Metrics
# =============================================================================

reservations_synced = Counter(
    "ical_reservations_synced_total",
    "Total reservations written by reconciliation",
    ["channel", "action"],
)
"""
Counter for reservation writes.

Labels:
    channel: Channel type
    action: created or updated
"""

sync_runs = Counter(
    "ical_sync_runs_total",
    "Total reconciliation runs per channel",
    ["channel", "status"],
)

# =============================================================================
# Batch Metrics
# =============================================================================

sync_batches = Counter(
    "ical_sync_batches_total",
    "Total scheduler batches",
    ["status"],
)
"""
Counter for scheduler batches.

Labels:
    status: completed, skipped when a batch was already in flight, or failed
        when the connections could not be listed
"""

sync_batch_duration = Histogram(
    "ical_sync_batch_duration_seconds",
    "Duration of a full batch across all connections in seconds",
    buckets=(1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0, float("inf")),
)

syncable_connections = Gauge(
    "ical_syncable_connections",
    "Number of channel connections with a feed URL at the last batch",
)

conflicts_detected = Gauge(
    "ical_conflicts_detected",
    "Number of overlapping event pairs found by the last conflicts query",
)
