"""Prometheus metrics for the session store."""

from prometheus_client import Counter, Histogram, start_http_server

from scrum_poker.config.models.observability import MetricsConfig

STORE_OPERATIONS = Counter(
    "scrum_poker_store_operations_total",
    "Session store operations by outcome",
    labelnames=["operation", "outcome"],
)

STORE_LATENCY = Histogram(
    "scrum_poker_store_operation_latency_seconds",
    "Session store operation latency in seconds",
    labelnames=["operation"],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5),
)

SESSIONS_CREATED = Counter(
    "scrum_poker_sessions_created_total",
    "Sessions successfully created",
)

SESSIONS_CLOSED = Counter(
    "scrum_poker_sessions_closed_total",
    "Sessions that left the ACTIVE state",
    labelnames=["status"],
)

VOTES_CAST = Counter(
    "scrum_poker_votes_cast_total",
    "Votes committed (including re-votes)",
)

DEDUP_HITS = Counter(
    "scrum_poker_dedup_hits_total",
    "Inbound requests recognised as duplicates",
)

TRANSIENT_RETRIES = Counter(
    "scrum_poker_transient_retries_total",
    "Retries performed after transient store errors",
    labelnames=["operation"],
)


def start_metrics_server(config: MetricsConfig) -> bool:
    """Expose the default registry over HTTP when metrics are enabled.

    Returns:
        True if the exporter was started
    """
    if not config.enabled:
        return False
    start_http_server(config.port)
    return True
