"""Prometheus metrics for transaction outcomes, fee previews and backend health"""

from prometheus_client import Counter, Histogram

# Transaction metrics
transaction_outcome_counter = Counter(
    "teller_transaction_total",
    "Finished transaction flows",
    ["kind", "outcome"],  # outcome: Success | Failure | Cancelled
)

commit_latency_histogram = Histogram(
    "teller_commit_latency_seconds",
    "Money-movement commit call response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Fee preview metrics
fee_preview_degraded_counter = Counter(
    "teller_fee_preview_degraded_total",
    "Fee previews that fell back to a zero fee",
    ["error_kind"],
)

# Bank API metrics
bank_call_failures_counter = Counter(
    "teller_bank_call_failures_total",
    "Failed banking backend calls",
    ["error_kind"],
)

# Front end health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(kind: str, outcome: str) -> None:
    """Record a finished flow for monitoring success and cancellation rates"""
    transaction_outcome_counter.labels(kind=kind, outcome=outcome).inc()
