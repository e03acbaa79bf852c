"""Prometheus metrics for ledger mutations, credit activity and notification delivery"""

from decimal import Decimal

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_mutation_counter = Counter(
    "ledger_mutation_total",
    "Committed balance mutations",
    ["type"],  # deposit | withdrawal
)

ledger_amount_histogram = Histogram(
    "ledger_mutation_amount",
    "Amount moved per committed mutation",
    ["type"],
    buckets=[100, 1_000, 10_000, 100_000, 1_000_000],
)

ledger_failure_counter = Counter(
    "ledger_mutation_failures_total",
    "Ledger commits rolled back by the storage layer",
)

reference_collision_counter = Counter(
    "reference_collisions_total",
    "Generated reference numbers that were already taken",
    ["table"],  # transactions | repayments
)

# Credit metrics
credit_request_counter = Counter(
    "credit_request_total",
    "Credit request lifecycle events",
    ["status"],  # pending | approved | rejected
)

credit_repayment_counter = Counter(
    "credit_repayment_total",
    "Recorded credit repayments",
)

# Notification metrics
notification_failure_counter = Counter(
    "notification_failures_total",
    "Notifications that could not be queued or delivered",
)

webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_mutation(transaction_type: str, amount: Decimal) -> None:
    """Record a committed deposit or withdrawal"""
    ledger_mutation_counter.labels(type=transaction_type).inc()
    ledger_amount_histogram.labels(type=transaction_type).observe(float(amount))
