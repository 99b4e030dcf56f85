"""Prometheus metrics for monitoring settlements, fraud flags, cases and webhook performance"""

from prometheus_client import Counter, Histogram

# Transaction metrics
transaction_counter = Counter(
    "fraudshield_transactions_total",
    "Transaction attempts by outcome",
    ["outcome", "transfer_type"],  # approved | failed
)

flagged_transaction_counter = Counter(
    "fraudshield_flagged_transactions_total",
    "Settled transactions scored above the fraud threshold",
)

risk_score_histogram = Histogram(
    "fraudshield_risk_score",
    "Distribution of risk scores",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

settlement_rejection_counter = Counter(
    "fraudshield_settlement_rejections_total",
    "Settlements rejected by the ledger",
    ["reason"],  # insufficient_funds | invalid_recipient | self_transfer
)

ledger_conflict_counter = Counter(
    "fraudshield_ledger_conflicts_total",
    "Concurrent balance updates that forced a retry",
)

# Case metrics
case_transition_counter = Counter(
    "fraudshield_case_transitions_total",
    "Fraud case status changes",
    ["to_status"],
)

# Outbound metrics
notification_failure_counter = Counter(
    "notification_failures_total",
    "Failed notification relay deliveries",
)

webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Event webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed event webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transaction(transfer_type: str, risk_score: float, flagged: bool) -> None:
    """Record a settled transaction and where its score landed"""
    transaction_counter.labels(outcome="approved", transfer_type=transfer_type).inc()
    risk_score_histogram.observe(risk_score)
    if flagged:
        flagged_transaction_counter.inc()


def record_rejection(transfer_type: str, reason: str) -> None:
    transaction_counter.labels(outcome="failed", transfer_type=transfer_type).inc()
    settlement_rejection_counter.labels(reason=reason).inc()
