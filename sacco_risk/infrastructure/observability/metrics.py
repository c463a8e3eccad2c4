"""Prometheus metrics for monitoring risk classification, repayments and store health"""

from prometheus_client import Counter, Histogram

# Scoring metrics
risk_score_counter = Counter(
    "sacco_risk_scores_total",
    "Total risk scores calculated",
    ["category"],  # low | medium | high | very_high
)

risk_score_histogram = Histogram(
    "sacco_risk_score_value",
    "Distribution of composite risk scores",
    buckets=[20, 40, 60, 75, 90, 100],
)

# Ledger metrics
repayment_counter = Counter(
    "sacco_repayments_total",
    "Repayments applied to loans",
    ["payment_method"],
)

repayment_amount_histogram = Histogram(
    "sacco_repayment_amount",
    "Repayment amounts",
    buckets=[100, 500, 1_000, 5_000, 10_000, 50_000, 100_000],
)

loans_closed_counter = Counter(
    "sacco_loans_closed_total",
    "Loans closed by a repayment",
)

ledger_conflict_counter = Counter(
    "sacco_ledger_conflicts_total",
    "Repayments rejected because the loan changed concurrently",
)

# Record store health
store_failures_counter = Counter(
    "sacco_store_failures_total",
    "Failed record store operations",
    ["action"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_risk_score(score: float, category: str) -> None:
    """Record scoring metrics for monitoring the portfolio's risk mix"""
    risk_score_counter.labels(category=category).inc()
    risk_score_histogram.observe(score)


def record_repayment(amount: float, payment_method: str, closed: bool) -> None:
    """Record a successful repayment"""
    repayment_counter.labels(payment_method=payment_method).inc()
    repayment_amount_histogram.observe(amount)
    if closed:
        loans_closed_counter.inc()
