"""Prometheus metrics for committee decisions, payment schedules and ERP API health"""

from prometheus_client import Counter, Histogram

# Decision metrics
decision_counter = Counter(
    "zakat_committee_decision_total",
    "Committee decisions forwarded to the ERP",
    ["outcome", "mode"],  # approved | rejected ; one_time | recurring | none
)

validation_failure_counter = Counter(
    "zakat_validation_failures_total",
    "Submissions blocked by validation",
    ["kind"],
)

# Schedule metrics
schedule_size_histogram = Histogram(
    "zakat_payment_schedule_size",
    "Payments generated per recurring schedule",
    buckets=[1, 3, 6, 12, 24, 36, 60, 120, 240],
)

# ERP API metrics
erp_request_failures_counter = Counter(
    "erp_request_failures_total",
    "Failed ERP API calls",
    ["reason"],  # timeout | unavailable | http_status | invalid_response
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(decision: str, is_recurring: bool, has_timeline: bool) -> None:
    """Record decision metrics for monitoring approval rates and payment modes"""
    if decision != "approved":
        mode = "none"
    elif is_recurring:
        mode = "recurring"
    else:
        mode = "one_time" if has_timeline else "lump_sum"

    decision_counter.labels(outcome=decision, mode=mode).inc()


def record_validation_failure(error: Exception) -> None:
    validation_failure_counter.labels(kind=type(error).__name__).inc()
