"""Prometheus metrics for schedule generation, bracket matching and ledger calls"""

from prometheus_client import Counter, Histogram

# Schedule metrics
schedule_generated_counter = Counter(
    "billing_schedule_generated_total",
    "Installment schedules generated",
    ["periodicity", "split"],  # split: equal | increasing
)

schedule_saved_counter = Counter(
    "billing_schedule_saved_total",
    "Schedule save attempts handed to the ledger",
    ["outcome"],  # saved | failed
)

# Bracket metrics
bracket_match_counter = Counter(
    "billing_bracket_match_total",
    "Bracket auto-select attempts",
    ["outcome"],  # matched | miss
)

# Ledger metrics
ledger_latency_histogram = Histogram(
    "ledger_latency_seconds",
    "Ledger service response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

ledger_failure_counter = Counter(
    "ledger_failures_total",
    "Failed ledger calls",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_schedule_generated(periodicity: str, equal_split: bool) -> None:
    split = "equal" if equal_split else "increasing"
    schedule_generated_counter.labels(periodicity=periodicity, split=split).inc()


def record_schedule_saved(success: bool) -> None:
    schedule_saved_counter.labels(outcome="saved" if success else "failed").inc()


def record_bracket_match(matched: bool) -> None:
    bracket_match_counter.labels(outcome="matched" if matched else "miss").inc()
