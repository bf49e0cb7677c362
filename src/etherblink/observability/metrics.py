"""Prometheus metrics for EtherBlink.

Metrics:
- etherblink_links_created_total: Counter of generated links by action type and strategy
- etherblink_links_resolved_total: Counter of link resolutions by strategy and outcome
- etherblink_transactions_total: Counter of executed actions by type and final state
- etherblink_request_duration_seconds: Histogram of web request duration
- etherblink_transaction_duration_seconds: Histogram of submit-to-confirm duration
"""

from prometheus_client import Counter, Histogram

# Counters
LINKS_CREATED = Counter(
    "etherblink_links_created_total",
    "Total number of action links generated",
    ["action_type", "strategy"],
)

LINKS_RESOLVED = Counter(
    "etherblink_links_resolved_total",
    "Total number of action link resolutions",
    ["strategy", "status"],
)

TRANSACTIONS = Counter(
    "etherblink_transactions_total",
    "Total number of executed actions",
    ["action_type", "status"],
)

# Histograms
REQUEST_DURATION = Histogram(
    "etherblink_request_duration_seconds",
    "Web request processing duration",
    ["route"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

TRANSACTION_DURATION = Histogram(
    "etherblink_transaction_duration_seconds",
    "Duration from wallet submission to chain confirmation",
    ["action_type"],
    buckets=(1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)
