"""Observability module for EtherBlink."""

from .health import CheckResult, HealthCheck, HealthEndpoints, ReadinessReport
from .logging import clear_request_id, configure_logging, current_request_id, set_request_id
from .metrics import (
    LINKS_CREATED,
    LINKS_RESOLVED,
    REQUEST_DURATION,
    TRANSACTION_DURATION,
    TRANSACTIONS,
)

__all__ = [
    # Health
    "CheckResult",
    "HealthCheck",
    "HealthEndpoints",
    "ReadinessReport",
    # Logging
    "clear_request_id",
    "configure_logging",
    "current_request_id",
    "set_request_id",
    # Metrics
    "LINKS_CREATED",
    "LINKS_RESOLVED",
    "REQUEST_DURATION",
    "TRANSACTION_DURATION",
    "TRANSACTIONS",
]
