# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability and metrics for the seat booking engine.

Classes:
    MetricsCollector: Metrics collector with a dict snapshot and Prometheus export.

Protocols:
    MetricsCollectorProtocol: Protocol for metrics collection backends.

Functions:
    get_metrics_collector: Get the global metrics collector singleton.
    reset_metrics_collector: Reset the global metrics collector singleton.

Constants:
    All metric name constants from constants module.
"""

from .collector import (
    METRIC_DEFINITIONS,
    MetricDefinition,
    MetricsCollector,
    get_metrics_collector,
    reset_metrics_collector,
)
from .constants import (
    BOOKINGS_TOTAL,
    CANCELLATIONS_TOTAL,
    CAS_CONFLICTS_TOTAL,
    EXTENSIONS_TOTAL,
    HOLDS_EXPIRED_TOTAL,
    ID_COLLISIONS_TOTAL,
    LATENCY_BUCKETS,
    METRIC_PREFIX,
    OPERATION_LATENCY_SECONDS,
    OPERATIONS_REJECTED_TOTAL,
    PAYMENTS_TOTAL,
)
from .protocols import MetricsCollectorProtocol

__all__ = [
    # Lifecycle
    "BOOKINGS_TOTAL",
    "CANCELLATIONS_TOTAL",
    # Contention
    "CAS_CONFLICTS_TOTAL",
    "EXTENSIONS_TOTAL",
    "HOLDS_EXPIRED_TOTAL",
    "ID_COLLISIONS_TOTAL",
    # Buckets
    "LATENCY_BUCKETS",
    # Collector
    "METRIC_DEFINITIONS",
    # Prefix
    "METRIC_PREFIX",
    "OPERATIONS_REJECTED_TOTAL",
    "OPERATION_LATENCY_SECONDS",
    "PAYMENTS_TOTAL",
    "MetricDefinition",
    "MetricsCollector",
    # Protocols
    "MetricsCollectorProtocol",
    "get_metrics_collector",
    "reset_metrics_collector",
]
