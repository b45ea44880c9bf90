# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

This module provides standardized metric names for all observability
in the seat booking library. All metric names use the `seat_booking_`
prefix for Prometheus compatibility.

Naming Conventions:
    - Counter metrics end with `_total`
    - Histogram metrics for time end with `_seconds`

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `operation` - Engine operation (enum: book, pay, cancel, extend, lookup)
    - `reason` - Failure kind (enum: seat_unavailable, expired, ...)

    NEVER use:
    - `booking_id` - Unique per reservation (unbounded!)
    - `holder` - Unique per customer (unbounded!)
    - `seat` - Unique per seat and flight (unbounded over time!)

Usage:
    >>> from seat_booking.observability.constants import BOOKINGS_TOTAL
    >>> print(BOOKINGS_TOTAL)
    'seat_booking_bookings_total'
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "seat_booking"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Lifecycle Metrics (engine.py)
# =============================================================================

BOOKINGS_TOTAL = f"{METRIC_PREFIX}_bookings_total"
"""Total holds placed successfully."""

PAYMENTS_TOTAL = f"{METRIC_PREFIX}_payments_total"
"""Total reservations moved to PAID."""

CANCELLATIONS_TOTAL = f"{METRIC_PREFIX}_cancellations_total"
"""Total reservations moved to CANCELLED."""

EXTENSIONS_TOTAL = f"{METRIC_PREFIX}_extensions_total"
"""Total successful hold extensions."""

HOLDS_EXPIRED_TOTAL = f"{METRIC_PREFIX}_holds_expired_total"
"""Total stale holds rewritten to EXPIRED on access."""


# =============================================================================
# Contention and Failure Metrics
# =============================================================================

OPERATIONS_REJECTED_TOTAL = f"{METRIC_PREFIX}_operations_rejected_total"
"""Total operations that failed with a classified booking error."""

CAS_CONFLICTS_TOTAL = f"{METRIC_PREFIX}_cas_conflicts_total"
"""Total compare-and-set transitions lost to a concurrent writer."""

ID_COLLISIONS_TOTAL = f"{METRIC_PREFIX}_id_collisions_total"
"""Total generated booking ids rejected by the store as duplicates."""


# =============================================================================
# Latency Metrics
# =============================================================================

OPERATION_LATENCY_SECONDS = f"{METRIC_PREFIX}_operation_latency_seconds"
"""Latency of engine operations, including store round trips (histogram)."""


# =============================================================================
# Histogram Buckets
# =============================================================================

LATENCY_BUCKETS: list[float] = [
    0.0005,
    0.001,
    0.0025,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
]
"""Buckets for operation latency histograms (seconds)."""


__all__ = [
    "BOOKINGS_TOTAL",
    "CANCELLATIONS_TOTAL",
    "CAS_CONFLICTS_TOTAL",
    "EXTENSIONS_TOTAL",
    "HOLDS_EXPIRED_TOTAL",
    "ID_COLLISIONS_TOTAL",
    "LATENCY_BUCKETS",
    "METRIC_PREFIX",
    "OPERATIONS_REJECTED_TOTAL",
    "OPERATION_LATENCY_SECONDS",
    "PAYMENTS_TOTAL",
]
