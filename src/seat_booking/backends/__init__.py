# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking store implementations.

This module provides the abstract base class and concrete implementations
for reservation storage.

Available stores:
- BaseBookingStore: Abstract base class defining the store interface
- MemoryBookingStore: In-memory store for single-process deployments
- RedisBookingStore: Redis-based store for distributed deployments (requires redis extra)

Supporting types:
- HealthCheckResult: Structured result from store health checks
- InsertStatus: Outcome of an atomic insert

Note: RedisBookingStore is lazily imported to avoid requiring the redis
package when only using MemoryBookingStore.
"""

from typing import TYPE_CHECKING, cast

from seat_booking.backends.base import (
    BaseBookingStore,
    HealthCheckResult,
    InsertStatus,
)
from seat_booking.backends.memory import MemoryBookingStore

# Lazy imports for optional redis store
if TYPE_CHECKING:
    from seat_booking.backends.redis import RedisBookingStore

__all__ = [
    # Base classes
    "BaseBookingStore",
    "HealthCheckResult",
    "InsertStatus",
    # Memory store
    "MemoryBookingStore",
    # Redis store (lazy loaded)
    "RedisBookingStore",
]


def __getattr__(name: str) -> type:
    """Lazy import for the optional redis store."""
    if name == "RedisBookingStore":
        try:
            from seat_booking.backends import redis as redis_module

            return cast(type, getattr(redis_module, name))
        except ImportError as e:  # pragma: no cover
            raise ImportError(  # pragma: no cover
                f"'{name}' requires the 'redis' extra. "
                "Install with: pip install flight-seat-booking[redis]"
            ) from e
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
