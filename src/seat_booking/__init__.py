# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Seat Booking - Concurrency-safe flight seat reservations.

This library manages the lifecycle of a seat hold: a customer places a
time-limited hold on a seat, which is confirmed by payment, cancelled, or
extended, or else lapses.

Key Features:
    - Exactly one live reservation per seat, even under concurrent booking
    - Lazy expiry of stale holds, with no background sweeper
    - Compare-and-set transitions with race losers classified by state
    - Multiple store options (memory, Redis with atomic Lua scripts)
    - Typed failures with a FailureKind for presentation layers

Quick Start:
    >>> from decimal import Decimal
    >>> from seat_booking import (
    ...     Flight, InMemorySeatDirectory, MemoryBookingStore,
    ...     ReservationEngine, SeatLocation,
    ... )
    >>>
    >>> directory = InMemorySeatDirectory([Flight("LH100", rows=30)])
    >>> engine = ReservationEngine(MemoryBookingStore(), directory)
    >>> ticket = await engine.book(SeatLocation("LH100", 12, "C"), "alice", Decimal("199"))
    >>> await engine.accept_payment(ticket.booking_id, Decimal("199"))

Main Exports:
    - ReservationEngine: The reservation state machine
    - MemoryBookingStore, RedisBookingStore: Booking stores
    - BookingConfig: Configuration options
    - Flight, SeatLocation, Reservation, ReservationState: Data model
    - Operation, success_status, failure_status: HTTP status mapping

Note: RedisBookingStore requires the 'redis' extra. Install with:
    pip install flight-seat-booking[redis]

Version: 1.0.0
"""

__version__ = "1.0.0"

from typing import TYPE_CHECKING

from .backends import (
    BaseBookingStore,
    HealthCheckResult,
    InsertStatus,
    MemoryBookingStore,
)
from .config import BookingConfig
from .directory import InMemorySeatDirectory
from .engine import ReservationEngine, utc_now
from .exceptions import (
    AmountMismatchError,
    BookingError,
    ConfigurationError,
    ExtensionLimitError,
    FailureKind,
    HoldExpiredError,
    IdGenerationError,
    InvalidPriceError,
    InvalidStateError,
    ReservationNotFoundError,
    SeatUnavailableError,
    StoreConnectionError,
    StoreOperationError,
    UnknownSeatError,
)
from .identifiers import BookingIdGenerator
from .policy import ExpiryPolicy
from .protocols import BookingIdGeneratorProtocol, SeatDirectoryProtocol
from .status import Operation, failure_status, success_status
from .types import Flight, Reservation, ReservationState, SeatLocation

if TYPE_CHECKING:
    from .backends.redis import RedisBookingStore

__all__ = [
    "AmountMismatchError",
    # Stores
    "BaseBookingStore",
    # Config
    "BookingConfig",
    # Exceptions
    "BookingError",
    # Identifiers
    "BookingIdGenerator",
    # Protocols
    "BookingIdGeneratorProtocol",
    "ConfigurationError",
    # Policy
    "ExpiryPolicy",
    "ExtensionLimitError",
    "FailureKind",
    # Types
    "Flight",
    "HealthCheckResult",
    "HoldExpiredError",
    "IdGenerationError",
    "InvalidPriceError",
    # Directory
    "InMemorySeatDirectory",
    "InsertStatus",
    "InvalidStateError",
    "MemoryBookingStore",
    # Status mapping
    "Operation",
    "RedisBookingStore",
    "Reservation",
    # Engine
    "ReservationEngine",
    "ReservationNotFoundError",
    "ReservationState",
    "SeatDirectoryProtocol",
    "SeatLocation",
    "SeatUnavailableError",
    "StoreConnectionError",
    "StoreOperationError",
    "UnknownSeatError",
    "__version__",
    "failure_status",
    "success_status",
    "utc_now",
]


def __getattr__(name: str) -> type:
    """Lazy import for optional redis store."""
    if name == "RedisBookingStore":
        from .backends import RedisBookingStore

        return RedisBookingStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
