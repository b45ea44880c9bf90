# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the seat booking engine.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from BookingError, making it easy to catch every
booking-related failure with a single except clause.

Every exception carries a FailureKind. Presentation layers should branch on
``error.kind`` (see ``seat_booking.status``) rather than on message text.
"""

from enum import Enum
from typing import ClassVar


class FailureKind(Enum):
    """Classification of booking failures.

    All kinds except ID_GENERATION, CONFIGURATION and STORE describe
    conditions the caller can correct (pick another seat, pay the right
    amount, book again). The remaining kinds indicate a server-side fault.
    """

    UNKNOWN_SEAT = "unknown_seat"
    SEAT_UNAVAILABLE = "seat_unavailable"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    AMOUNT_MISMATCH = "amount_mismatch"
    INVALID_PRICE = "invalid_price"
    INVALID_STATE = "invalid_state"
    ID_GENERATION = "id_generation"
    CONFIGURATION = "configuration"
    STORE = "store"

    @property
    def is_client_correctable(self) -> bool:
        """Whether the caller can fix the condition and retry."""
        return self not in (
            FailureKind.ID_GENERATION,
            FailureKind.CONFIGURATION,
            FailureKind.STORE,
        )


class BookingError(Exception):
    """Base exception for all seat booking errors.

    Catch this exception to handle any error originating from the library.

    Example:
        try:
            ticket = await engine.book(seat, "user-1", Decimal("100"))
        except BookingError as e:
            logger.error(f"Booking failed ({e.kind.value}): {e}")
    """

    kind: ClassVar[FailureKind] = FailureKind.STORE


class UnknownSeatError(BookingError):
    """Raised when a flight/row/seat combination does not exist or is not bookable.

    Attributes:
        seat: The seat location that failed validation.
    """

    kind = FailureKind.UNKNOWN_SEAT

    def __init__(self, seat: object, message: str | None = None):
        super().__init__(message or f"Unknown or unbookable seat: {seat}")
        self.seat = seat


class SeatUnavailableError(BookingError):
    """Raised when a live reservation already occupies the requested seat.

    Attributes:
        seat: The contested seat location.
        occupied_by: Booking id of the live reservation, when known.
    """

    kind = FailureKind.SEAT_UNAVAILABLE

    def __init__(self, seat: object, occupied_by: str | None = None):
        super().__init__(f"Seat {seat} is already held")
        self.seat = seat
        self.occupied_by = occupied_by


class ReservationNotFoundError(BookingError):
    """Raised when no reservation matches a booking id or seat.

    Attributes:
        identifier: The booking id or seat that was looked up.
    """

    kind = FailureKind.NOT_FOUND

    def __init__(self, identifier: object):
        super().__init__(f"No reservation found for {identifier}")
        self.identifier = identifier


class HoldExpiredError(BookingError):
    """Raised when a pending hold has passed its deadline.

    The reservation has already been rewritten to EXPIRED when this is raised.

    Attributes:
        booking_id: The booking id of the lapsed hold.
    """

    kind = FailureKind.EXPIRED

    def __init__(self, booking_id: str):
        super().__init__(f"Hold {booking_id} has expired")
        self.booking_id = booking_id


class AmountMismatchError(BookingError):
    """Raised when the presented payment does not equal the reservation price.

    Attributes:
        booking_id: The reservation being paid.
        expected: The reservation price.
        presented: The amount the caller presented.
    """

    kind = FailureKind.AMOUNT_MISMATCH

    def __init__(self, booking_id: str, expected: object, presented: object):
        super().__init__(
            f"Payment of {presented} does not match price {expected} "
            f"for booking {booking_id}"
        )
        self.booking_id = booking_id
        self.expected = expected
        self.presented = presented


class InvalidPriceError(BookingError):
    """Raised when a booking price is not a finite decimal amount.

    Attributes:
        price: The value the caller offered as the price.
    """

    kind = FailureKind.INVALID_PRICE

    def __init__(self, price: object):
        super().__init__(f"Invalid booking price: {price!r}")
        self.price = price


class InvalidStateError(BookingError):
    """Raised when an operation is not valid for the reservation's current state.

    This is also what the loser of a race observes: if a payment and a
    cancellation arrive together, one wins and the other raises this error
    with the post-transition state.

    Attributes:
        booking_id: The reservation involved.
        state: The state that made the operation invalid.
        operation: Name of the rejected operation.
    """

    kind = FailureKind.INVALID_STATE

    def __init__(
        self,
        booking_id: str,
        state: object,
        operation: str,
        message: str | None = None,
    ):
        state_name = getattr(state, "value", state)
        super().__init__(
            message
            or f"Cannot {operation} booking {booking_id} in state {state_name}"
        )
        self.booking_id = booking_id
        self.state = state
        self.operation = operation


class ExtensionLimitError(InvalidStateError):
    """Raised when a hold has already been extended the maximum number of times.

    Attributes:
        max_extensions: The configured limit.
    """

    def __init__(self, booking_id: str, state: object, max_extensions: int):
        super().__init__(
            booking_id,
            state,
            "extend",
            message=(
                f"Booking {booking_id} has reached the limit of "
                f"{max_extensions} extensions"
            ),
        )
        self.max_extensions = max_extensions


class IdGenerationError(BookingError):
    """Raised when no unique booking id could be allocated.

    This is an internal invariant breach (id space collision), not a
    client-correctable conflict, and must surface as a server error.

    Attributes:
        attempts: Number of ids generated before giving up.
    """

    kind = FailureKind.ID_GENERATION

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not allocate a unique booking id after {attempts} attempts"
        )
        self.attempts = attempts


class ConfigurationError(BookingError):
    """Raised when configuration is invalid.

    Common causes include a negative hold window, a zero retry bound, or a
    booking id too short to be collision resistant.
    """

    kind = FailureKind.CONFIGURATION


class StoreConnectionError(BookingError):
    """Raised when connection to the booking store fails.

    Example:
        try:
            await store.health_check()
        except StoreConnectionError:
            logger.warning("Redis unavailable")
    """

    kind = FailureKind.STORE


class StoreOperationError(BookingError):
    """Raised when a booking store operation fails after connecting.

    This could be due to a script error, corrupted records, or
    backend-specific errors.
    """

    kind = FailureKind.STORE
