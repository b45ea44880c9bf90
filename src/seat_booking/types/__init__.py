# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Type definitions for flights, seats and reservations."""

from .reservation import (
    ALLOWED_TRANSITIONS,
    Reservation,
    ReservationState,
    can_transition,
)
from .seat import DEFAULT_SEATS_PER_ROW, Flight, SeatLocation

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DEFAULT_SEATS_PER_ROW",
    # Seats
    "Flight",
    # Reservations
    "Reservation",
    "ReservationState",
    "SeatLocation",
    "can_transition",
]
