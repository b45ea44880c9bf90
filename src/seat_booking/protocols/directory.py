# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for seat existence checks."""

from typing import Protocol, runtime_checkable

from ..types.seat import Flight, SeatLocation


@runtime_checkable
class SeatDirectoryProtocol(Protocol):
    """
    Protocol for flight master data lookups.

    The engine only needs to know whether a seat exists and may be booked;
    anything richer (schedules, fares) stays with the caller.
    """

    def exists(self, seat: SeatLocation) -> bool:
        """
        Check whether a seat exists and is bookable.

        Args:
            seat: The seat location to validate

        Returns:
            True if the flight is known and the seat is bookable on it
        """
        ...

    def get_flight(self, flight_id: str) -> Flight | None:
        """Return the flight layout, or None if the flight is unknown."""
        ...
