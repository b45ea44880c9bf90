# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
In-memory seat directory.

Holds flight layouts registered at startup. The directory is read-only
during request handling, so lookups take no lock.
"""

import logging
from collections.abc import Iterable

from .types.seat import Flight, SeatLocation

logger = logging.getLogger(__name__)


class InMemorySeatDirectory:
    """
    Seat directory backed by a dict of flight layouts.

    Implements :class:`~seat_booking.protocols.SeatDirectoryProtocol`.
    """

    def __init__(self, flights: Iterable[Flight] = ()) -> None:
        self._flights: dict[str, Flight] = {}
        for flight in flights:
            self.add_flight(flight)

    def add_flight(self, flight: Flight) -> None:
        """Register or replace a flight layout."""
        if flight.flight_id in self._flights:
            logger.info(f"Replacing layout for flight {flight.flight_id}")
        self._flights[flight.flight_id] = flight

    def get_flight(self, flight_id: str) -> Flight | None:
        return self._flights.get(flight_id)

    def exists(self, seat: SeatLocation) -> bool:
        flight = self._flights.get(seat.flight_id)
        if flight is None:
            return False
        return flight.is_bookable(seat.row, seat.seat_code)

    def __len__(self) -> int:
        return len(self._flights)

    def __contains__(self, flight_id: object) -> bool:
        return flight_id in self._flights


__all__ = ["InMemorySeatDirectory"]
