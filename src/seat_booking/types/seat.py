# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Flight and seat location types.

A SeatLocation identifies a physical seat on a flight. It carries no
reservation state; reservations reference it.
"""

from dataclasses import dataclass, field

DEFAULT_SEATS_PER_ROW: tuple[str, ...] = ("A", "B", "C", "D", "E", "F")


@dataclass(frozen=True)
class SeatLocation:
    """
    A seat on a specific flight.

    Equality is structural, so two SeatLocation instances built from the
    same flight, row and seat code are interchangeable as dict keys.

    Attributes:
        flight_id: Opaque flight identifier
        row: Row number (1-based)
        seat_code: Seat letter within the row (e.g. "A")
    """

    flight_id: str
    row: int
    seat_code: str

    @property
    def key(self) -> str:
        """Stable string form used for store keys."""
        return f"{self.flight_id}:{self.row}:{self.seat_code}"

    @classmethod
    def from_key(cls, key: str) -> "SeatLocation":
        """Parse a key produced by :attr:`key`."""
        flight_id, row, seat_code = key.rsplit(":", 2)
        return cls(flight_id=flight_id, row=int(row), seat_code=seat_code)

    def __str__(self) -> str:
        return f"{self.flight_id}/{self.row}{self.seat_code}"


@dataclass(frozen=True)
class Flight:
    """
    Seat layout metadata for one scheduled flight.

    Only enough information to validate seat existence is kept here; schedule
    and pricing data belong to the caller.

    Attributes:
        flight_id: Opaque flight identifier
        rows: Number of rows, numbered 1..rows
        seats_per_row: Seat codes available in every row
        blocked_seats: (row, seat_code) pairs that exist but cannot be booked
    """

    flight_id: str
    rows: int
    seats_per_row: tuple[str, ...] = DEFAULT_SEATS_PER_ROW
    blocked_seats: frozenset[tuple[int, str]] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if self.rows < 1:
            raise ValueError("rows must be at least 1")
        if not self.seats_per_row:
            raise ValueError("seats_per_row must not be empty")

    def has_seat(self, row: int, seat_code: str) -> bool:
        """Whether the seat exists on this flight."""
        return 1 <= row <= self.rows and seat_code in self.seats_per_row

    def is_bookable(self, row: int, seat_code: str) -> bool:
        """Whether the seat exists and is not blocked."""
        return (
            self.has_seat(row, seat_code)
            and (row, seat_code) not in self.blocked_seats
        )

    def seat(self, row: int, seat_code: str) -> SeatLocation:
        """Build a SeatLocation on this flight."""
        return SeatLocation(flight_id=self.flight_id, row=row, seat_code=seat_code)

    @property
    def capacity(self) -> int:
        """Number of bookable seats."""
        return self.rows * len(self.seats_per_row) - len(
            [
                pair
                for pair in self.blocked_seats
                if self.has_seat(pair[0], pair[1])
            ]
        )


__all__ = ["DEFAULT_SEATS_PER_ROW", "Flight", "SeatLocation"]
