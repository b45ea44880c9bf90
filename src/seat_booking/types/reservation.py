# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation model and lifecycle states.

Reservations are immutable snapshots. Every transition produces a new
instance through :meth:`Reservation.transitioned`; the booking store holds
the authoritative copy.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .seat import SeatLocation


class ReservationState(Enum):
    """Lifecycle states of a reservation.

    PENDING is the only non-terminal state. PENDING and PAID reservations
    occupy their seat ("live"); CANCELLED and EXPIRED ones are history.
    """

    PENDING = "PENDING"
    PAID = "PAID"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self is not ReservationState.PENDING

    @property
    def is_live_state(self) -> bool:
        """Whether a record in this state blocks new bookings for its seat.

        A PENDING record whose deadline passed still occupies the seat until
        it is rewritten to EXPIRED.
        """
        return self in (ReservationState.PENDING, ReservationState.PAID)


# Allowed edges of the reservation state machine
ALLOWED_TRANSITIONS: dict[ReservationState, frozenset[ReservationState]] = {
    ReservationState.PENDING: frozenset(
        {
            ReservationState.PENDING,
            ReservationState.PAID,
            ReservationState.CANCELLED,
            ReservationState.EXPIRED,
        }
    ),
    ReservationState.PAID: frozenset(),
    ReservationState.CANCELLED: frozenset(),
    ReservationState.EXPIRED: frozenset(),
}


def can_transition(current: ReservationState, target: ReservationState) -> bool:
    """Check whether ``current -> target`` is an edge of the state machine."""
    return target in ALLOWED_TRANSITIONS[current]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Reservation(BaseModel):
    """
    A time-limited hold on a seat (the "ticket").

    Attributes:
        booking_id: Globally unique opaque identifier, immutable
        seat: The held seat
        holder: Customer identity supplied at booking time
        price: Amount the holder is expected to pay
        state: Current lifecycle state
        created_at: UTC time the hold was placed
        expires_at: UTC deadline of the hold; set only while PENDING
        updated_at: UTC time of the last transition
        extension_count: Number of successful timeout extensions
    """

    model_config = ConfigDict(frozen=True)

    booking_id: str = Field(min_length=1)
    seat: SeatLocation
    holder: str
    price: Decimal
    state: ReservationState = ReservationState.PENDING
    created_at: datetime = Field(default_factory=_utcnow)
    expires_at: datetime | None = None
    updated_at: datetime = Field(default_factory=_utcnow)
    extension_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _validate_deadline(self) -> "Reservation":
        """expires_at must be present exactly while the hold is PENDING."""
        if self.state is ReservationState.PENDING and self.expires_at is None:
            raise ValueError("a PENDING reservation requires expires_at")
        if self.state is not ReservationState.PENDING and self.expires_at is not None:
            raise ValueError(f"expires_at must be unset in state {self.state.value}")
        return self

    @property
    def is_pending(self) -> bool:
        return self.state is ReservationState.PENDING

    def transitioned(
        self,
        state: ReservationState,
        *,
        at: datetime,
        expires_at: datetime | None = None,
        extension_count: int | None = None,
    ) -> "Reservation":
        """
        Return a copy moved to ``state``.

        Args:
            state: Target state; must be an allowed edge from the current state
            at: Time of the transition (becomes updated_at)
            expires_at: New deadline; required when staying PENDING, ignored otherwise
            extension_count: Replacement extension counter, if changing

        Raises:
            ValueError: If the edge is not part of the state machine
        """
        if not can_transition(self.state, state):
            raise ValueError(
                f"Illegal reservation transition: {self.state.value} -> {state.value}"
            )
        return Reservation(
            booking_id=self.booking_id,
            seat=self.seat,
            holder=self.holder,
            price=self.price,
            state=state,
            created_at=self.created_at,
            expires_at=expires_at if state is ReservationState.PENDING else None,
            updated_at=at,
            extension_count=(
                self.extension_count if extension_count is None else extension_count
            ),
        )


__all__ = [
    "ALLOWED_TRANSITIONS",
    "Reservation",
    "ReservationState",
    "can_transition",
]
