# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Hold expiry policy.

Pure liveness decisions for reservations. The policy never mutates a
reservation; the engine rewrites stale holds to EXPIRED when it observes them.
"""

from datetime import datetime, timedelta

from ..types.reservation import Reservation, ReservationState


class ExpiryPolicy:
    """
    Decides whether a reservation still occupies its seat.

    A single hold window is shared by booking and extension. A zero window
    is allowed; every hold it produces is stale immediately.

    Example:
        policy = ExpiryPolicy(timedelta(minutes=10))
        if policy.is_stale(ticket, now):
            ...
    """

    def __init__(self, hold_window: timedelta):
        if hold_window < timedelta(0):
            raise ValueError("hold_window must not be negative")
        self.hold_window = hold_window

    def deadline(self, now: datetime) -> datetime:
        """Deadline for a hold placed or extended at ``now``."""
        return now + self.hold_window

    def is_live(self, reservation: Reservation, now: datetime) -> bool:
        """PAID, or PENDING with the deadline still ahead."""
        if reservation.state is ReservationState.PAID:
            return True
        return (
            reservation.state is ReservationState.PENDING
            and reservation.expires_at is not None
            and now < reservation.expires_at
        )

    def is_stale(self, reservation: Reservation, now: datetime) -> bool:
        """PENDING with the deadline reached or passed."""
        return (
            reservation.state is ReservationState.PENDING
            and reservation.expires_at is not None
            and now >= reservation.expires_at
        )

    def remaining(self, reservation: Reservation, now: datetime) -> timedelta:
        """Time left on a pending hold, zero when stale or not pending."""
        if not self.is_live(reservation, now) or reservation.expires_at is None:
            return timedelta(0)
        return reservation.expires_at - now
