# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Base Booking Store for the Seat Booking Engine

This module provides the BaseBookingStore abstract class that defines
the common interface for all reservation store implementations.

Features:
- Atomic check-and-insert enforcing seat exclusivity and id uniqueness
- Compare-and-set state transitions with liveness preconditions
- Lookups by booking id and by seat, including per-seat history
"""

import abc
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from ..types.reservation import Reservation, ReservationState, can_transition

logger = logging.getLogger(__name__)


class InsertStatus(Enum):
    """Outcome of an atomic insert."""

    INSERTED = "inserted"
    SEAT_TAKEN = "seat_taken"
    ID_COLLISION = "id_collision"


@dataclass
class HealthCheckResult:
    """
    Structured health check result for store monitoring.

    Attributes:
        healthy: Whether the store is operational
        backend_type: Type of store (e.g., 'redis', 'memory')
        namespace: Store namespace
        error: Error message if unhealthy
        metadata: Additional store-specific information
    """

    healthy: bool
    backend_type: str
    namespace: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


def transition_precondition_holds(
    current: Reservation,
    expected_state: ReservationState,
    now: datetime,
    require_live: bool | None,
    expected_extension_count: int | None = None,
) -> bool:
    """
    Evaluate the compare-and-set precondition for a transition.

    Args:
        current: The stored record
        expected_state: State the record must be in
        now: Reference time for the liveness check
        require_live: True requires an unexpired PENDING hold, False requires
            a stale PENDING hold, None skips the time check
        expected_extension_count: If given, the stored extension counter must
            equal this value

    Returns:
        True if the transition may be applied
    """
    if current.state is not expected_state:
        return False
    if (
        expected_extension_count is not None
        and current.extension_count != expected_extension_count
    ):
        return False
    if require_live is None:
        return True
    if current.state is not ReservationState.PENDING or current.expires_at is None:
        return False
    is_live = now < current.expires_at
    return is_live if require_live else not is_live


def validate_transition_request(
    expected_state: ReservationState,
    new_state: ReservationState,
    expires_at: datetime | None,
) -> None:
    """
    Reject transition requests that can never be valid.

    Raises:
        ValueError: If the edge is not part of the state machine, or a
            PENDING to PENDING transition carries no new deadline
    """
    if not can_transition(expected_state, new_state):
        raise ValueError(
            f"Illegal reservation transition: {expected_state.value} -> {new_state.value}"
        )
    if new_state is ReservationState.PENDING and expires_at is None:
        raise ValueError("expires_at is required when a reservation stays PENDING")


class BaseBookingStore(abc.ABC):
    """
    An abstract base class that defines the common interface for all booking
    store implementations.

    A store is the only shared mutable resource of the engine. It owns two
    indexes (by booking id and by seat) and must update both in one atomic
    unit. Operations on different seats must not serialize on a shared lock.

    Records are never deleted by engine operations; terminal reservations stay
    in the per-seat history.
    """

    def __init__(self, namespace: str = "seat_booking"):
        """
        Initialize the store with a namespace for isolation.

        Args:
            namespace: Namespace for isolating data across different instances
        """
        self.namespace = namespace

    # ==========================================================================
    # Record Lookup
    # ==========================================================================

    @abc.abstractmethod
    async def get(self, booking_id: str) -> Reservation | None:
        """
        Get a reservation by booking id.

        Args:
            booking_id: The booking id to look up

        Returns:
            The reservation if it exists, None otherwise
        """
        pass

    @abc.abstractmethod
    async def get_current_for_seat(self, seat: Any) -> Reservation | None:
        """
        Get the most recent reservation for a seat, whatever its state.

        Args:
            seat: The SeatLocation to look up

        Returns:
            The latest reservation for the seat, None if it was never booked
        """
        pass

    @abc.abstractmethod
    async def history_for_seat(self, seat: Any) -> list[Reservation]:
        """
        Get every reservation ever made for a seat, oldest first.

        Args:
            seat: The SeatLocation to look up

        Returns:
            List of reservations in insertion order
        """
        pass

    # ==========================================================================
    # Atomic Mutations
    # ==========================================================================

    @abc.abstractmethod
    async def insert(
        self, reservation: Reservation
    ) -> tuple[InsertStatus, Reservation | None]:
        """
        Atomically insert a new reservation.

        The check for an occupying record and the write to both indexes happen
        in one atomic unit. A seat whose current record is PENDING counts as
        occupied even if its deadline has passed; the caller must expire it
        first.

        Args:
            reservation: The PENDING reservation to insert

        Returns:
            Tuple of (status, record) where record is the inserted reservation
            for INSERTED, the occupying reservation for SEAT_TAKEN, and None
            for ID_COLLISION
        """
        pass

    @abc.abstractmethod
    async def transition(
        self,
        booking_id: str,
        expected_state: ReservationState,
        new_state: ReservationState,
        *,
        now: datetime,
        require_live: bool | None = None,
        expires_at: datetime | None = None,
        extension_count: int | None = None,
        expected_extension_count: int | None = None,
    ) -> tuple[bool, Reservation | None]:
        """
        Atomically move a reservation between states (compare-and-set).

        Args:
            booking_id: The reservation to transition
            expected_state: State the stored record must currently be in
            new_state: Target state
            now: Transition time, also the reference for ``require_live``
            require_live: True requires an unexpired PENDING hold, False a
                stale one, None no time condition
            expires_at: New deadline, required when new_state is PENDING
            extension_count: Replacement extension counter
            expected_extension_count: Optional guard on the stored counter

        Returns:
            Tuple of (applied, record). record is the updated reservation when
            applied, the current one when the precondition failed, and None
            when the booking id is unknown.

        Raises:
            ValueError: If the requested edge is not part of the state machine
        """
        pass

    # ==========================================================================
    # Health and Monitoring
    # ==========================================================================

    @abc.abstractmethod
    async def health_check(self) -> HealthCheckResult:
        """
        Perform a health check on the store.

        Returns:
            HealthCheckResult containing:
                - healthy: bool - Whether the store is operational
                - backend_type: str - Type of store (e.g., 'redis', 'memory')
                - namespace: str - Store namespace
                - error: Optional[str] - Error message if unhealthy
                - metadata: Optional[Dict] - Additional store-specific info
        """
        pass

    @abc.abstractmethod
    async def get_all_stats(self) -> dict[str, Any]:
        """
        Get all statistics from the store.

        Returns:
            Dictionary containing reservation counts and store details
        """
        pass

    # ==========================================================================
    # Cleanup and Maintenance
    # ==========================================================================

    @abc.abstractmethod
    async def clear(self) -> None:
        """Remove every stored reservation."""
        pass

    @abc.abstractmethod
    async def cleanup(self) -> None:
        """Release store resources (connections, locks)."""
        pass

    async def __aenter__(self) -> "BaseBookingStore":
        return self

    async def __aexit__(self, exc_type: Any, _exc_val: Any, _exc_tb: Any) -> None:
        await self.cleanup()
