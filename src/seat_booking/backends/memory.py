# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
MemoryBookingStore for the Seat Booking Engine

This module provides an in-memory store implementation that doesn't require Redis.
Perfect for testing, development, and single-process applications.
"""

import asyncio
import logging
from collections import Counter, defaultdict
from datetime import datetime
from typing import Any

from ..types.reservation import Reservation, ReservationState
from ..types.seat import SeatLocation
from .base import (
    BaseBookingStore,
    HealthCheckResult,
    InsertStatus,
    transition_precondition_holds,
    validate_transition_request,
)

logger = logging.getLogger(__name__)


class MemoryBookingStore(BaseBookingStore):
    """
    An in-memory booking store.

    This store provides a simple, Redis-free implementation suitable for:
    - Testing and development
    - Single-process applications

    Key Features:
    - Pure in-memory dict-based storage
    - One asyncio.Lock per seat, so different seats never block each other
    - A short id-index lock guarding booking id uniqueness
    - Full per-seat history

    Note:
        This store is NOT suitable for:
        - Multi-process applications
        - Distributed systems
        - Deployments that must survive a restart
    """

    def __init__(self, namespace: str = "seat_booking_memory") -> None:
        """
        Initialize the in-memory store.

        Args:
            namespace: Namespace for key isolation (for compatibility)
        """
        super().__init__(namespace)

        # booking_id -> latest record
        self._records: dict[str, Reservation] = {}
        # seat key -> booking ids, oldest first; the last one is current
        self._seat_history: dict[str, list[str]] = defaultdict(list)

        # Lock ordering: seat lock, then id-index lock
        self._seat_locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._index_lock = asyncio.Lock()

        logger.debug(f"Initialized MemoryBookingStore with namespace '{namespace}'")

    def _current_locked(self, seat_key: str) -> Reservation | None:
        history = self._seat_history.get(seat_key)
        if not history:
            return None
        return self._records[history[-1]]

    # Record Lookup

    async def get(self, booking_id: str) -> Reservation | None:
        """Get a reservation by booking id."""
        return self._records.get(booking_id)

    async def get_current_for_seat(self, seat: SeatLocation) -> Reservation | None:
        """Get the most recent reservation for a seat."""
        async with self._seat_locks[seat.key]:
            return self._current_locked(seat.key)

    async def history_for_seat(self, seat: SeatLocation) -> list[Reservation]:
        """Get every reservation for a seat, oldest first."""
        async with self._seat_locks[seat.key]:
            return [
                self._records[booking_id]
                for booking_id in self._seat_history.get(seat.key, [])
            ]

    # Atomic Mutations

    async def insert(
        self, reservation: Reservation
    ) -> tuple[InsertStatus, Reservation | None]:
        """Atomically insert a new reservation."""
        seat_key = reservation.seat.key
        async with self._seat_locks[seat_key]:
            current = self._current_locked(seat_key)
            if current is not None and current.state.is_live_state:
                logger.debug(
                    f"Seat {seat_key} held by {current.booking_id} "
                    f"({current.state.value}), rejecting {reservation.booking_id}"
                )
                return InsertStatus.SEAT_TAKEN, current

            async with self._index_lock:
                if reservation.booking_id in self._records:
                    logger.warning(
                        f"Booking id collision on {reservation.booking_id}"
                    )
                    return InsertStatus.ID_COLLISION, None
                self._records[reservation.booking_id] = reservation
                self._seat_history[seat_key].append(reservation.booking_id)

        return InsertStatus.INSERTED, reservation

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
        """Atomically move a reservation between states."""
        validate_transition_request(expected_state, new_state, expires_at)

        snapshot = self._records.get(booking_id)
        if snapshot is None:
            return False, None

        # The seat of a booking never changes, so the snapshot picks the lock
        async with self._seat_locks[snapshot.seat.key]:
            current = self._records[booking_id]
            if not transition_precondition_holds(
                current,
                expected_state,
                now,
                require_live,
                expected_extension_count,
            ):
                return False, current

            updated = current.transitioned(
                new_state,
                at=now,
                expires_at=expires_at,
                extension_count=extension_count,
            )
            self._records[booking_id] = updated

        logger.debug(
            f"Booking {booking_id}: {expected_state.value} -> {new_state.value}"
        )
        return True, updated

    # Health and Monitoring

    async def health_check(self) -> HealthCheckResult:
        """Perform a health check on the store."""
        return HealthCheckResult(
            healthy=True,
            backend_type="memory",
            namespace=self.namespace,
            metadata={
                "reservations_count": len(self._records),
                "seats_count": len(self._seat_history),
            },
        )

    async def get_all_stats(self) -> dict[str, Any]:
        """Get all statistics from the store."""
        async with self._index_lock:
            by_state = Counter(record.state.value for record in self._records.values())
            return {
                "backend_type": "memory",
                "namespace": self.namespace,
                "reservations_count": len(self._records),
                "seats_count": len(self._seat_history),
                "reservations_by_state": {
                    state.value: by_state.get(state.value, 0)
                    for state in ReservationState
                },
            }

    # Cleanup and Maintenance

    async def clear(self) -> None:
        """Remove every stored reservation."""
        async with self._index_lock:
            self._records.clear()
            self._seat_history.clear()
            logger.debug("Cleared all reservations")

    async def cleanup(self) -> None:
        """Clean up store resources."""
        await self.clear()
        self._seat_locks.clear()
        logger.debug("MemoryBookingStore cleanup completed")
