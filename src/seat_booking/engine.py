# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation Engine for the Seat Booking library

This module provides the ReservationEngine, which owns the reservation state
machine: placing holds, accepting payment, cancelling, extending and looking
up reservations.

State machine:
    PENDING -> PAID | CANCELLED | EXPIRED
    PENDING -> PENDING (extend)
    PAID, CANCELLED and EXPIRED are terminal.

Every mutation is a compare-and-set against the booking store. When two
operations race on one reservation the store admits exactly one; the loser
re-reads the record and fails with the error matching its new state. Stale
holds are rewritten to EXPIRED lazily, whenever an operation observes them.
"""

import contextlib
import logging
import time
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import ClassVar

from .backends.base import BaseBookingStore, InsertStatus
from .config import BookingConfig
from .exceptions import (
    AmountMismatchError,
    BookingError,
    ExtensionLimitError,
    HoldExpiredError,
    IdGenerationError,
    InvalidPriceError,
    InvalidStateError,
    ReservationNotFoundError,
    SeatUnavailableError,
    UnknownSeatError,
)
from .identifiers.generator import BookingIdGenerator
from .observability.collector import get_metrics_collector
from .observability.constants import (
    BOOKINGS_TOTAL,
    CANCELLATIONS_TOTAL,
    CAS_CONFLICTS_TOTAL,
    EXTENSIONS_TOTAL,
    HOLDS_EXPIRED_TOTAL,
    ID_COLLISIONS_TOTAL,
    OPERATION_LATENCY_SECONDS,
    OPERATIONS_REJECTED_TOTAL,
    PAYMENTS_TOTAL,
)
from .observability.protocols import MetricsCollectorProtocol
from .policy.expiry import ExpiryPolicy
from .protocols.directory import SeatDirectoryProtocol
from .protocols.identifiers import BookingIdGeneratorProtocol
from .types.reservation import Reservation, ReservationState
from .types.seat import SeatLocation

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
ReservationRef = Reservation | str


def utc_now() -> datetime:
    """Default engine clock."""
    return datetime.now(timezone.utc)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Parse a money amount; raises ValueError unless it is a finite number."""
    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            # str() keeps the literal the caller wrote, not the binary expansion
            amount = Decimal(str(value))
        else:
            amount = Decimal(value)
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Not a decimal amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


class ReservationEngine:
    """
    Coordinates seat holds over a booking store.

    The engine holds no reservation state of its own; several engines may
    share one store. All operations are coroutines and are safe to run as
    concurrent tasks.

    Example:
        store = MemoryBookingStore()
        directory = InMemorySeatDirectory([Flight("LH100", rows=30)])
        engine = ReservationEngine(store, directory)

        ticket = await engine.book(SeatLocation("LH100", 12, "C"), "alice", Decimal("199.00"))
        await engine.accept_payment(ticket.booking_id, Decimal("199.00"))
    """

    # Compare-and-set rounds before an operation gives up under contention
    MAX_TRANSITION_ATTEMPTS: ClassVar[int] = 5

    def __init__(
        self,
        store: BaseBookingStore,
        directory: SeatDirectoryProtocol,
        config: BookingConfig | None = None,
        id_generator: BookingIdGeneratorProtocol | None = None,
        clock: Clock | None = None,
        metrics: MetricsCollectorProtocol | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            store: Booking store holding the authoritative reservations
            directory: Seat directory used to validate seat locations
            config: Engine configuration (defaults to BookingConfig())
            id_generator: Booking id source (defaults to a BookingIdGenerator
                built from config)
            clock: Callable returning the current timezone-aware UTC time
            metrics: Metrics collector (defaults to the global collector when
                config.metrics_enabled is set)
        """
        self.store = store
        self.directory = directory
        self.config = config or BookingConfig()
        self.policy = ExpiryPolicy(self.config.hold_window)
        self._id_generator: BookingIdGeneratorProtocol = (
            id_generator
            or BookingIdGenerator(
                length=self.config.booking_id_length,
                prefix=self.config.booking_id_prefix,
            )
        )
        self._clock: Clock = clock or utc_now

        if metrics is None and self.config.metrics_enabled:
            metrics = get_metrics_collector()
        self._metrics = metrics

    # ==========================================================================
    # Internal Helpers
    # ==========================================================================

    def _now(self) -> datetime:
        now = self._clock()
        if now.tzinfo is None:
            raise ValueError("Engine clock must return timezone-aware datetimes")
        return now

    def _inc(self, name: str, labels: dict[str, str] | None = None) -> None:
        if self._metrics is not None:
            self._metrics.inc_counter(name, labels=labels)

    @contextlib.contextmanager
    def _observe(self, operation: str) -> Iterator[None]:
        """Record latency and classified rejections for one operation."""
        start = time.perf_counter()
        try:
            yield
        except BookingError as e:
            self._inc(
                OPERATIONS_REJECTED_TOTAL,
                labels={"operation": operation, "reason": e.kind.value},
            )
            raise
        finally:
            if self._metrics is not None:
                self._metrics.observe_histogram(
                    OPERATION_LATENCY_SECONDS,
                    time.perf_counter() - start,
                    labels={"operation": operation},
                )

    def _validate_seat(self, seat: SeatLocation) -> None:
        if not self.directory.exists(seat):
            raise UnknownSeatError(seat)

    async def _load(self, target: ReservationRef) -> Reservation:
        """Re-read a reservation from the store."""
        booking_id = target.booking_id if isinstance(target, Reservation) else target
        record = await self.store.get(booking_id)
        if record is None:
            raise ReservationNotFoundError(booking_id)
        return record

    def _validate_known_seat(self, seat: SeatLocation) -> None:
        # Seats blocked after booking still resolve their existing records
        flight = self.directory.get_flight(seat.flight_id)
        if flight is not None and flight.has_seat(seat.row, seat.seat_code):
            return
        self._validate_seat(seat)

    async def _load_for_seat(self, seat: SeatLocation) -> Reservation:
        self._validate_known_seat(seat)
        record = await self.store.get_current_for_seat(seat)
        if record is None:
            raise ReservationNotFoundError(seat)
        return record

    async def _expire(
        self, record: Reservation, now: datetime, operation: str
    ) -> Reservation:
        """
        Rewrite a stale PENDING hold to EXPIRED.

        Returns the record as it stands afterwards. If another writer got
        there first, that writer's result is returned instead.
        """
        applied, current = await self.store.transition(
            record.booking_id,
            ReservationState.PENDING,
            ReservationState.EXPIRED,
            now=now,
            require_live=False,
        )
        if current is None:
            raise ReservationNotFoundError(record.booking_id)
        if applied:
            logger.debug(
                f"Expired stale hold {record.booking_id} on {record.seat.key} "
                f"during {operation}"
            )
            self._inc(HOLDS_EXPIRED_TOTAL, labels={"operation": operation})
        return current

    async def _expire_if_stale(
        self, record: Reservation, now: datetime, operation: str
    ) -> Reservation:
        if self.policy.is_stale(record, now):
            return await self._expire(record, now, operation)
        return record

    def _lost_race(self, booking_id: str, operation: str) -> None:
        logger.warning(f"Concurrent update on booking {booking_id} during {operation}")
        self._inc(CAS_CONFLICTS_TOTAL, labels={"operation": operation})

    # ==========================================================================
    # Booking
    # ==========================================================================

    async def book(
        self,
        seat: SeatLocation,
        holder: str,
        price: Decimal | int | str,
    ) -> Reservation:
        """
        Place a PENDING hold on a seat.

        Args:
            seat: The seat to hold
            holder: Customer identity
            price: Amount the holder is expected to pay

        Returns:
            The new PENDING reservation, due at ``now + hold_window``

        Raises:
            UnknownSeatError: If the seat does not exist or is blocked
            InvalidPriceError: If price is not a finite decimal amount
            SeatUnavailableError: If a live reservation occupies the seat
            IdGenerationError: If no unique booking id could be allocated
        """
        with self._observe("book"):
            self._validate_seat(seat)
            try:
                amount = _to_decimal(price)
            except ValueError as e:
                raise InvalidPriceError(price) from e
            now = self._now()

            occupant = await self.store.get_current_for_seat(seat)
            if occupant is not None:
                await self._expire_if_stale(occupant, now, "book")

            expires_at = self.policy.deadline(now)
            attempts = self.config.max_id_attempts
            for attempt in range(1, attempts + 1):
                reservation = Reservation(
                    booking_id=self._id_generator.generate(),
                    seat=seat,
                    holder=holder,
                    price=amount,
                    state=ReservationState.PENDING,
                    created_at=now,
                    expires_at=expires_at,
                    updated_at=now,
                )
                status, record = await self.store.insert(reservation)

                if status is InsertStatus.INSERTED:
                    logger.debug(
                        f"Booked {seat.key} for {holder} as {reservation.booking_id}"
                    )
                    self._inc(BOOKINGS_TOTAL)
                    return record or reservation

                if status is InsertStatus.SEAT_TAKEN:
                    raise SeatUnavailableError(
                        seat, occupied_by=record.booking_id if record else None
                    )

                logger.warning(
                    f"Booking id collision ({attempt}/{attempts}) for {seat.key}"
                )
                self._inc(ID_COLLISIONS_TOTAL)

            logger.error(
                f"Could not allocate a unique booking id for {seat.key} "
                f"after {attempts} attempts"
            )
            raise IdGenerationError(attempts)

    # ==========================================================================
    # Payment
    # ==========================================================================

    async def accept_payment(
        self, target: ReservationRef, amount: Decimal | int | str
    ) -> Reservation:
        """
        Confirm a PENDING hold by payment.

        Not idempotent: paying an already PAID reservation fails.

        Args:
            target: The reservation or its booking id
            amount: The presented payment, compared to the price as a Decimal

        Returns:
            The PAID reservation

        Raises:
            ReservationNotFoundError: If the booking id is unknown
            HoldExpiredError: If the hold lapsed (it is rewritten to EXPIRED)
            InvalidStateError: If the reservation is not PENDING
            AmountMismatchError: If amount differs from the price
        """
        with self._observe("pay"):
            record = await self._load(target)
            return await self._pay(record, amount, self._now())

    async def accept_payment_for_seat(
        self, seat: SeatLocation, amount: Decimal | int | str
    ) -> Reservation:
        """Pay the current reservation of a seat. Raises as accept_payment."""
        with self._observe("pay"):
            record = await self._load_for_seat(seat)
            return await self._pay(record, amount, self._now())

    async def _pay(
        self, record: Reservation, amount: Decimal | int | str, now: datetime
    ) -> Reservation:
        booking_id = record.booking_id
        try:
            presented = _to_decimal(amount)
        except ValueError as e:
            raise AmountMismatchError(booking_id, record.price, amount) from e

        for _attempt in range(self.MAX_TRANSITION_ATTEMPTS):
            if self.policy.is_stale(record, now):
                record = await self._expire(record, now, "pay")
                if record.state is ReservationState.EXPIRED:
                    raise HoldExpiredError(booking_id)
                continue

            if record.state is not ReservationState.PENDING:
                raise InvalidStateError(booking_id, record.state, "pay")
            if presented != record.price:
                raise AmountMismatchError(booking_id, record.price, presented)

            applied, current = await self.store.transition(
                booking_id,
                ReservationState.PENDING,
                ReservationState.PAID,
                now=now,
                require_live=True,
            )
            if current is None:
                raise ReservationNotFoundError(booking_id)
            if applied:
                logger.debug(f"Booking {booking_id} paid")
                self._inc(PAYMENTS_TOTAL)
                return current

            self._lost_race(booking_id, "pay")
            if current.state is ReservationState.EXPIRED:
                raise HoldExpiredError(booking_id)
            record = current

        raise InvalidStateError(
            booking_id,
            record.state,
            "pay",
            message=f"Booking {booking_id} kept changing while paying",
        )

    # ==========================================================================
    # Cancellation
    # ==========================================================================

    async def cancel_pending_reservation(self, target: ReservationRef) -> Reservation:
        """
        Cancel a PENDING hold, releasing its seat.

        A stale hold is cancelled as well. Cancelling a reservation that is
        already CANCELLED or EXPIRED succeeds and returns it unchanged.

        Args:
            target: The reservation or its booking id

        Returns:
            The reservation after cancellation

        Raises:
            ReservationNotFoundError: If the booking id is unknown
            InvalidStateError: If the reservation is PAID
        """
        with self._observe("cancel"):
            record = await self._load(target)
            return await self._cancel(record, self._now())

    async def cancel_reservation_for_seat(self, seat: SeatLocation) -> Reservation:
        """Cancel the current reservation of a seat."""
        with self._observe("cancel"):
            record = await self._load_for_seat(seat)
            return await self._cancel(record, self._now())

    async def _cancel(self, record: Reservation, now: datetime) -> Reservation:
        booking_id = record.booking_id
        if not self._needs_cancel(record):
            return record

        applied, current = await self.store.transition(
            booking_id,
            ReservationState.PENDING,
            ReservationState.CANCELLED,
            now=now,
        )
        if current is None:
            raise ReservationNotFoundError(booking_id)
        if applied:
            logger.debug(f"Booking {booking_id} cancelled")
            self._inc(CANCELLATIONS_TOTAL)
            return current

        # Without a time condition the CAS only fails once the record left PENDING
        self._lost_race(booking_id, "cancel")
        self._needs_cancel(current)
        return current

    @staticmethod
    def _needs_cancel(record: Reservation) -> bool:
        if record.state is ReservationState.PAID:
            raise InvalidStateError(record.booking_id, record.state, "cancel")
        return record.state is ReservationState.PENDING

    # ==========================================================================
    # Extension
    # ==========================================================================

    async def extend_reservation_timeout(self, target: ReservationRef) -> Reservation:
        """
        Push the deadline of a live hold to ``now + hold_window``.

        The new deadline counts from now, not from the previous deadline.

        Args:
            target: The reservation or its booking id

        Returns:
            The PENDING reservation with its new deadline

        Raises:
            ReservationNotFoundError: If the booking id is unknown
            HoldExpiredError: If the hold lapsed (it is rewritten to EXPIRED)
            InvalidStateError: If the reservation is not PENDING
            ExtensionLimitError: If max_extensions is configured and reached
        """
        with self._observe("extend"):
            record = await self._load(target)
            return await self._extend(record, self._now())

    async def extend_timeout_for_seat(self, seat: SeatLocation) -> Reservation:
        """Extend the current reservation of a seat."""
        with self._observe("extend"):
            record = await self._load_for_seat(seat)
            return await self._extend(record, self._now())

    async def _extend(self, record: Reservation, now: datetime) -> Reservation:
        booking_id = record.booking_id
        limit = self.config.max_extensions

        for _attempt in range(self.MAX_TRANSITION_ATTEMPTS):
            if self.policy.is_stale(record, now):
                record = await self._expire(record, now, "extend")
                if record.state is ReservationState.EXPIRED:
                    raise HoldExpiredError(booking_id)
                continue

            if record.state is not ReservationState.PENDING:
                raise InvalidStateError(booking_id, record.state, "extend")
            if limit is not None and record.extension_count >= limit:
                raise ExtensionLimitError(booking_id, record.state, limit)

            applied, current = await self.store.transition(
                booking_id,
                ReservationState.PENDING,
                ReservationState.PENDING,
                now=now,
                require_live=True,
                expires_at=self.policy.deadline(now),
                extension_count=record.extension_count + 1,
                expected_extension_count=record.extension_count,
            )
            if current is None:
                raise ReservationNotFoundError(booking_id)
            if applied:
                logger.debug(
                    f"Booking {booking_id} extended to {current.expires_at} "
                    f"({current.extension_count} extensions)"
                )
                self._inc(EXTENSIONS_TOTAL)
                return current

            self._lost_race(booking_id, "extend")
            if current.state is ReservationState.EXPIRED:
                raise HoldExpiredError(booking_id)
            record = current

        raise InvalidStateError(
            booking_id,
            record.state,
            "extend",
            message=f"Booking {booking_id} kept changing while extending",
        )

    # ==========================================================================
    # Lookups
    # ==========================================================================

    async def get_ticket(self, seat: SeatLocation) -> Reservation:
        """
        Get the most recent reservation for a seat.

        A stale hold is rewritten to EXPIRED before it is returned.

        Raises:
            UnknownSeatError: If the seat is not part of the flight layout
            ReservationNotFoundError: If the seat was never booked
        """
        with self._observe("lookup"):
            record = await self._load_for_seat(seat)
            return await self._expire_if_stale(record, self._now(), "lookup")

    async def get_booking(self, booking_id: str) -> Reservation:
        """
        Get a reservation by booking id.

        A stale hold is rewritten to EXPIRED before it is returned.

        Raises:
            ReservationNotFoundError: If the booking id is unknown
        """
        with self._observe("lookup"):
            record = await self._load(booking_id)
            return await self._expire_if_stale(record, self._now(), "lookup")

    async def get_seat_history(self, seat: SeatLocation) -> list[Reservation]:
        """
        All reservations ever made for a seat, oldest first.

        Only the newest record can still be PENDING; if it is stale it is
        rewritten to EXPIRED first.
        """
        with self._observe("lookup"):
            self._validate_known_seat(seat)
            history = await self.store.history_for_seat(seat)
            if history:
                history[-1] = await self._expire_if_stale(
                    history[-1], self._now(), "lookup"
                )
            return history


__all__ = ["Clock", "ReservationEngine", "ReservationRef", "utc_now"]
