"""Tests for ReservationEngine.book."""

from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from seat_booking import (
    BookingConfig,
    IdGenerationError,
    InvalidPriceError,
    ReservationEngine,
    ReservationState,
    SeatLocation,
    SeatUnavailableError,
    UnknownSeatError,
)
from seat_booking.observability.constants import (
    BOOKINGS_TOTAL,
    HOLDS_EXPIRED_TOTAL,
    ID_COLLISIONS_TOTAL,
    OPERATIONS_REJECTED_TOTAL,
)


class ScriptedIdGenerator:
    """Returns the given ids in order, repeating the last one."""

    def __init__(self, *ids):
        self.ids = list(ids)
        self.calls = 0

    def generate(self):
        self.calls += 1
        if len(self.ids) > 1:
            return self.ids.pop(0)
        return self.ids[0]


class TestBook:
    @pytest.mark.asyncio
    async def test_places_pending_hold(self, engine, seat, clock, price, metrics):
        ticket = await engine.book(seat, "alice", price)

        assert ticket.state is ReservationState.PENDING
        assert ticket.seat == seat
        assert ticket.holder == "alice"
        assert ticket.price == price
        assert ticket.created_at == clock.now
        assert ticket.expires_at == clock.now + timedelta(minutes=10)
        assert ticket.extension_count == 0
        assert len(ticket.booking_id) == 10
        assert metrics.get_counter(BOOKINGS_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_hold_is_persisted(self, engine, store, seat, price):
        ticket = await engine.book(seat, "alice", price)
        assert await store.get(ticket.booking_id) == ticket
        assert await store.get_current_for_seat(seat) == ticket

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("given", "expected"),
        [
            (100, Decimal("100")),
            ("99.95", Decimal("99.95")),
            (149.9, Decimal("149.9")),
        ],
    )
    async def test_price_is_stored_as_decimal(self, engine, seat, given, expected):
        ticket = await engine.book(seat, "alice", given)
        assert ticket.price == expected
        assert isinstance(ticket.price, Decimal)

    @pytest.mark.asyncio
    async def test_booking_id_prefix(self, store, directory, clock, seat, price):
        engine = ReservationEngine(
            store,
            directory,
            config=BookingConfig(booking_id_prefix="LH-", metrics_enabled=False),
            clock=clock,
        )
        ticket = await engine.book(seat, "alice", price)
        assert ticket.booking_id.startswith("LH-")
        assert len(ticket.booking_id) == 13

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_seat",
        [
            SeatLocation("XX999", 5, "C"),
            SeatLocation("LH100", 11, "C"),
            SeatLocation("LH100", 5, "Q"),
            SeatLocation("LH100", 1, "A"),
        ],
    )
    async def test_unknown_seat(self, engine, store, bad_seat, price, metrics):
        with pytest.raises(UnknownSeatError):
            await engine.book(bad_seat, "alice", price)

        assert await store.get_current_for_seat(bad_seat) is None
        assert (
            metrics.get_counter(
                OPERATIONS_REJECTED_TOTAL,
                {"operation": "book", "reason": "unknown_seat"},
            )
            == 1
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_price",
        ["abc", Decimal("NaN"), Decimal("sNaN"), "-Infinity", float("inf"), None],
    )
    async def test_invalid_price(self, engine, store, seat, bad_price, metrics):
        with pytest.raises(InvalidPriceError) as exc_info:
            await engine.book(seat, "alice", bad_price)

        assert exc_info.value.price is bad_price
        assert await store.get_current_for_seat(seat) is None
        assert (
            metrics.get_counter(
                OPERATIONS_REJECTED_TOTAL,
                {"operation": "book", "reason": "invalid_price"},
            )
            == 1
        )

    @pytest.mark.asyncio
    async def test_seat_with_pending_hold_is_unavailable(self, engine, seat, price):
        first = await engine.book(seat, "alice", price)

        with pytest.raises(SeatUnavailableError) as exc_info:
            await engine.book(seat, "bob", price)

        assert exc_info.value.occupied_by == first.booking_id

    @pytest.mark.asyncio
    async def test_paid_seat_is_unavailable(self, engine, seat, price, clock):
        first = await engine.book(seat, "alice", price)
        await engine.accept_payment(first.booking_id, price)
        clock.advance(days=30)

        with pytest.raises(SeatUnavailableError):
            await engine.book(seat, "bob", price)

    @pytest.mark.asyncio
    async def test_stale_hold_is_expired_and_seat_rebooked(
        self, engine, seat, price, clock, metrics
    ):
        first = await engine.book(seat, "alice", price)
        clock.advance(minutes=10)

        second = await engine.book(seat, "bob", price)

        assert second.holder == "bob"
        expired = await engine.get_booking(first.booking_id)
        assert expired.state is ReservationState.EXPIRED
        assert expired.expires_at is None
        assert metrics.get_counter(HOLDS_EXPIRED_TOTAL, {"operation": "book"}) == 1

    @pytest.mark.asyncio
    async def test_hold_just_before_deadline_still_blocks(
        self, engine, seat, price, clock
    ):
        await engine.book(seat, "alice", price)
        clock.advance(minutes=10, microseconds=-1)

        with pytest.raises(SeatUnavailableError):
            await engine.book(seat, "bob", price)

    @pytest.mark.asyncio
    async def test_cancelled_seat_can_be_rebooked(self, engine, seat, price):
        first = await engine.book(seat, "alice", price)
        await engine.cancel_pending_reservation(first.booking_id)

        second = await engine.book(seat, "bob", price)

        history = await engine.get_seat_history(seat)
        assert [r.booking_id for r in history] == [first.booking_id, second.booking_id]
        assert history[0].state is ReservationState.CANCELLED

    @pytest.mark.asyncio
    async def test_id_collision_is_retried(
        self, store, directory, clock, seat, other_seat, price, metrics
    ):
        generator = ScriptedIdGenerator("TAKEN00001", "TAKEN00001", "FRESH00001")
        engine = ReservationEngine(
            store, directory, id_generator=generator, clock=clock, metrics=metrics
        )
        await engine.book(other_seat, "alice", price)

        ticket = await engine.book(seat, "bob", price)

        assert ticket.booking_id == "FRESH00001"
        assert generator.calls == 3
        assert metrics.get_counter(ID_COLLISIONS_TOTAL) == 1

    @pytest.mark.asyncio
    async def test_id_generation_exhausted(
        self, store, directory, clock, seat, other_seat, price, metrics
    ):
        engine = ReservationEngine(
            store,
            directory,
            config=BookingConfig(max_id_attempts=3),
            id_generator=ScriptedIdGenerator("DUPLICATE1"),
            clock=clock,
            metrics=metrics,
        )
        await engine.book(other_seat, "alice", price)

        with pytest.raises(IdGenerationError) as exc_info:
            await engine.book(seat, "bob", price)

        assert exc_info.value.attempts == 3
        assert metrics.get_counter(ID_COLLISIONS_TOTAL) == 3
        assert await store.get_current_for_seat(seat) is None

    @pytest.mark.asyncio
    async def test_zero_hold_window(self, store, directory, clock, seat, price):
        engine = ReservationEngine(
            store,
            directory,
            config=BookingConfig(hold_window=timedelta(0), metrics_enabled=False),
            clock=clock,
        )
        first = await engine.book(seat, "alice", price)
        assert first.expires_at == clock.now

        second = await engine.book(seat, "bob", price)
        assert second.holder == "bob"

    @pytest.mark.asyncio
    async def test_naive_clock_rejected(self, store, directory, seat, price):
        engine = ReservationEngine(
            store,
            directory,
            config=BookingConfig(metrics_enabled=False),
            clock=lambda: datetime(2026, 3, 1, 12, 0),
        )
        with pytest.raises(ValueError, match="timezone-aware"):
            await engine.book(seat, "alice", price)

    @pytest.mark.asyncio
    async def test_metrics_disabled_uses_no_collector(self, store, directory, seat):
        engine = ReservationEngine(
            store, directory, config=BookingConfig(metrics_enabled=False)
        )
        assert engine._metrics is None
        ticket = await engine.book(seat, "alice", 10)
        assert ticket.state is ReservationState.PENDING
