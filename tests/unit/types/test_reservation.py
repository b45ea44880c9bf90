"""Tests for the Reservation model and the state machine edges."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from seat_booking.types import (
    ALLOWED_TRANSITIONS,
    Reservation,
    ReservationState,
    SeatLocation,
    can_transition,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
SEAT = SeatLocation("LH100", 5, "C")


def make_pending(**overrides):
    fields = {
        "booking_id": "ABCDEF1234",
        "seat": SEAT,
        "holder": "alice",
        "price": Decimal("100.00"),
        "created_at": NOW,
        "expires_at": NOW + timedelta(minutes=10),
        "updated_at": NOW,
    }
    fields.update(overrides)
    return Reservation(**fields)


class TestReservationState:
    def test_only_pending_is_non_terminal(self):
        assert ReservationState.PENDING.is_terminal is False
        for state in (
            ReservationState.PAID,
            ReservationState.CANCELLED,
            ReservationState.EXPIRED,
        ):
            assert state.is_terminal is True

    def test_live_states(self):
        assert ReservationState.PENDING.is_live_state
        assert ReservationState.PAID.is_live_state
        assert not ReservationState.CANCELLED.is_live_state
        assert not ReservationState.EXPIRED.is_live_state

    def test_terminal_states_have_no_edges(self):
        for state in ReservationState:
            if state.is_terminal:
                assert ALLOWED_TRANSITIONS[state] == frozenset()

    @pytest.mark.parametrize("target", list(ReservationState))
    def test_pending_reaches_every_state(self, target):
        assert can_transition(ReservationState.PENDING, target)

    def test_paid_cannot_be_cancelled(self):
        assert not can_transition(ReservationState.PAID, ReservationState.CANCELLED)


class TestReservationModel:
    def test_defaults(self):
        reservation = make_pending()
        assert reservation.state is ReservationState.PENDING
        assert reservation.extension_count == 0
        assert reservation.is_pending

    def test_pending_requires_deadline(self):
        with pytest.raises(ValidationError, match="requires expires_at"):
            make_pending(expires_at=None)

    @pytest.mark.parametrize(
        "state",
        [ReservationState.PAID, ReservationState.CANCELLED, ReservationState.EXPIRED],
    )
    def test_terminal_states_reject_deadline(self, state):
        with pytest.raises(ValidationError, match="must be unset"):
            make_pending(state=state)

    def test_terminal_state_without_deadline_is_valid(self):
        reservation = make_pending(state=ReservationState.PAID, expires_at=None)
        assert reservation.expires_at is None

    def test_frozen(self):
        reservation = make_pending()
        with pytest.raises(ValidationError):
            reservation.holder = "mallory"  # type: ignore[misc]

    def test_negative_extension_count_rejected(self):
        with pytest.raises(ValidationError):
            make_pending(extension_count=-1)

    def test_json_round_trip_keeps_decimal_and_seat(self):
        reservation = make_pending(price=Decimal("149.90"))
        restored = Reservation.model_validate_json(reservation.model_dump_json())
        assert restored == reservation
        assert restored.price == Decimal("149.90")
        assert restored.seat == SEAT


class TestTransitioned:
    def test_leaving_pending_clears_deadline(self):
        later = NOW + timedelta(minutes=1)
        paid = make_pending().transitioned(ReservationState.PAID, at=later)
        assert paid.state is ReservationState.PAID
        assert paid.expires_at is None
        assert paid.updated_at == later
        assert paid.created_at == NOW

    def test_staying_pending_sets_new_deadline(self):
        later = NOW + timedelta(minutes=5)
        extended = make_pending().transitioned(
            ReservationState.PENDING,
            at=later,
            expires_at=later + timedelta(minutes=10),
            extension_count=1,
        )
        assert extended.expires_at == later + timedelta(minutes=10)
        assert extended.extension_count == 1

    def test_illegal_edge_raises(self):
        paid = make_pending().transitioned(ReservationState.PAID, at=NOW)
        with pytest.raises(ValueError, match="Illegal reservation transition"):
            paid.transitioned(ReservationState.CANCELLED, at=NOW)

    def test_source_record_is_unchanged(self):
        source = make_pending()
        source.transitioned(ReservationState.CANCELLED, at=NOW)
        assert source.state is ReservationState.PENDING
