"""Tests for the shared store helpers in backends.base."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from seat_booking.backends.base import (
    BaseBookingStore,
    HealthCheckResult,
    transition_precondition_holds,
    validate_transition_request,
)
from seat_booking.types import Reservation, ReservationState, SeatLocation

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def pending():
    return Reservation(
        booking_id="ABCDEF1234",
        seat=SeatLocation("LH100", 5, "C"),
        holder="alice",
        price=Decimal("100"),
        created_at=NOW,
        expires_at=NOW + timedelta(minutes=10),
        updated_at=NOW,
    )


class TestTransitionPrecondition:
    def test_state_mismatch(self, pending):
        assert not transition_precondition_holds(
            pending, ReservationState.PAID, NOW, None
        )

    def test_no_time_condition(self, pending):
        late = NOW + timedelta(hours=1)
        assert transition_precondition_holds(
            pending, ReservationState.PENDING, late, None
        )

    def test_require_live(self, pending):
        assert transition_precondition_holds(
            pending, ReservationState.PENDING, NOW, True
        )
        assert not transition_precondition_holds(
            pending, ReservationState.PENDING, NOW + timedelta(minutes=10), True
        )

    def test_require_stale(self, pending):
        assert not transition_precondition_holds(
            pending, ReservationState.PENDING, NOW, False
        )
        assert transition_precondition_holds(
            pending, ReservationState.PENDING, NOW + timedelta(minutes=10), False
        )

    def test_time_condition_never_holds_outside_pending(self, pending):
        paid = pending.transitioned(ReservationState.PAID, at=NOW)
        assert not transition_precondition_holds(
            paid, ReservationState.PAID, NOW, True
        )

    def test_extension_guard(self, pending):
        assert transition_precondition_holds(
            pending, ReservationState.PENDING, NOW, True, expected_extension_count=0
        )
        assert not transition_precondition_holds(
            pending, ReservationState.PENDING, NOW, True, expected_extension_count=1
        )


class TestValidateTransitionRequest:
    def test_legal_edges(self):
        validate_transition_request(
            ReservationState.PENDING, ReservationState.PAID, None
        )
        validate_transition_request(
            ReservationState.PENDING, ReservationState.PENDING, NOW
        )

    @pytest.mark.parametrize(
        ("source", "target"),
        [
            (ReservationState.PAID, ReservationState.CANCELLED),
            (ReservationState.EXPIRED, ReservationState.PENDING),
            (ReservationState.CANCELLED, ReservationState.PAID),
        ],
    )
    def test_illegal_edges(self, source, target):
        with pytest.raises(ValueError, match="Illegal"):
            validate_transition_request(source, target, NOW)

    def test_extension_needs_deadline(self):
        with pytest.raises(ValueError, match="expires_at"):
            validate_transition_request(
                ReservationState.PENDING, ReservationState.PENDING, None
            )


class TestBaseBookingStore:
    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            BaseBookingStore()  # type: ignore[abstract]

    def test_health_check_result_defaults(self):
        result = HealthCheckResult(healthy=True, backend_type="memory", namespace="x")
        assert result.error is None
        assert result.metadata is None
