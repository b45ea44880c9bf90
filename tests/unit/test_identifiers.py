"""Tests for booking id generation."""

import pytest

from seat_booking.identifiers import DEFAULT_ALPHABET, BookingIdGenerator
from seat_booking.protocols import BookingIdGeneratorProtocol


class TestBookingIdGenerator:
    def test_default_shape(self):
        booking_id = BookingIdGenerator().generate()
        assert len(booking_id) == 10
        assert all(ch in DEFAULT_ALPHABET for ch in booking_id)

    def test_prefix_and_length(self):
        booking_id = BookingIdGenerator(length=8, prefix="LH-").generate()
        assert booking_id.startswith("LH-")
        assert len(booking_id) == 11

    def test_custom_alphabet(self):
        booking_id = BookingIdGenerator(length=32, alphabet="01").generate()
        assert set(booking_id) <= {"0", "1"}

    def test_ids_are_effectively_unique(self):
        generator = BookingIdGenerator()
        ids = {generator.generate() for _ in range(1000)}
        assert len(ids) == 1000

    def test_invalid_length(self):
        with pytest.raises(ValueError, match="length"):
            BookingIdGenerator(length=0)

    def test_degenerate_alphabet(self):
        with pytest.raises(ValueError, match="alphabet"):
            BookingIdGenerator(alphabet="AAAA")

    def test_satisfies_protocol(self):
        assert isinstance(BookingIdGenerator(), BookingIdGeneratorProtocol)

    def test_repr(self):
        text = repr(BookingIdGenerator(prefix="X"))
        assert "prefix='X'" in text
        assert "alphabet_size=36" in text
