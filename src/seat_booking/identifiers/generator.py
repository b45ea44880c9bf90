# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking ID generation.

Ids are random and opaque. Uniqueness is not guaranteed here; the booking
store rejects duplicates atomically and the engine asks for another id.
"""

import secrets
import string

DEFAULT_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_LENGTH = 10


class BookingIdGenerator:
    """
    Random booking id generator backed by :mod:`secrets`.

    With the default alphabet (36 symbols) and length 10 the id space is
    roughly 3.6e15, so collisions are rare but must still be handled.
    """

    def __init__(
        self,
        length: int = DEFAULT_LENGTH,
        prefix: str = "",
        alphabet: str = DEFAULT_ALPHABET,
    ) -> None:
        if length < 1:
            raise ValueError("length must be at least 1")
        if len(set(alphabet)) < 2:
            raise ValueError("alphabet must contain at least two distinct symbols")
        self.length = length
        self.prefix = prefix
        self.alphabet = alphabet

    def generate(self) -> str:
        """Return a fresh candidate booking id."""
        body = "".join(secrets.choice(self.alphabet) for _ in range(self.length))
        return f"{self.prefix}{body}"

    def __repr__(self) -> str:
        return (
            f"BookingIdGenerator(length={self.length}, prefix={self.prefix!r}, "
            f"alphabet_size={len(self.alphabet)})"
        )
