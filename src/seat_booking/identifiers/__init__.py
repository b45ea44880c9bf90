# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Booking identifier generation."""

from .generator import DEFAULT_ALPHABET, DEFAULT_LENGTH, BookingIdGenerator

__all__ = ["DEFAULT_ALPHABET", "DEFAULT_LENGTH", "BookingIdGenerator"]
