# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Booking Engine Configuration

This module provides the configuration dataclass for the reservation engine,
covering the hold window, booking id allocation and extension limits.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from .exceptions import ConfigurationError

DEFAULT_HOLD_WINDOW = timedelta(minutes=10)
MIN_BOOKING_ID_LENGTH = 6


@dataclass
class BookingConfig:
    """
    Configuration for the reservation engine.

    Redis connection settings are not part of this class; they are passed to
    ``RedisBookingStore`` directly.
    """

    # === Hold Lifecycle ===

    hold_window: timedelta = field(default=DEFAULT_HOLD_WINDOW)
    """Duration added to "now" for a hold deadline, on book and on extend."""

    max_extensions: int | None = None
    """Maximum successful extends per reservation. None means unlimited."""

    # === Booking Identifiers ===

    max_id_attempts: int = 5
    """Ids generated per booking before giving up on collisions."""

    booking_id_length: int = 10
    """Number of random characters in a generated booking id."""

    booking_id_prefix: str = ""
    """Fixed prefix prepended to every generated booking id."""

    # === Metrics and Monitoring ===

    metrics_enabled: bool = True
    """Enable metrics collection."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.hold_window, timedelta):
            raise ConfigurationError(
                f"hold_window must be a timedelta, got {type(self.hold_window).__name__}"
            )
        if self.hold_window < timedelta(0):
            raise ConfigurationError("hold_window must not be negative")
        if self.max_id_attempts < 1:
            raise ConfigurationError("max_id_attempts must be at least 1")
        if self.booking_id_length < MIN_BOOKING_ID_LENGTH:
            raise ConfigurationError(
                f"booking_id_length must be at least {MIN_BOOKING_ID_LENGTH}"
            )
        if self.max_extensions is not None and self.max_extensions < 0:
            raise ConfigurationError("max_extensions must be None or non-negative")


__all__ = ["DEFAULT_HOLD_WINDOW", "MIN_BOOKING_ID_LENGTH", "BookingConfig"]
