# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for the seat booking test suite."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from prometheus_client import CollectorRegistry

from seat_booking import (
    BookingConfig,
    Flight,
    InMemorySeatDirectory,
    MemoryBookingStore,
    ReservationEngine,
    SeatLocation,
)
from seat_booking.observability import MetricsCollector, reset_metrics_collector

START = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
PRICE = Decimal("149.90")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture(autouse=True)
def _isolate_global_metrics():
    yield
    reset_metrics_collector()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def flight():
    return Flight("LH100", rows=10, blocked_seats=frozenset({(1, "A")}))


@pytest.fixture
def directory(flight):
    return InMemorySeatDirectory([flight])


@pytest.fixture
def seat():
    return SeatLocation("LH100", 5, "C")


@pytest.fixture
def other_seat():
    return SeatLocation("LH100", 5, "D")


@pytest.fixture
def store():
    return MemoryBookingStore(namespace="test")


@pytest.fixture
def metrics():
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def config():
    return BookingConfig(hold_window=timedelta(minutes=10))


@pytest.fixture
def engine(store, directory, config, clock, metrics):
    return ReservationEngine(
        store,
        directory,
        config=config,
        clock=clock,
        metrics=metrics,
    )


@pytest.fixture
def price():
    return PRICE
