"""
Integration fixtures backed by fakeredis.

The Lua scripts run inside fakeredis through lupa. When either package is
missing the integration tests are skipped.

Requirements:
    - fakeredis>=2.26.0
    - lupa>=2.0
"""

from __future__ import annotations

import pytest

try:
    import fakeredis.aioredis as fakeredis
except ImportError:
    fakeredis = None

try:
    import lupa
except ImportError:
    lupa = None

from seat_booking import MemoryBookingStore

REDIS_AVAILABLE = fakeredis is not None and lupa is not None


@pytest.fixture(params=["memory", "redis"])
async def any_store(request):
    """Each store implementation in turn; Redis runs on fakeredis."""
    if request.param == "memory":
        yield MemoryBookingStore(namespace="itest")
        return

    if not REDIS_AVAILABLE:
        pytest.skip("fakeredis and lupa are required for Redis integration tests")

    from seat_booking.backends.redis import RedisBookingStore

    # The store expects string responses
    client = fakeredis.FakeRedis(decode_responses=True)
    async with RedisBookingStore(redis_client=client, namespace="itest") as store:
        yield store
    await client.aclose()
