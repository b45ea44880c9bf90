# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
RedisBookingStore for the Seat Booking Engine

This module provides the RedisBookingStore that keeps reservations in Redis
and applies every mutation through an atomic Lua script.

Key Features:
- Atomic check-and-insert across the id index and the seat index
- Compare-and-set transitions evaluated server-side
- Automatic script reload after a Redis restart (NoScriptError)
- Per-seat reservation history

Key layout (``<p>`` is ``sb:<namespace>``):
- ``<p>:booking:<booking_id>``: hash with state, expires_us, ext and data
- ``<p>:seat:<flight>:<row>:<seat>:current``: booking id of the latest record
- ``<p>:seat:<flight>:<row>:<seat>:history``: list of booking ids, oldest first

Keys are not hash-tagged; the store targets a single Redis node.
"""

import asyncio
import contextlib
import logging
import os
from collections.abc import Awaitable, Iterator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, ClassVar, cast

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError,
    NoScriptError,
    RedisError,
    ResponseError,
    TimeoutError,
)

from ..exceptions import StoreConnectionError, StoreOperationError
from ..types.reservation import Reservation, ReservationState
from ..types.seat import SeatLocation
from .base import (
    BaseBookingStore,
    HealthCheckResult,
    InsertStatus,
    transition_precondition_holds,
    validate_transition_request,
)

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)

# Lua insert status codes
_INSERT_STATUS = {
    0: InsertStatus.INSERTED,
    1: InsertStatus.SEAT_TAKEN,
    2: InsertStatus.ID_COLLISION,
}


def _to_micros(value: datetime | None) -> str:
    """Encode a timezone-aware datetime as epoch microseconds for Lua."""
    if value is None:
        return ""
    return str((value - _EPOCH) // _MICROSECOND)


class RedisBookingStore(BaseBookingStore):
    """
    A distributed Redis booking store.

    This store uses:
    - One hash per reservation, keyed by booking id
    - A current-record pointer and a history list per seat
    - Atomic Lua scripts for insert and transition

    Deployment Requirements:
    - Redis 4.0+ (multi-field HSET)
    - A single Redis node or a primary; cluster mode is not supported
    """

    # Class-level Lua scripts loaded from files
    _lua_scripts: ClassVar[dict[str, str]] = {}

    SCRIPT_NAMES: ClassVar[tuple[str, ...]] = (
        "booking_insert",
        "booking_transition",
    )

    # Retries when a concurrent extend changed the counter under a snapshot
    DEFAULT_MAX_CAS_ATTEMPTS = 5

    @classmethod
    def _load_lua_scripts(cls) -> None:
        """Load Lua scripts from files at class level."""
        if cls._lua_scripts:
            return  # Already loaded

        lua_dir = Path(__file__).parent / "lua"

        for script_name in cls.SCRIPT_NAMES:
            script_path = lua_dir / f"{script_name}.lua"
            if script_path.exists():
                cls._lua_scripts[script_name] = script_path.read_text(encoding="utf-8")
            else:
                logger.warning(f"Lua script not found: {script_path}")

    def __init__(
        self,
        redis_url: str | None = None,
        redis_client: Any | None = None,
        namespace: str = "seat_booking",
        max_connections: int = 10,
        max_cas_attempts: int = DEFAULT_MAX_CAS_ATTEMPTS,
    ) -> None:
        """
        Initialize the Redis booking store.

        Args:
            redis_url: Redis connection URL. If not provided, falls back to REDIS_URL
                environment variable, then to "redis://localhost:6379".
            redis_client: Optional pre-configured Redis client. It must be
                created with ``decode_responses=True``.
            namespace: Namespace prefix for keys
            max_connections: Maximum connections in the client pool
            max_cas_attempts: Transition retries when only the extension
                counter moved under the caller's snapshot

        Environment Variables:
            REDIS_URL: Default Redis connection URL when redis_url parameter is not provided.
        """
        super().__init__(namespace)

        self.redis_url = (
            redis_url or os.environ.get("REDIS_URL") or "redis://localhost:6379"
        )
        self.max_connections = max_connections
        self.max_cas_attempts = max_cas_attempts

        # Redis client state
        self._redis: Any | None = redis_client
        self._owned_redis = redis_client is None
        self._connected = False
        self._connection_lock = asyncio.Lock()

        # Lua script SHAs
        self._script_shas: dict[str, str] = {}

        # Key prefixes
        self.key_prefix = f"sb:{namespace}"
        self.booking_key_prefix = f"{self.key_prefix}:booking:"

    def _get_booking_key(self, booking_id: str) -> str:
        """Get Redis key for a reservation hash."""
        return f"{self.booking_key_prefix}{booking_id}"

    def _get_seat_current_key(self, seat: SeatLocation) -> str:
        """Get Redis key for a seat's current-record pointer."""
        return f"{self.key_prefix}:seat:{seat.key}:current"

    def _get_seat_history_key(self, seat: SeatLocation) -> str:
        """Get Redis key for a seat's history list."""
        return f"{self.key_prefix}:seat:{seat.key}:history"

    @contextlib.contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        """Log Redis failures and re-raise them as store exceptions."""
        try:
            yield
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Redis connection error during {operation}: {e}")
            raise StoreConnectionError(f"Redis unavailable during {operation}") from e
        except (ResponseError, RedisError) as e:
            logger.error(f"Redis error during {operation}: {e}")
            raise StoreOperationError(f"Redis {operation} failed: {e}") from e
        except ValidationError as e:
            logger.error(f"Corrupted reservation record during {operation}: {e}")
            raise StoreOperationError(
                f"Stored reservation is invalid during {operation}"
            ) from e

    async def _ensure_connected(self) -> Any:
        """Ensure a verified Redis connection with scripts loaded."""
        if self._redis is not None and self._connected:
            return self._redis

        async with self._connection_lock:
            if self._redis is not None and self._connected:
                return self._redis

            if self._redis is None:
                self._redis = Redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    max_connections=self.max_connections,
                )

            try:
                await asyncio.wait_for(
                    cast(Awaitable[bool], self._redis.ping()), timeout=5.0
                )
                await asyncio.wait_for(self._load_scripts(), timeout=10.0)
            except asyncio.TimeoutError as e:
                logger.warning("Redis connection/script load timed out")
                if self._owned_redis:
                    self._redis = None
                raise StoreConnectionError("Timed out connecting to Redis") from e

            self._connected = True
            logger.info(f"Connected booking store '{self.namespace}' to Redis")
            return self._redis

    async def _cleanup_connection(self, connection: Any, timeout: float = 2.5) -> None:
        """Clean up Redis connection with timeout protection."""
        try:
            if hasattr(connection, "aclose"):
                await asyncio.wait_for(connection.aclose(), timeout=timeout)
            elif hasattr(connection, "close"):
                await asyncio.wait_for(connection.close(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Connection cleanup timed out")
        except Exception as e:
            logger.error(f"Error during connection cleanup: {e}")

    async def _load_scripts(self) -> None:
        """Load Lua scripts into Redis."""
        if not self._redis:
            raise RuntimeError("Redis client not initialized")

        self.__class__._load_lua_scripts()

        for script_name, script_source in self._lua_scripts.items():
            self._script_shas[script_name] = await self._redis.script_load(
                script_source
            )

    async def _evalsha_with_reload(
        self,
        redis_client: Any,
        script_name: str,
        num_keys: int,
        *args: Any,
    ) -> Any:
        """
        Execute EVALSHA with automatic script reload on NoScriptError.

        When Redis restarts, all Lua scripts are lost. This method detects the
        NoScriptError and transparently reloads the scripts, then retries the
        operation once.

        Args:
            redis_client: The Redis client to use
            script_name: Name of the Lua script (key in _lua_scripts)
            num_keys: Number of KEYS arguments
            *args: Keys and arguments for the script

        Returns:
            Result from evalsha

        Raises:
            NoScriptError: If reload and retry also fails
            Other Redis exceptions: Passed through unchanged
        """
        script_sha = self._script_shas.get(script_name)
        if not script_sha:
            await self._load_scripts()
            script_sha = self._script_shas[script_name]

        try:
            return await redis_client.evalsha(script_sha, num_keys, *args)
        except NoScriptError:
            logger.warning(
                f"Script '{script_name}' not found in Redis (SHA: {script_sha}). "
                f"Reloading all Lua scripts..."
            )
            self._script_shas.clear()
            await self._load_scripts()

            # Retry with new SHA (only once to prevent infinite loop)
            new_sha = self._script_shas[script_name]
            logger.info(f"Scripts reloaded. Retrying with new SHA: {new_sha}")
            return await redis_client.evalsha(new_sha, num_keys, *args)

    # === Record Lookup ===

    async def _read(self, redis_client: Any, booking_id: str) -> Reservation | None:
        data = await redis_client.hget(self._get_booking_key(booking_id), "data")
        if data is None:
            return None
        return Reservation.model_validate_json(data)

    async def get(self, booking_id: str) -> Reservation | None:
        """Get a reservation by booking id."""
        with self._translate_errors("get"):
            redis_client = await self._ensure_connected()
            return await self._read(redis_client, booking_id)

    async def get_current_for_seat(self, seat: SeatLocation) -> Reservation | None:
        """Get the most recent reservation for a seat."""
        with self._translate_errors("get_current_for_seat"):
            redis_client = await self._ensure_connected()
            booking_id = await redis_client.get(self._get_seat_current_key(seat))
            if booking_id is None:
                return None
            return await self._read(redis_client, booking_id)

    async def history_for_seat(self, seat: SeatLocation) -> list[Reservation]:
        """Get every reservation for a seat, oldest first."""
        with self._translate_errors("history_for_seat"):
            redis_client = await self._ensure_connected()
            booking_ids = await redis_client.lrange(
                self._get_seat_history_key(seat), 0, -1
            )
            history = []
            for booking_id in booking_ids:
                record = await self._read(redis_client, booking_id)
                if record is not None:
                    history.append(record)
            return history

    # === Atomic Mutations ===

    async def insert(
        self, reservation: Reservation
    ) -> tuple[InsertStatus, Reservation | None]:
        """Atomically insert a new reservation."""
        with self._translate_errors("insert"):
            redis_client = await self._ensure_connected()
            result = await self._evalsha_with_reload(
                redis_client,
                "booking_insert",
                3,
                self._get_booking_key(reservation.booking_id),
                self._get_seat_current_key(reservation.seat),
                self._get_seat_history_key(reservation.seat),
                reservation.booking_id,
                reservation.state.value,
                _to_micros(reservation.expires_at),
                str(reservation.extension_count),
                reservation.model_dump_json(),
                self.booking_key_prefix,
            )

            status = _INSERT_STATUS.get(int(result[0]))
            if status is None:
                raise StoreOperationError(f"Unexpected insert result: {result!r}")

            if status is InsertStatus.INSERTED:
                return status, reservation
            if status is InsertStatus.SEAT_TAKEN:
                logger.debug(
                    f"Seat {reservation.seat.key} occupied, rejecting "
                    f"{reservation.booking_id}"
                )
                return status, Reservation.model_validate_json(result[1])

            logger.warning(f"Booking id collision on {reservation.booking_id}")
            return status, None

    async def transition(
        self,
        booking_id: str,
        expected_state: ReservationState,
        new_state: ReservationState,
        *,
        now: datetime,
        require_live: bool | None = None,
        expires_at: datetime | None = None,
        extension_count: int | None = None,
        expected_extension_count: int | None = None,
    ) -> tuple[bool, Reservation | None]:
        """Atomically move a reservation between states."""
        validate_transition_request(expected_state, new_state, expires_at)

        live_flag = "" if require_live is None else ("1" if require_live else "0")

        with self._translate_errors("transition"):
            redis_client = await self._ensure_connected()
            booking_key = self._get_booking_key(booking_id)

            for _attempt in range(self.max_cas_attempts):
                current = await self._read(redis_client, booking_id)
                if current is None:
                    return False, None
                if not transition_precondition_holds(
                    current,
                    expected_state,
                    now,
                    require_live,
                    expected_extension_count,
                ):
                    return False, current

                updated = current.transitioned(
                    new_state,
                    at=now,
                    expires_at=expires_at,
                    extension_count=extension_count,
                )
                result = await self._evalsha_with_reload(
                    redis_client,
                    "booking_transition",
                    1,
                    booking_key,
                    expected_state.value,
                    new_state.value,
                    _to_micros(now),
                    live_flag,
                    str(current.extension_count),
                    _to_micros(updated.expires_at),
                    str(updated.extension_count),
                    updated.model_dump_json(),
                )

                code = int(result[0])
                if code == 1:
                    logger.debug(
                        f"Booking {booking_id}: {expected_state.value} -> "
                        f"{new_state.value}"
                    )
                    return True, updated
                if code == -1:
                    return False, None

                reason = result[2]
                if reason == "ext" and expected_extension_count is None:
                    # Counter moved under our snapshot; rebuild and retry
                    logger.debug(f"Booking {booking_id} changed concurrently, retrying")
                    continue
                return False, Reservation.model_validate_json(result[1])

            raise StoreOperationError(
                f"Transition of {booking_id} did not settle after "
                f"{self.max_cas_attempts} attempts"
            )

    # === Health and Monitoring ===

    async def health_check(self) -> HealthCheckResult:
        """Perform health check on the store."""
        try:
            redis_client = await self._ensure_connected()
            await redis_client.ping()
            info = await redis_client.info()

            return HealthCheckResult(
                healthy=True,
                backend_type="redis",
                namespace=self.namespace,
                metadata={
                    "redis_url": self.redis_url,
                    "connected": self._connected,
                    "redis_version": info.get("redis_version"),
                    "used_memory": info.get("used_memory_human"),
                    "connected_clients": info.get("connected_clients"),
                    "scripts_loaded": sorted(self._script_shas),
                },
            )
        except Exception as e:
            return HealthCheckResult(
                healthy=False,
                backend_type="redis",
                namespace=self.namespace,
                error=str(e),
            )

    async def get_all_stats(self) -> dict[str, Any]:
        """Get all statistics from the store.

        Uses SCAN instead of KEYS to avoid blocking Redis during large keyspace scans.
        """
        with self._translate_errors("get_all_stats"):
            redis_client = await self._ensure_connected()
            by_state = {state.value: 0 for state in ReservationState}
            total = 0
            async for key in redis_client.scan_iter(
                match=f"{self.booking_key_prefix}*", count=100
            ):
                state = await redis_client.hget(key, "state")
                if state in by_state:
                    by_state[state] += 1
                total += 1

            return {
                "backend_type": "redis",
                "namespace": self.namespace,
                "connected": self._connected,
                "reservations_count": total,
                "reservations_by_state": by_state,
            }

    # === Cleanup and Maintenance ===

    async def clear(self) -> None:
        """Remove every key under this store's namespace."""
        with self._translate_errors("clear"):
            redis_client = await self._ensure_connected()
            keys_to_delete = []
            async for key in redis_client.scan_iter(
                match=f"{self.key_prefix}:*", count=100
            ):
                keys_to_delete.append(key)
                if len(keys_to_delete) >= 100:
                    await redis_client.delete(*keys_to_delete)
                    keys_to_delete = []
            if keys_to_delete:
                await redis_client.delete(*keys_to_delete)

    async def cleanup(self) -> None:
        """Clean up store resources."""
        if self._redis and self._owned_redis:
            try:
                await self._cleanup_connection(self._redis, timeout=2.5)
            finally:
                self._redis = None
        self._connected = False

    async def __aenter__(self) -> "RedisBookingStore":
        """Async context manager entry."""
        await self._ensure_connected()
        return self


__all__ = ["RedisBookingStore"]
