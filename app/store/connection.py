"""
Connection lifecycle for the shared Redis client.

StoreConnection owns the one client used by every request. When a
connection attempt fails it asks the ReconnectPolicy what to do and
schedules the next attempt on a timer thread, so waiting never blocks
requests. Operations issued while not connected fail straight away.
"""

import errno
import logging
import re
import threading
import time
from enum import Enum
from typing import Callable, Optional, TypeVar

import redis

from app.errors import StoreError, StoreErrorKind
from .reconnect import ConnectionAttempt, ReconnectPolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ERRNO_IN_MESSAGE = re.compile(r"Error (\d+) ")


class ConnectionState(Enum):
    """Lifecycle states of the store connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    TERMINALLY_FAILED = "terminally_failed"
    GAVE_UP = "gave_up"


def error_code_of(exc: BaseException) -> str:
    """Derive an errno-style code (e.g. ECONNREFUSED) from a Redis error."""
    current: Optional[BaseException] = exc
    while current is not None:
        if isinstance(current, OSError) and current.errno in errno.errorcode:
            return errno.errorcode[current.errno]
        current = current.__cause__ or current.__context__

    if isinstance(exc, redis.TimeoutError):
        return "ETIMEDOUT"

    match = _ERRNO_IN_MESSAGE.match(str(exc))
    if match and int(match.group(1)) in errno.errorcode:
        return errno.errorcode[int(match.group(1))]

    return type(exc).__name__


def _schedule_with_timer(delay_seconds: float, callback: Callable[[], None]) -> None:
    timer = threading.Timer(delay_seconds, callback)
    timer.daemon = True
    timer.start()


class StoreConnection:
    """Shared Redis connection governed by a reconnect policy."""

    def __init__(
        self,
        redis_config,
        policy: Optional[ReconnectPolicy] = None,
        client_factory: Optional[Callable[[], redis.Redis]] = None,
        scheduler: Optional[Callable[[float, Callable[[], None]], None]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """Initialize the connection without connecting.

        Args:
            redis_config: RedisConfig with host, port and reconnect settings
            policy: Reconnect policy, built from redis_config by default
            client_factory: Creates a fresh redis client
            scheduler: Runs a callback after a delay in seconds
            clock: Monotonic clock in seconds
        """
        self.redis_config = redis_config
        self.policy = policy or ReconnectPolicy.from_config(redis_config)
        self._client_factory = client_factory or self._create_client
        self._schedule = scheduler or _schedule_with_timer
        self._clock = clock
        self._lock = threading.RLock()
        self._client: Optional[redis.Redis] = None

        self.state = ConnectionState.DISCONNECTED
        self.times_connected = 0
        self.last_error: Optional[StoreError] = None
        self._attempt = 0
        self._first_failure_at: Optional[float] = None

    def _create_client(self) -> redis.Redis:
        timeout = self.redis_config.connection_timeout_ms / 1000.0
        return redis.Redis(
            host=self.redis_config.host,
            port=self.redis_config.port,
            db=self.redis_config.db,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout
        )

    @property
    def is_connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    def connect(self) -> ConnectionState:
        """Start connecting unless a connection is live or in progress."""
        with self._lock:
            if self.state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
                return self.state
            self.state = ConnectionState.CONNECTING
            self._attempt = 0
            self._first_failure_at = None

        self._try_connect()
        return self.state

    def _try_connect(self) -> None:
        with self._lock:
            if self.state is not ConnectionState.CONNECTING:
                return

        client = None
        try:
            client = self._client_factory()
            client.ping()
        except redis.RedisError as exc:
            if client is not None:
                client.close()
            self._on_failure(exc)
            return

        with self._lock:
            if self.state is not ConnectionState.CONNECTING:
                # Closed while the ping was in flight.
                client.close()
                return
            self._client = client
            self.state = ConnectionState.CONNECTED
            self.times_connected += 1
            self._attempt = 0
            self._first_failure_at = None
            self.last_error = None
        logger.info(
            "Connected to Redis %s:%s (connection #%d)",
            self.redis_config.host, self.redis_config.port, self.times_connected
        )

    def _on_failure(self, exc: BaseException) -> None:
        with self._lock:
            if self.state is not ConnectionState.CONNECTING:
                return
            now = self._clock()
            if self._first_failure_at is None:
                self._first_failure_at = now

            attempt = ConnectionAttempt(
                attempt=self._attempt,
                total_retry_time_ms=int((now - self._first_failure_at) * 1000),
                error_code=error_code_of(exc),
                times_connected=self.times_connected
            )
            self._attempt += 1

            try:
                delay_ms = self.policy.next_delay(attempt)
            except StoreError as err:
                self.state = ConnectionState.TERMINALLY_FAILED
                self.last_error = err
                logger.error("Redis connection failed for good: %s (%s)", err.detail, exc)
                return

            if delay_ms is None:
                self.state = ConnectionState.GAVE_UP
                logger.warning(
                    "Redis reconnect abandoned after %d attempts", attempt.attempt
                )
                return

        logger.warning(
            "Redis connection failed (%s), attempt %d, retrying in %dms",
            attempt.error_code, attempt.attempt, delay_ms
        )
        self._schedule(delay_ms / 1000.0, self._try_connect)

    def _connection_lost(self, client: redis.Redis, exc: BaseException) -> None:
        with self._lock:
            if self._client is not client or self.state is not ConnectionState.CONNECTED:
                return
            self._client = None
            self.state = ConnectionState.CONNECTING
            self._attempt = 0
            self._first_failure_at = None
        logger.error("Redis connection lost: %s", exc)
        client.close()
        self._on_failure(exc)

    def execute(self, operation: Callable[[redis.Redis], T]) -> T:
        """Run an operation against the live client.

        Raises:
            StoreError: When not connected or when the command fails
        """
        with self._lock:
            client = self._client if self.state is ConnectionState.CONNECTED else None
            state = self.state
            last_error = self.last_error

        if client is None:
            detail = f"Redis is not connected ({state.value})"
            if last_error is not None:
                detail += f": {last_error.detail}"
            raise StoreError(StoreErrorKind.CONNECTION_LOST, detail)

        try:
            return operation(client)
        except redis.TimeoutError as exc:
            raise StoreError(StoreErrorKind.TIMEOUT, str(exc)) from exc
        except redis.ConnectionError as exc:
            self._connection_lost(client, exc)
            raise StoreError(StoreErrorKind.CONNECTION_LOST, str(exc)) from exc
        except redis.RedisError as exc:
            raise StoreError(StoreErrorKind.PROTOCOL_ERROR, str(exc)) from exc

    def close(self) -> None:
        """Close the client and stop serving."""
        with self._lock:
            client, self._client = self._client, None
            self.state = ConnectionState.DISCONNECTED
        if client is not None:
            client.close()
