"""
Reconnect policy for the Redis connection.

The policy is a pure decision: given the history of the current failure
sequence it says how long to wait before the next attempt, that the
connection should be abandoned quietly, or (by raising) that the failure
is terminal.
"""

from dataclasses import dataclass
from typing import Optional

from app.errors import StoreError, StoreErrorKind

CONNECTION_REFUSED = "ECONNREFUSED"


@dataclass(frozen=True)
class ConnectionAttempt:
    """State of a reconnect sequence, reset after a successful connection."""

    attempt: int
    total_retry_time_ms: int
    error_code: str
    times_connected: int = 0


class ReconnectPolicy:
    """Decides what happens after a failed connection attempt."""

    def __init__(
        self,
        connection_timeout_ms: int,
        connection_maximum_attempts: int,
        connection_attempts_interval_ms: int
    ):
        self.connection_timeout_ms = connection_timeout_ms
        self.connection_maximum_attempts = connection_maximum_attempts
        self.connection_attempts_interval_ms = connection_attempts_interval_ms

    @classmethod
    def from_config(cls, redis_config) -> 'ReconnectPolicy':
        """Create a policy from a RedisConfig."""
        return cls(
            connection_timeout_ms=redis_config.connection_timeout_ms,
            connection_maximum_attempts=redis_config.connection_maximum_attempts,
            connection_attempts_interval_ms=redis_config.connection_attempts_interval_ms
        )

    def next_delay(self, attempt: ConnectionAttempt) -> Optional[int]:
        """Return milliseconds to wait before reconnecting.

        Returns:
            The configured interval, or None when reconnecting should stop
            without raising an error

        Raises:
            StoreError: When the failure is terminal
        """
        if attempt.error_code == CONNECTION_REFUSED:
            raise StoreError(StoreErrorKind.CONNECTION_LOST, "The server refused the connection")

        if attempt.total_retry_time_ms > self.connection_timeout_ms:
            raise StoreError(
                StoreErrorKind.CONNECTION_LOST,
                f"Retry time {self.connection_timeout_ms}ms exhausted"
            )

        # Both thresholds must be cleared; the caller only sees the state change.
        if (attempt.attempt > self.connection_maximum_attempts
                and attempt.times_connected > self.connection_maximum_attempts):
            return None

        return self.connection_attempts_interval_ms
