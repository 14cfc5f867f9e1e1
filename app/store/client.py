"""
List store access.

ListStore appends to and reads Redis lists through the shared
StoreConnection. StoreDiagnostics uses its own short-lived client so a
broken diagnostic never affects serving traffic.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

import redis

from app.errors import StoreError, StoreErrorKind
from .connection import StoreConnection

logger = logging.getLogger(__name__)


class StoreNamespace(Enum):
    """Key prefixes partitioning the list store."""

    USERS = "users"
    TRACKS = "tracks"
    VISITS = "visits"


class ListStore:
    """Append-with-TTL and range reads over Redis lists."""

    def __init__(self, connection: StoreConnection, atomic_expire: bool = False):
        """
        Args:
            connection: Shared store connection
            atomic_expire: Run LPUSH and EXPIRE in a single MULTI/EXEC
        """
        self.connection = connection
        self.atomic_expire = atomic_expire

    @staticmethod
    def key_for(namespace: StoreNamespace, subject_id: Optional[str] = None) -> str:
        """Compose a store key."""
        if subject_id is None:
            return namespace.value
        return f"{namespace.value}_{subject_id}"

    def append(
        self,
        namespace: StoreNamespace,
        subject_id: Optional[str],
        value: str,
        ttl: Optional[int] = None
    ) -> int:
        """Push value to the head of the list and optionally set its expiry.

        Without atomic_expire the push and the expiry are two commands. If
        the expiry fails the call fails, but the pushed value stays.

        Returns:
            Length of the list after the push
        """
        key = self.key_for(namespace, subject_id)

        if ttl and self.atomic_expire:
            def push_and_expire(client):
                pipe = client.pipeline(transaction=True)
                pipe.lpush(key, value)
                pipe.expire(key, ttl)
                return pipe.execute()[0]

            length = self._run(key, push_and_expire, f"saving {value}")
            logger.debug("Data %s saved to %s with expire %s, reply %s", value, key, ttl, length)
            return length

        length = self._run(key, lambda client: client.lpush(key, value), f"saving {value}")
        logger.debug("Data %s saved to %s, reply %s", value, key, length)

        if ttl:
            reply = self._run(key, lambda client: client.expire(key, ttl), f"setting expire {ttl}")
            logger.debug("Key %s expire in %s, reply %s", key, ttl, reply)

        return length

    def range(self, key: str) -> List[str]:
        """Return the whole list, most recently appended first."""
        reply = self._run(key, lambda client: client.lrange(key, 0, -1), "loading data")
        logger.debug("Data loaded from %s, reply %s", key, reply)
        return list(reply or [])

    def _run(self, key: str, operation, description: str):
        try:
            return self.connection.execute(operation)
        except StoreError as exc:
            logger.error("Failed %s to %s, %s", description, key, exc)
            raise


class StoreDiagnostics:
    """Reports Redis server metadata over a dedicated connection."""

    def __init__(self, redis_config, client_factory: Optional[Callable[[], redis.Redis]] = None):
        self.redis_config = redis_config
        self._client_factory = client_factory or self._create_client

    def _create_client(self) -> redis.Redis:
        timeout = self.redis_config.connection_timeout_ms / 1000.0
        return redis.Redis(
            host=self.redis_config.host,
            port=self.redis_config.port,
            db=self.redis_config.db,
            decode_responses=True,
            socket_connect_timeout=timeout,
            socket_timeout=timeout,
            retry_on_timeout=False
        )

    def server_info(self) -> dict:
        """Open a connection, read INFO and close it again."""
        client = self._client_factory()
        try:
            info = client.info()
        except redis.TimeoutError as exc:
            raise StoreError(StoreErrorKind.TIMEOUT, str(exc)) from exc
        except redis.ConnectionError as exc:
            raise StoreError(StoreErrorKind.CONNECTION_LOST, str(exc)) from exc
        except redis.RedisError as exc:
            raise StoreError(StoreErrorKind.PROTOCOL_ERROR, str(exc)) from exc
        finally:
            client.close()

        logger.info("Redis info served: version %s", info.get("redis_version"))
        return info
