"""
Event Tracker

Main class for handling tracking operations: validating and normalizing
tracks, fanning them out to the list store, relaying visits to third
parties and serving the per-user read paths.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from app.errors import ConfigurationError, PartialWriteError, RelayError, StoreError
from app.relay.webhook import WebhookRelay, render_endpoint
from app.store.client import ListStore, StoreDiagnostics, StoreNamespace
from .event_types import EventAction
from .models import Event, PendingWrite, RequestMetadata, TrackResult, WriteOutcome
from .normalizer import build_event
from .validation import validate_read_request, validate_write_request


class EventTracker:
    """Main event tracking system."""

    def __init__(
        self,
        store: ListStore,
        redis_config,
        relay: Optional[WebhookRelay] = None,
        relay_endpoints: Sequence[str] = (),
        diagnostics: Optional[StoreDiagnostics] = None,
        logger: Optional[logging.Logger] = None,
        max_workers: int = 8,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize the event tracker.

        Args:
            store: List store backed by the shared Redis connection
            redis_config: RedisConfig providing the per-key TTL
            relay: Relay for third-party notifications
            relay_endpoints: URL templates notified for visits
            diagnostics: Store diagnostics reporter
            logger: Log sink
            max_workers: Size of the write/relay pool
            clock: Source of event timestamps

        Raises:
            ConfigurationError: If the store or its configuration is missing
        """
        if store is None:
            raise ConfigurationError("Redis is not connected")
        if redis_config is None:
            raise ConfigurationError("Config is not set")

        self.store = store
        self.redis_config = redis_config
        self.relay = relay
        self.relay_endpoints = list(relay_endpoints)
        self.diagnostics = diagnostics
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="track")
        self._relay_executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="relay")

    def writes_for_event(self, event: Event) -> List[PendingWrite]:
        """List the appends a track fans out to."""
        serialized = event.to_json()
        ttl = self.redis_config.ttl
        writes = [
            PendingWrite(StoreNamespace.TRACKS, None, serialized),
            PendingWrite(StoreNamespace.USERS, event.subject_id, serialized, ttl),
        ]
        if EventAction.is_visit(event.action):
            writes.append(PendingWrite(StoreNamespace.VISITS, event.subject_id, event.item_id, ttl))
        return writes

    def relays_for_event(self, event: Event) -> List[str]:
        """Render the third-party URLs to notify for a track."""
        if self.relay is None or not EventAction.is_visit(event.action):
            return []
        return [render_endpoint(template, event) for template in self.relay_endpoints]

    def record_event(
        self,
        body: Union[str, bytes, Mapping[str, Any], None],
        metadata: Optional[RequestMetadata] = None
    ) -> TrackResult:
        """Validate, normalize and store a track.

        All writes run concurrently and the call waits for every one of
        them. Writes that landed are kept when another one fails.

        Args:
            body: Raw POST body or parsed payload
            metadata: Details of the inbound request

        Returns:
            TrackResult with per-key outcomes and pending relay futures

        Raises:
            InvalidPayload: If the body fails validation
            PartialWriteError: If any write failed
        """
        metadata = metadata or RequestMetadata()
        payload = validate_write_request(body)
        event = build_event(payload, metadata, clock=self.clock)

        futures: Dict[Future, str] = {}
        for write in self.writes_for_event(event):
            key = ListStore.key_for(write.namespace, write.subject_id)
            future = self._executor.submit(
                self.store.append, write.namespace, write.subject_id, write.value, write.ttl
            )
            futures[future] = key

        # Relays run on their own pool, apart from the writes.
        relays = [self._relay_executor.submit(self._relay, url) for url in self.relays_for_event(event)]

        outcomes: List[WriteOutcome] = []
        first_failure: Optional[StoreError] = None
        for future in as_completed(futures):
            key = futures[future]
            try:
                future.result()
            except StoreError as exc:
                outcomes.append(WriteOutcome(key=key, succeeded=False, error=exc))
                first_failure = first_failure or exc
            else:
                outcomes.append(WriteOutcome(key=key, succeeded=True))

        if first_failure is not None:
            landed = [o.key for o in outcomes if o.succeeded]
            self.logger.error(
                "%s track of %s failed: %s (landed: %s)",
                metadata.client_ip, event.subject_id, first_failure, landed or "none"
            )
            raise PartialWriteError(first_failure, outcomes)

        self.logger.info("%s data stored", metadata.client_ip)
        return TrackResult(event=event, writes=outcomes, relays=relays)

    def _relay(self, url: str) -> Optional[Any]:
        try:
            return self.relay.notify(url)
        except RelayError as exc:
            # Relay failures never reach the track caller.
            self.logger.warning("Relay skipped: %s", exc)
            return None

    def get_visit_history(self, uid: Optional[str]) -> List[str]:
        """Get item ids visited by a user, most recent first."""
        uid = validate_read_request(None if uid is None else {"uid": uid})
        visits = self.store.range(ListStore.key_for(StoreNamespace.VISITS, uid))
        self.logger.info("%s visits are %s", uid, visits)
        return visits

    def get_profile(self, uid: Optional[str]) -> List[str]:
        """Get the raw stored tracks of a user, most recent first."""
        uid = validate_read_request(None if uid is None else {"uid": uid})
        profile = self.store.range(ListStore.key_for(StoreNamespace.USERS, uid))
        self.logger.info("%s profile is %s", uid, profile)
        return profile

    def health_check(self) -> bool:
        """Report process liveness; independent of the store."""
        self.logger.debug("HealthCheck handled")
        return True

    def store_diagnostics(self) -> Dict[str, Any]:
        """Get Redis server metadata over a dedicated connection."""
        if self.diagnostics is None:
            raise ConfigurationError("Store diagnostics are not configured")
        return self.diagnostics.server_info()

    def close(self) -> None:
        """Stop the write and relay pools."""
        self._executor.shutdown(wait=True)
        self._relay_executor.shutdown(wait=True)
