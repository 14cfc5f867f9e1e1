"""
Data Models for Event Tracking

Defines the data structures used by the event tracking system.
"""

import json
from concurrent.futures import Future
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

from app.errors import StoreError
from app.store.client import StoreNamespace


def _freeze(value: Any) -> Any:
    """Return a read-only view of nested dicts and lists."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class RequestMetadata:
    """Transport details of the inbound request."""

    referer_header: Optional[str] = None
    client_ip: str = "unknown"
    user_agent: Optional[str] = None


@dataclass(frozen=True)
class Event:
    """Canonical track record, built once per write request."""

    subject_id: str
    action: str
    item_id: str
    timestamp: str
    site: Optional[str] = None
    url: Optional[str] = None
    referrer: Optional[str] = None
    custom_data: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "custom_data", _freeze(dict(self.custom_data or {})))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the stored wire shape."""
        return {
            "uid": self.subject_id,
            "itemId": self.item_id,
            "timestamp": self.timestamp,
            "action": self.action,
            "site": self.site,
            "url": self.url,
            "referrer": self.referrer,
            "customData": _thaw(self.custom_data)
        }

    def to_json(self) -> str:
        """Serialize for storage."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(frozen=True)
class PendingWrite:
    """One list append a track fans out to."""

    namespace: StoreNamespace
    subject_id: Optional[str]
    value: str
    ttl: Optional[int] = None


@dataclass
class WriteOutcome:
    """Result of a single append."""

    key: str
    succeeded: bool
    error: Optional[StoreError] = None


@dataclass
class TrackResult:
    """Result of a stored track."""

    event: Event
    writes: List[WriteOutcome] = field(default_factory=list)
    relays: List[Future] = field(default_factory=list)
