"""
Event normalization.

Turns a validated payload plus request metadata into an immutable Event.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional
from urllib.parse import unquote

from .models import Event, RequestMetadata


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_timestamp(moment: datetime) -> str:
    """Format a moment as UTC ISO-8601 with millisecond precision."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_event(
    payload: Mapping[str, Any],
    metadata: Optional[RequestMetadata] = None,
    clock: Optional[Callable[[], datetime]] = None
) -> Event:
    """Build the canonical Event for a validated payload.

    Args:
        payload: Output of validate_write_request
        metadata: Details of the inbound request
        clock: Source of the receipt time; caller timestamps are ignored

    Returns:
        Event with a server-assigned timestamp
    """
    metadata = metadata or RequestMetadata()
    now = (clock or _utc_now)()
    data = payload.get("data") or {}

    return Event(
        subject_id=payload["uid"],
        action=payload["action"],
        item_id=data["id"],
        timestamp=iso_timestamp(now),
        site=payload.get("site") or None,
        url=unquote(payload["url"]) if payload.get("url") else None,
        referrer=payload.get("referrer") or metadata.referer_header or None,
        custom_data=dict(data)
    )


def referrer_from_headers(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    """Return the Referrer (or Referer) header, or None."""
    if not headers:
        return None
    return headers.get("referrer") or headers.get("Referrer") \
        or headers.get("referer") or headers.get("Referer") or None


def client_ip(headers: Optional[Mapping[str, str]], remote_addr: Optional[str]) -> str:
    """Get client IP address, handling proxy headers."""
    ip = "unknown"
    forwarded = headers.get("X-Forwarded-For") if headers else None
    if forwarded:
        ip = forwarded.split(",")[0].strip()
    elif remote_addr:
        ip = remote_addr
    return ip.replace("::ffff:", "")


def metadata_from_request(request) -> RequestMetadata:
    """Extract RequestMetadata from a Flask request."""
    return RequestMetadata(
        referer_header=referrer_from_headers(request.headers),
        client_ip=client_ip(request.headers, request.remote_addr),
        user_agent=request.headers.get("User-Agent")
    )
