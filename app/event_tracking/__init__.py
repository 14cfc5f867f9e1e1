"""
Event Tracking Subsystem

Track ingestion, per-user read paths and their HTTP routes.
"""

from .event_tracker import EventTracker
from .event_types import EventAction
from .models import Event, RequestMetadata, TrackResult

__all__ = ['EventTracker', 'EventAction', 'Event', 'RequestMetadata', 'TrackResult']
