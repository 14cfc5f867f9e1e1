"""
Event Types for the Event Tracking System

Actions that get extra processing when they are tracked.
"""

from enum import Enum


class EventAction(Enum):
    """Actions with dedicated handling.

    Any other action that passes validation is stored as a plain track.
    """

    OBJECT_VISITED = "objectVisited"

    @classmethod
    def is_visit(cls, action: str) -> bool:
        """Check if an action string records an object visit."""
        return action == cls.OBJECT_VISITED.value
