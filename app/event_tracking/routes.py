"""
Event Tracking Routes

Flask routes for storing tracks and reading per-user data.
"""

import logging

from flask import Blueprint, request, jsonify

from app.errors import TrackingError
from .event_tracker import EventTracker
from .normalizer import metadata_from_request

logger = logging.getLogger(__name__)


def create_event_tracking_blueprint(event_tracker: EventTracker):
    """Create a Flask blueprint for event tracking routes.

    Args:
        event_tracker: Service handling the tracking operations

    Returns:
        Flask blueprint with event tracking routes
    """
    bp = Blueprint('event_tracking', __name__)

    @bp.route("/tracks", methods=["POST"])
    def track():
        """Store a track."""
        metadata = metadata_from_request(request)
        try:
            event_tracker.record_event(request.get_data(as_text=True), metadata)
        except TrackingError as exc:
            logger.error("%s %s", metadata.client_ip, exc)
            return str(exc), 400
        return "Track stored", 201

    @bp.route("/users/<uid>/visited", methods=["GET"])
    def user_visited_objects(uid):
        """Return item ids the user visited."""
        try:
            visits = event_tracker.get_visit_history(uid)
        except TrackingError as exc:
            logger.error("%s %s", metadata_from_request(request).client_ip, exc)
            return str(exc), 400
        return jsonify(visits), 200

    @bp.route("/users/<uid>", methods=["GET"])
    def user_profile(uid):
        """Return the user's stored tracks."""
        try:
            profile = event_tracker.get_profile(uid)
        except TrackingError as exc:
            logger.error("%s %s", metadata_from_request(request).client_ip, exc)
            return str(exc), 400
        return jsonify(profile), 200

    return bp
