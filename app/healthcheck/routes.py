"""
Health Check Routes

Liveness of the process and a diagnostic view of the Redis server.
"""

import json
import logging

from flask import Blueprint

from app.errors import TrackingError

logger = logging.getLogger(__name__)


def create_healthcheck_blueprint(event_tracker):
    """Create a Flask blueprint for health check routes.

    Args:
        event_tracker: Service exposing health_check and store_diagnostics

    Returns:
        Flask blueprint with health check routes
    """
    bp = Blueprint('healthcheck', __name__)

    @bp.get("/healthcheck")
    def healthcheck():
        """Liveness check, independent of the store."""
        event_tracker.health_check()
        return "", 200

    @bp.get("/healthcheck/redis")
    def healthcheck_redis():
        """Report Redis server metadata over a throwaway connection."""
        try:
            info = event_tracker.store_diagnostics()
        except TrackingError as exc:
            logger.error("Redis diagnostics failed: %s", exc)
            return f"Redis connection failure - {exc}", 400
        return f"Redis server info: {json.dumps(info, default=str)}", 200

    return bp
