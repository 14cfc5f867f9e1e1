"""
Factory for creating health check module.
"""
from .routes import create_healthcheck_blueprint


def create_healthcheck_module(event_tracker) -> dict:
    """Create health check module with routes.

    Args:
        event_tracker: Service the checks are answered by

    Returns:
        Dictionary containing the blueprint
    """
    return {
        "blueprint": create_healthcheck_blueprint(event_tracker)
    }
