"""
Factory for creating event tracking module.
"""
from typing import Optional

from app.relay.webhook import WebhookRelay, build_session
from app.store.client import ListStore, StoreDiagnostics
from app.store.connection import StoreConnection
from .event_tracker import EventTracker
from .routes import create_event_tracking_blueprint


def create_event_tracking_module(
    config_manager,
    connection: Optional[StoreConnection] = None,
    diagnostics: Optional[StoreDiagnostics] = None,
    relay: Optional[WebhookRelay] = None
) -> dict:
    """Create event tracking module with service and routes.

    Args:
        config_manager: ConfigManager providing all settings
        connection: Shared store connection, created and connected if omitted
        diagnostics: Diagnostics reporter, created from config if omitted
        relay: Webhook relay, created from config if omitted

    Returns:
        Dictionary containing the service, the connection and the blueprint
    """
    redis_config = config_manager.get_redis_config()
    server_config = config_manager.get_server_config()
    relay_config = config_manager.get_relay_config()

    if connection is None:
        connection = StoreConnection(redis_config)
        connection.connect()

    if relay is None:
        proxy_config = config_manager.get_proxy_config()
        relay = WebhookRelay(
            fetch_config=config_manager.get_fetch_config(),
            proxy_config=proxy_config,
            session=build_session(proxy_config.url if proxy_config.enabled else None)
        )

    event_tracker = EventTracker(
        store=ListStore(connection, atomic_expire=redis_config.atomic_expire),
        redis_config=redis_config,
        relay=relay,
        relay_endpoints=relay_config.endpoints,
        diagnostics=diagnostics or StoreDiagnostics(redis_config),
        max_workers=server_config.max_workers
    )

    blueprint = create_event_tracking_blueprint(event_tracker)

    return {
        "service": event_tracker,
        "connection": connection,
        "blueprint": blueprint
    }
