import argparse
import logging
from typing import Optional

from flask import Flask, request

from config_manager import ConfigManager
from app.event_tracking.normalizer import client_ip
from app.logging_config import setup_logging

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Application factory
# -----------------------------------------------------------------------------

def create_app(
    config_manager: Optional[ConfigManager] = None,
    event_tracking_module: Optional[dict] = None,
    configure_logging: bool = True
) -> Flask:
    """Create the Flask application.

    Args:
        config_manager: Settings source; the default config file is used if omitted
        event_tracking_module: Prebuilt event tracking module (service, connection,
            blueprint); built from config_manager if omitted
        configure_logging: Whether to set up the logging sink from config

    Returns:
        Flask application with all blueprints registered
    """
    from app.event_tracking.factory import create_event_tracking_module
    from app.healthcheck.factory import create_healthcheck_module

    config_manager = config_manager or ConfigManager()
    server_config = config_manager.get_server_config()

    if configure_logging:
        log_config = config_manager.get_log_config()
        setup_logging(log_config.level, log_config.enabled)

    app = Flask(server_config.name)
    app.config["SERVER_CONFIG"] = server_config

    # -------------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------------

    if event_tracking_module is None:
        event_tracking_module = create_event_tracking_module(config_manager)

    healthcheck_module = create_healthcheck_module(event_tracking_module["service"])

    app.extensions["event_tracking"] = event_tracking_module
    app.register_blueprint(event_tracking_module["blueprint"])
    app.register_blueprint(healthcheck_module["blueprint"])

    # -------------------------------------------------------------------------
    # Request logging and CORS
    # -------------------------------------------------------------------------

    @app.before_request
    def log_request():
        logger.info(
            '%s "%s %s" "%s" "%s"',
            client_ip(request.headers, request.remote_addr),
            request.method,
            request.full_path.rstrip("?"),
            request.headers.get("User-Agent", "-"),
            request.headers.get("Referer", "-")
        )

    @app.after_request
    def finish_response(response):
        origin = request.headers.get("Origin")
        if origin and ("*" in server_config.origins or origin in server_config.origins):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        logger.info(
            "%s response %s",
            client_ip(request.headers, request.remote_addr),
            response.status_code
        )
        return response

    return app


def shutdown_app(app: Flask) -> None:
    """Stop the tracking worker pools and close the shared Redis connection."""
    module = app.extensions.get("event_tracking")
    if module is None:
        return
    module["service"].close()
    module["connection"].close()
    logger.info("Tracking service stopped")


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Track ingestion service")
    parser.add_argument("--port", type=int, help="Port to run the server on")
    parser.add_argument("--host", type=str, help="Host to bind the server to")
    parser.add_argument("--debug", action="store_true", help="Enable debug mode")
    args = parser.parse_args()

    manager = ConfigManager()
    server_config = manager.get_server_config()

    if args.port:
        server_config.port = args.port
    if args.host:
        server_config.host = args.host

    app = create_app(manager)
    ssl_context = None
    if server_config.certificate and server_config.key:
        ssl_context = (server_config.certificate, server_config.key)

    logger.info("Listening on port %s", server_config.port)
    try:
        app.run(
            host=server_config.host,
            port=server_config.port,
            debug=args.debug or server_config.debug,
            ssl_context=ssl_context
        )
    finally:
        shutdown_app(app)
