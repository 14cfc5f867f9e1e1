#!/usr/bin/env python3
"""
Simple runner script for the Flask application.
This script ensures the correct Python path is set and runs the app.
"""

import sys
from pathlib import Path

# Add the current directory to Python path
current_dir = Path(__file__).parent
sys.path.insert(0, str(current_dir))

from config_manager import ConfigManager
from app.main import create_app, shutdown_app

if __name__ == "__main__":
    manager = ConfigManager()
    server_config = manager.get_server_config()

    app = create_app(manager)

    # TLS is enabled when both files are configured
    ssl_context = None
    if server_config.certificate and server_config.key:
        ssl_context = (server_config.certificate, server_config.key)

    try:
        app.run(
            host=server_config.host,
            port=server_config.port,
            debug=server_config.debug,
            ssl_context=ssl_context
        )
    finally:
        shutdown_app(app)
