"""
Relay Subsystem

Best-effort forwarding of tracks to third-party endpoints.
"""

from .webhook import WebhookRelay, build_session, render_endpoint

__all__ = ["WebhookRelay", "build_session", "render_endpoint"]
