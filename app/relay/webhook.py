"""
webhook.py - third-party relay calls

Best-effort notifications of tracked events to external endpoints.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from app.errors import RelayError

_LOG = logging.getLogger("webhook_relay")

ACCEPTED_STATUS_CODES = frozenset({200, 201, 204})


def build_session(proxy_url: Optional[str] = None) -> requests.Session:
    """Build a requests session with optional proxy configuration."""
    session = requests.Session()
    if proxy_url:
        _LOG.info("Relay calls go through proxy: %s", proxy_url)
        session.proxies.update({"http": proxy_url, "https": proxy_url})
    return session


def render_endpoint(template: str, event) -> str:
    """Fill an endpoint template with percent-encoded event fields.

    Supported placeholders: {uid}, {itemId}, {action}, {site}, {url}, {referrer}.
    """
    fields = {
        key: quote(str(value), safe="") if value is not None else ""
        for key, value in event.to_dict().items()
        if key != "customData"
    }
    return template.format(**fields)


class WebhookRelay:
    """Calls third-party track points and checks their status codes."""

    def __init__(self, fetch_config, proxy_config=None, session: Optional[requests.Session] = None):
        """
        Args:
            fetch_config: FetchConfig with the call timeout
            proxy_config: ProxyConfig; used only when enabled
            session: Session to issue calls with
        """
        self.fetch_config = fetch_config
        self.proxy_config = proxy_config
        self.session = session or build_session()

    def call_options(self, **options: Any) -> Dict[str, Any]:
        """Merge defaults, caller options and proxy options."""
        call_options: Dict[str, Any] = {"timeout": self.fetch_config.timeout}
        call_options.update(options)
        if self.proxy_config and self.proxy_config.enabled is True and self.proxy_config.url:
            call_options["proxies"] = {
                "http": self.proxy_config.url,
                "https": self.proxy_config.url
            }
        return call_options

    def notify(self, url: str, **options: Any) -> requests.Response:
        """Hit a third-party endpoint.

        Args:
            url: Endpoint URL, sent as is
            **options: Extra keyword arguments for requests

        Returns:
            The accepted response

        Raises:
            RelayError: On a transport failure or an unaccepted status code
        """
        try:
            response = self.session.get(url, **self.call_options(**options))
        except requests.RequestException as exc:
            detail = f"{type(exc).__name__}: {exc}"
            _LOG.error("Failed to hit 3rd party endpoint %s url: %s", detail, url)
            raise RelayError(url, detail) from exc

        if response.status_code not in ACCEPTED_STATUS_CODES:
            detail = f"Error: Incorrect response code {response.status_code}"
            _LOG.error("Failed to hit 3rd party endpoint %s url: %s", detail, url)
            raise RelayError(url, detail)

        _LOG.info(
            "Successfully hit 3rd party endpoint url: %s status: %s", url, response.status_code
        )
        return response
