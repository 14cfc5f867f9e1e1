"""
Shared fixtures for the tracking service tests.
"""

from unittest.mock import Mock

import pytest

from config_manager import FetchConfig, ProxyConfig, RedisConfig
from app.event_tracking.event_tracker import EventTracker
from app.relay.webhook import WebhookRelay
from app.store.client import ListStore, StoreDiagnostics
from app.store.connection import StoreConnection
from tests.fakes import FakeRedis


@pytest.fixture
def redis_config():
    return RedisConfig(
        host="localhost",
        port=6379,
        db=0,
        ttl=1209600,
        connection_timeout_ms=1000,
        connection_maximum_attempts=10,
        connection_attempts_interval_ms=400
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def scheduled():
    """Reconnect callbacks captured instead of run on timers."""
    return []


@pytest.fixture
def connection(redis_config, fake_redis, scheduled):
    conn = StoreConnection(
        redis_config,
        client_factory=lambda: fake_redis,
        scheduler=lambda delay, callback: scheduled.append((delay, callback))
    )
    conn.connect()
    return conn


@pytest.fixture
def store(connection):
    return ListStore(connection)


@pytest.fixture
def relay():
    relay = Mock(spec=WebhookRelay)
    relay.notify.return_value = Mock(status_code=200)
    return relay


@pytest.fixture
def tracker(store, redis_config, relay, fake_redis):
    tracker = EventTracker(
        store=store,
        redis_config=redis_config,
        relay=relay,
        relay_endpoints=["http://partner.example.com/point?item={itemId}&uid={uid}"],
        diagnostics=StoreDiagnostics(redis_config, client_factory=lambda: fake_redis)
    )
    yield tracker
    tracker.close()


@pytest.fixture
def fetch_config():
    return FetchConfig(timeout=1.0)


@pytest.fixture
def proxy_config():
    return ProxyConfig(enabled=False)
