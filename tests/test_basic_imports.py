"""
Basic import tests to verify the core functionality.
"""


def test_store_imports():
    """Test that store modules can be imported."""
    from app.store import ListStore, StoreConnection, ReconnectPolicy, StoreDiagnostics

    assert callable(ListStore.key_for)
    assert hasattr(StoreConnection, "execute")
    assert hasattr(ReconnectPolicy, "next_delay")
    assert hasattr(StoreDiagnostics, "server_info")


def test_event_tracking_imports():
    """Test that event tracking modules can be imported."""
    from app.event_tracking import EventTracker, EventAction, Event, RequestMetadata
    from app.event_tracking.validation import validate_read_request, validate_write_request
    from app.event_tracking.normalizer import build_event

    assert callable(validate_write_request)
    assert callable(validate_read_request)
    assert callable(build_event)
    assert hasattr(EventTracker, "record_event")
    assert EventAction.OBJECT_VISITED.value == "objectVisited"

    metadata = RequestMetadata()
    assert metadata.client_ip == "unknown"
    assert Event("fakeUid", "fakeAction", "fakeItemId", "2026-01-01T00:00:00.000Z").custom_data == {}


def test_relay_imports():
    """Test that relay modules can be imported."""
    from app.relay import WebhookRelay, build_session

    assert callable(build_session)
    assert hasattr(WebhookRelay, "notify")


def test_app_factory_import():
    """Test that the application factory can be imported."""
    from app.main import create_app

    assert callable(create_app)
