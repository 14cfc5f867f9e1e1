"""
Integration Tests for the Track Ingestion HTTP surface

Drives the Flask app end to end with an in-memory Redis stand-in.
"""

import json
import os
from unittest.mock import Mock, patch

import pytest
import redis

from config_manager import ConfigManager
from app.main import create_app, shutdown_app
from app.event_tracking.factory import create_event_tracking_module
from app.relay.webhook import WebhookRelay
from app.store.client import StoreDiagnostics
from app.store.connection import ConnectionState
from tests.fakes import FakeRedis

TRACK = {
    "uid": "fakeUid",
    "action": "fakeAction",
    "site": "fake.com",
    "url": "http://fake.com",
    "data": {"id": "fakeItemId"}
}


@pytest.fixture
def config_manager(tmp_path):
    with patch.dict(os.environ, {"RELAY_ENDPOINTS": "http://partner.example.com/point?item={itemId}"}, clear=True):
        return ConfigManager(str(tmp_path / "missing.json"))


@pytest.fixture
def webhook():
    relay = Mock(spec=WebhookRelay)
    relay.notify.return_value = Mock(status_code=200)
    return relay


@pytest.fixture
def module(config_manager, connection, redis_config, fake_redis, webhook):
    module = create_event_tracking_module(
        config_manager,
        connection=connection,
        diagnostics=StoreDiagnostics(redis_config, client_factory=lambda: fake_redis),
        relay=webhook
    )
    yield module
    module["service"].close()


@pytest.fixture
def app(config_manager, module):
    app = create_app(config_manager, event_tracking_module=module, configure_logging=False)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


class TestTracksEndpoint:
    """POST /tracks"""

    def test_store_track(self, client, fake_redis):
        response = client.post("/tracks", data=json.dumps(TRACK), content_type="application/json")

        assert response.status_code == 201
        assert response.get_data(as_text=True) == "Track stored"

        stored = json.loads(fake_redis.lists["users_fakeUid"][0])
        assert stored["itemId"] == "fakeItemId"
        assert stored["site"] == "fake.com"
        assert stored["timestamp"].endswith("Z")

    def test_text_body_is_accepted(self, client, fake_redis):
        response = client.post("/tracks", data=json.dumps(TRACK), content_type="text/plain")
        assert response.status_code == 201
        assert len(fake_redis.lists["tracks"]) == 1

    def test_referer_header_fills_referrer(self, client, fake_redis):
        client.post(
            "/tracks",
            data=json.dumps(TRACK),
            content_type="application/json",
            headers={"Referer": "http://fakereferrer.com"}
        )
        stored = json.loads(fake_redis.lists["tracks"][0])
        assert stored["referrer"] == "http://fakereferrer.com"

    def test_missing_body(self, client, fake_redis):
        response = client.post("/tracks", data="")
        assert response.status_code == 400
        assert response.get_data(as_text=True) == "Missing post data"
        assert fake_redis.lists == {}

    def test_invalid_body(self, client):
        response = client.post("/tracks", data="not json")
        assert response.status_code == 400
        assert response.get_data(as_text=True) == "Invalid post data not json"

    def test_invalid_field(self, client):
        body = dict(TRACK, action="fake-action")
        response = client.post("/tracks", data=json.dumps(body))
        assert response.status_code == 400
        assert response.get_data(as_text=True).startswith("Invalid post data {")

    def test_store_down(self, client, connection):
        connection.close()
        response = client.post("/tracks", data=json.dumps(TRACK))
        assert response.status_code == 400
        assert "Store error" in response.get_data(as_text=True)

    def test_visit_is_relayed(self, client, webhook, module):
        body = dict(TRACK, action="objectVisited")
        response = client.post("/tracks", data=json.dumps(body))
        assert response.status_code == 201

        module["service"].close()
        webhook.notify.assert_called_once_with("http://partner.example.com/point?item=fakeItemId")


class TestUserEndpoints:
    """GET /users/<uid> and /users/<uid>/visited"""

    def test_visited_after_visit(self, client):
        client.post("/tracks", data=json.dumps(dict(TRACK, action="objectVisited")))

        response = client.get("/users/fakeUid/visited")

        assert response.status_code == 200
        assert response.get_json() == ["fakeItemId"]

    def test_visited_empty(self, client):
        response = client.get("/users/nobody/visited")
        assert response.status_code == 200
        assert response.get_json() == []

    def test_profile(self, client):
        client.post("/tracks", data=json.dumps(TRACK))

        response = client.get("/users/fakeUid")

        assert response.status_code == 200
        profile = response.get_json()
        assert len(profile) == 1
        assert json.loads(profile[0])["action"] == "fakeAction"

    def test_invalid_uid(self, client):
        response = client.get("/users/a/visited")
        assert response.status_code == 400
        assert response.get_data(as_text=True) == 'Missing uid param {"uid":"a"}'

    def test_store_down(self, client, connection):
        connection.close()
        response = client.get("/users/fakeUid")
        assert response.status_code == 400


class TestHealthcheck:
    """GET /healthcheck and /healthcheck/redis"""

    def test_liveness(self, client, connection):
        connection.close()
        response = client.get("/healthcheck")
        assert response.status_code == 200
        assert response.get_data(as_text=True) == ""

    def test_redis_info(self, client):
        response = client.get("/healthcheck/redis")
        body = response.get_data(as_text=True)
        assert response.status_code == 200
        assert body.startswith("Redis server info: ")
        assert json.loads(body[len("Redis server info: "):])["redis_version"] == "7.2.4"

    def test_redis_failure(self, config_manager, connection, redis_config, webhook):
        broken = FakeRedis()
        broken.fail_with = redis.ConnectionError("Error 111 connecting to localhost:6379.")
        module = create_event_tracking_module(
            config_manager,
            connection=connection,
            diagnostics=StoreDiagnostics(redis_config, client_factory=lambda: broken),
            relay=webhook
        )
        try:
            client = create_app(config_manager, module, configure_logging=False).test_client()
            response = client.get("/healthcheck/redis")
        finally:
            module["service"].close()

        assert response.status_code == 400
        assert response.get_data(as_text=True).startswith("Redis connection failure - ")


class TestCors:
    """Cross-origin headers"""

    def test_origin_is_echoed(self, client):
        response = client.get("/healthcheck", headers={"Origin": "http://site.example.com"})
        assert response.headers["Access-Control-Allow-Origin"] == "http://site.example.com"

    def test_no_origin(self, client):
        response = client.get("/healthcheck")
        assert "Access-Control-Allow-Origin" not in response.headers


class TestShutdown:
    """Closing the app's tracking module"""

    def test_shutdown_closes_service_and_connection(self, app, client, connection, fake_redis):
        assert app.extensions["event_tracking"]["connection"] is connection

        shutdown_app(app)

        assert connection.state is ConnectionState.DISCONNECTED
        assert fake_redis.closed
        with pytest.raises(RuntimeError):
            app.extensions["event_tracking"]["service"].record_event(json.dumps(TRACK))
