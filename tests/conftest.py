from datetime import datetime, timedelta, timezone

import pytest
import requests
from fastapi.testclient import TestClient

from reading_list_api.app.core.config import Settings
from reading_list_api.app.main import create_app
from reading_list_api.app.storage import MemoryStorage


class FakeClock:
    """Settable clock for services and the sync layer."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 9, 2, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class TestClientSession:
    """Adapts a FastAPI TestClient to the ``requests.Session.request`` interface."""

    __test__ = False

    def __init__(self, client):
        self.client = client
        self.offline = False
        self.calls = []

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls.append((method, url))
        if self.offline:
            raise requests.ConnectionError("server unreachable")
        result = self.client.request(method, url, params=params, json=json, headers=headers)
        response = requests.Response()
        response.status_code = result.status_code
        response._content = result.content
        response.url = str(result.url)
        response.encoding = "utf-8"
        response.headers.update(result.headers)
        return response


@pytest.fixture
def settings(tmp_path):
    return Settings(
        storage_backend="memory",
        static_dir=str(tmp_path / "static"),
        log_level="WARNING",
        built_at="2024-09-01T00:00:00+00:00",
    )


@pytest.fixture
def store():
    return MemoryStorage()


@pytest.fixture
def app(settings, store):
    return create_app(settings=settings, store=store)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session(client):
    return TestClientSession(client)
