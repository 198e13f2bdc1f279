"""
Shared fixtures for the LUIS proxy tests.

The backend is simulated with httpx.MockTransport: every outbound request is
recorded and answered by a handler each test can replace.
"""

from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from luis_proxy.app.config import Settings
from luis_proxy.app.main import create_app


DEFAULT_URL = "http://luis.test/luis/api/v2.0/apps"
DEFAULT_APP_ID = "default-app-id"
DEFAULT_APP_KEY = "default-app-key"


class FakeBackend:
    """Records outbound requests and answers them with ``self.handler``."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"ok": True})
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "backend was never called"
        return self.requests[-1]


@pytest.fixture
def test_settings():
    """Settings independent of the real environment and .env file"""
    return Settings(
        LUIS_SERVER_URL=DEFAULT_URL,
        LUIS_APP_ID=DEFAULT_APP_ID,
        LUIS_APP_KEY=DEFAULT_APP_KEY,
        LUIS_VERSION_ID="0.1",
        MAX_BODY_BYTES=1024,
        _env_file=None,
    )


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def app(test_settings, backend):
    """Create test FastAPI application wired to the fake backend"""
    return create_app(settings=test_settings, transport=httpx.MockTransport(backend))


@pytest.fixture
def client(app):
    """Create test client (runs the lifespan)"""
    with TestClient(app) as test_client:
        yield test_client
