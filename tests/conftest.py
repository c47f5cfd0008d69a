"""Shared test fixtures for msgconnect.

Provides a scripted fake of the auth and send endpoints, settings that
point at it, and managers wired to it through :class:`httpx.MockTransport`.
Backoff waits are recorded instead of slept so retry tests run instantly.
"""

from __future__ import annotations

import threading
from typing import Any

import httpx
import pytest

from msgconnect.client.manager import ConnectionManager, reset_connection_manager
from msgconnect.models import ConnectionSettings, RetryPolicy

AUTH_BASE_URL = "https://auth.test"
API_BASE_URL = "https://api.test/v1"
TOKEN_PATH = "/token"
SEND_PATH = "/v1/message/send/"


# ---------------------------------------------------------------------------
# Scripted API
# ---------------------------------------------------------------------------


class ScriptedApi:
    """Fake auth and send endpoints replaying queued replies.

    Each queued reply is one of:

    - ``dict`` -- a 200 JSON body.
    - ``int`` -- an error status with a small JSON body.
    - ``str`` -- a 200 response with that raw text body.
    - :class:`httpx.Response` -- returned unchanged.
    - :class:`Exception` -- raised from the transport.

    When a queue is empty the token endpoint answers
    ``{"access_token": "default-token"}`` and the send endpoint answers 200.
    Every request is recorded.
    """

    def __init__(self) -> None:
        self.token_replies: list[Any] = []
        self.send_replies: list[Any] = []
        self.token_requests: list[httpx.Request] = []
        self.send_requests: list[httpx.Request] = []
        self._lock = threading.Lock()

    def handler(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            if request.url.path == TOKEN_PATH:
                self.token_requests.append(request)
                reply = self.token_replies.pop(0) if self.token_replies else {"access_token": "default-token"}
            elif request.url.path == SEND_PATH:
                self.send_requests.append(request)
                reply = self.send_replies.pop(0) if self.send_replies else 200
            else:
                return httpx.Response(404, json={"error": "unknown path"})
        return self.render(reply)

    @staticmethod
    def render(reply: Any) -> httpx.Response:
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, int):
            if reply == 200:
                return httpx.Response(200, json={"status": "sent"})
            return httpx.Response(reply, json={"error": f"scripted {reply}"})
        if isinstance(reply, str):
            return httpx.Response(200, text=reply)
        return httpx.Response(200, json=reply)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear MSGCONNECT_* variables and drop the shared manager after each test."""
    for var in [
        "MSGCONNECT_AUTH_BASE_URL",
        "MSGCONNECT_API_BASE_URL",
        "MSGCONNECT_SCOPE",
        "MSGCONNECT_TIMEOUT",
        "MSGCONNECT_VERIFY_SSL",
        "MSGCONNECT_MAX_AUTH_ATTEMPTS",
        "MSGCONNECT_BACKOFF_SECONDS",
    ]:
        monkeypatch.delenv(var, raising=False)
    yield
    reset_connection_manager()


@pytest.fixture
def settings() -> ConnectionSettings:
    """Settings pointing at the scripted API with three attempts and 5 s backoff."""
    return ConnectionSettings(
        auth_base_url=AUTH_BASE_URL,
        api_base_url=API_BASE_URL,
        scope="message.send",
        retry=RetryPolicy(max_auth_attempts=3, backoff_delay=5.0),
    )


@pytest.fixture
def api() -> ScriptedApi:
    return ScriptedApi()


@pytest.fixture
def sleeps() -> list[float]:
    """Backoff delays requested by the code under test, in order."""
    return []


@pytest.fixture
def http_client(api: ScriptedApi) -> httpx.Client:
    client = httpx.Client(transport=httpx.MockTransport(api.handler))
    yield client
    client.close()


@pytest.fixture
def manager(
    settings: ConnectionSettings,
    http_client: httpx.Client,
    sleeps: list[float],
) -> ConnectionManager:
    return ConnectionManager(settings, client=http_client, sleep=sleeps.append)
