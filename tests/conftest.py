import os

# Must be set before server_init is imported: the async mode is chosen at import time.
os.environ["NORDCHAT_SOCKETIO_ASYNC"] = "threading"

import random

import pytest

from agent_gateway import MODERATION_PROMPT, AgentGateway
from config import get_default_settings
from errors import NOT_FOUND, UNAUTHORIZED, CollaboratorError
from realtime.state import ChatState
from server_init import create_app
from trivia import TriviaStore
from weather_bridge import Forecast


class FakeLLM:
    """Stands in for LLMClient; records every chat call."""

    service = "llm"

    def __init__(self):
        self.valid_keys = {"good-key"}
        self.answer = "Forty-two."
        self.verdict = "APPROPRIATE"
        self.error = None
        self.calls = []

    def probe(self, key):
        if key not in self.valid_keys:
            raise CollaboratorError("HTTP 401", UNAUTHORIZED, self.service)

    def chat(self, key, model, messages, *, temperature=0.7, max_tokens=512):
        self.calls.append({"key": key, "model": model, "messages": messages})
        if self.error is not None:
            raise self.error
        if messages[0]["content"] == MODERATION_PROMPT:
            return self.verdict
        return self.answer


class FakeWeather:
    def __init__(self):
        self.error = None
        self.cities = []

    def fetch(self, city):
        self.cities.append(city)
        if self.error is not None:
            raise self.error
        return Forecast(
            location=city,
            country="NO",
            description="light snow",
            temp_c=-3.0,
            feels_like_c=-7.5,
            humidity=81,
            wind_kph=14.4,
            source="fake",
        )


class ManualScheduler:
    """Collects scheduled callbacks; tests fire them explicitly."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, fn):
        self.pending.append((delay, fn))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _delay, fn in pending:
            fn()


def payloads(received, name):
    """Payloads of every ``name`` event in a test client's received list."""
    out = []
    for pkt in received:
        if pkt["name"] != name:
            continue
        args = pkt["args"]
        # The test client passes 'message' payloads through unwrapped.
        if name in ("message", "json"):
            out.append(args)
        else:
            out.append(args[0] if args else None)
    return out


@pytest.fixture
def settings(tmp_path):
    www = tmp_path / "www"
    www.mkdir()
    (www / "index.html").write_text("<h1>NordChat lobby</h1>", encoding="utf-8")
    (www / "room1.html").write_text("<h1>Room 1</h1>", encoding="utf-8")
    (www / "chat.js").write_text("console.log('chat');", encoding="utf-8")

    s = get_default_settings()
    s.update(
        document_root=str(www),
        exit_on_unhandled_error=False,
        log_file_path="",
    )
    return s


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def weather():
    return FakeWeather()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def state(settings, llm, weather, scheduler):
    return ChatState(
        settings=settings,
        trivia=TriviaStore(rng=random.Random(7)),
        agent=AgentGateway(llm, default_model="test-model"),
        weather=weather,
        rng=random.Random(42),
        scheduler=scheduler,
    )


@pytest.fixture
def app_and_socketio(settings, state):
    return create_app(settings, state=state)


@pytest.fixture
def app(app_and_socketio):
    return app_and_socketio[0]


@pytest.fixture
def socketio(app_and_socketio):
    return app_and_socketio[1]


@pytest.fixture
def http(app):
    return app.test_client()


@pytest.fixture
def connect(app, socketio):
    """Open a Socket.IO test client from ``address``, optionally joined as ``name``.

    Everything received during setup is drained, so assertions only see
    traffic caused by the test itself.
    """
    clients = []

    def _connect(address="10.0.0.1", name=None, headers=None):
        # The handshake environ comes from a Flask test client, so REMOTE_ADDR
        # plays the transport peer address.
        http_client = app.test_client()
        http_client.environ_base["REMOTE_ADDR"] = address
        client = socketio.test_client(app, flask_test_client=http_client, headers=headers)
        clients.append(client)
        if name:
            client.emit("join", {"username": name})
        for c in clients:
            c.get_received()
        return client

    yield _connect

    for c in clients:
        if c.is_connected():
            c.disconnect()


@pytest.fixture
def events():
    return payloads


@pytest.fixture
def not_found():
    return CollaboratorError("HTTP 404", NOT_FOUND, "openweathermap")
