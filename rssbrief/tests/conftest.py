"""
Pytest fixtures for rssbrief tests.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from rssbrief.config import state
from rssbrief.database import Database
from rssbrief.delivery import DeliveryAdapter, EmailMessage
from rssbrief.exceptions import DeliveryError
from rssbrief.feeds import FeedParser
from rssbrief.providers.base import LLMProvider, LLMResponse
from rssbrief.rate_limit import limiter
from rssbrief.server import app


class MockProvider(LLMProvider):
    """Mock LLM provider that returns pre-configured responses."""

    def __init__(self, default_text: str = "A short summary."):
        self.calls: list[dict] = []
        self.responses: list = []
        self.default_text = default_text

    @property
    def name(self) -> str:
        return "mock"

    @property
    def default_model(self) -> str:
        return "mock-model"

    def queue_response(self, response):
        """Queue text (or an exception to raise) for the next complete() call."""
        self.responses.append(response)

    def complete(
        self,
        user_prompt: str,
        system_prompt: str | None = None,
        model: str | None = None,
        max_tokens: int = 500,
        temperature: float = 0.0,
    ) -> LLMResponse:
        self.calls.append({
            "user_prompt": user_prompt,
            "system_prompt": system_prompt,
            "model": model,
            "max_tokens": max_tokens,
        })
        response = self.responses.pop(0) if self.responses else self.default_text
        if isinstance(response, Exception):
            raise response
        return LLMResponse(text=response, model=model or self.default_model)


class RecordingDelivery(DeliveryAdapter):
    """Delivery adapter that records messages; addresses in ``fail_for`` raise."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail_for: set[str] = set()

    async def send(self, message: EmailMessage) -> str:
        if message.to in self.fail_for:
            raise DeliveryError(f"Mailbox unavailable: {message.to}")
        self.sent.append(message)
        return f"<msg-{len(self.sent)}@test>"


class FakeResponse:
    """Stand-in for aiohttp.ClientResponse serving fixed bytes."""

    def __init__(self, body: bytes, status: int = 200, charset: str = "utf-8"):
        self.body = body
        self.status = status
        self.charset = charset

    async def read(self) -> bytes:
        return self.body

    async def text(self, encoding: str | None = None, errors: str = "strict") -> str:
        # Strict by default, like aiohttp
        return self.body.decode(encoding or self.charset, errors)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


class FakeSession:
    """Replaces aiohttp.ClientSession; every GET returns the same response."""

    def __init__(self, response: FakeResponse):
        self.response = response
        self.requested: list[str] = []

    def __call__(self, *args, **kwargs):
        return self

    def get(self, url, **kwargs):
        self.requested.append(url)
        return self.response

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def test_db(temp_db_path):
    """Create a test database instance."""
    db = Database(temp_db_path)
    yield db


@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def delivery():
    return RecordingDelivery()


@pytest.fixture
def now():
    """A fixed Monday 14:30 UTC."""
    return datetime(2026, 1, 12, 14, 30, tzinfo=timezone.utc)


@pytest.fixture
def serve_bytes(monkeypatch):
    """Factory: make every aiohttp GET return ``body`` with the given charset."""
    def _serve(body: bytes, charset: str = "utf-8", status: int = 200) -> FakeSession:
        session = FakeSession(FakeResponse(body, status=status, charset=charset))
        monkeypatch.setattr("aiohttp.ClientSession", session)
        return session
    return _serve


@pytest.fixture
def make_user(test_db):
    """Factory: create an onboarded user following one topic with the given feeds."""
    def _make(
        email: str = "reader@example.com",
        feed_urls: list[str] | None = None,
        topic: str = "Tech",
        **prefs,
    ) -> int:
        user_id = test_db.add_user(email, name=prefs.pop("name", "Reader"))
        test_db.preferences.update(user_id, onboarded=True, **prefs)
        if feed_urls:
            topic_id = test_db.topics.add(topic, user_id=user_id)
            for url in feed_urls:
                test_db.topics.link(topic_id, test_db.feeds.get_or_create(url), user_id)
        return user_id
    return _make


@pytest.fixture
def client(temp_db_path):
    """Create a test client with isolated database and no external services."""
    # Store original state
    original = {
        "db": state.db,
        "feed_parser": state.feed_parser,
        "extractor": state.extractor,
        "summarizer": state.summarizer,
        "delivery": state.delivery,
        "scheduler": state.scheduler,
    }

    state.db = Database(temp_db_path)
    state.feed_parser = FeedParser()
    state.extractor = None
    state.summarizer = None  # Disable for tests (requires API key)
    state.delivery = None
    state.scheduler = None

    limiter.reset()

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    for name, value in original.items():
        setattr(state, name, value)
