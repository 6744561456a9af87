"""Shared fixtures: in-memory Redis, a scripted AI service and test settings."""
import os
import time
from unittest.mock import AsyncMock, MagicMock

import fakeredis
import fakeredis.aioredis
import jwt as pyjwt
import pytest

# Set test environment before any test imports main
os.environ.setdefault("REDIS_URL", "redis://localhost:6379")
os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
os.environ["SESSION_JWT_SECRET"] = "test-secret-that-is-at-least-32-characters-long"

from config import Settings
from models.summary import Insights, SentimentEnum
from services.document_store import DocumentStore

TEST_SECRET = os.environ["SESSION_JWT_SECRET"]


def make_settings(**overrides) -> Settings:
    values = dict(
        redis_url="redis://localhost:6379",
        openai_api_key="test-openai-key",
        session_jwt_secret=TEST_SECRET,
        session_jwt_issuer="meeting-assistant",
        session_jwt_audience="meeting-assistant-api",
        google_client_id="test-client-id",
        google_client_secret="test-client-secret",
        google_redirect_uri="http://localhost:8000/auth/callback",
        chunk_seconds=0.01,
    )
    values.update(overrides)
    return Settings(**values)


def make_fake_redis():
    """A FakeRedis client backed by its own server, so tests never share data."""
    return fakeredis.aioredis.FakeRedis(server=fakeredis.FakeServer(), decode_responses=True)


def make_ai_mock():
    """AIService stand-in whose generation methods are AsyncMocks."""
    ai = MagicMock()
    ai.available = True
    ai.transcribe_audio = AsyncMock(return_value="Hello from the meeting")
    ai.generate_meeting_summary = AsyncMock(return_value="- Discussed the launch plan")
    ai.extract_action_items = AsyncMock(return_value=["Send the deck by Friday"])
    ai.generate_meeting_insights = AsyncMock(return_value=Insights(
        sentiment=SentimentEnum.positive,
        key_topics=["launch"],
        decisions=["Ship on Monday"],
    ))
    ai.chat_with_ai = AsyncMock(return_value="The launch is on Monday.")
    return ai


def generate_session_jwt(
    uid: str = "google-uid-123",
    email: str = "alice@example.com",
    issuer: str = "meeting-assistant",
    audience: str = "meeting-assistant-api",
    exp_offset: int = 300,
    secret: str = None,
    **extra,
) -> str:
    """Generate a session JWT with configurable claims."""
    now = int(time.time())
    payload = {
        "sub": uid,
        "email": email,
        "iss": issuer,
        "aud": audience,
        "iat": now,
        "exp": now + exp_offset,
        **extra,
    }
    return pyjwt.encode(payload, secret or TEST_SECRET, algorithm="HS256")


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def fake_redis():
    return make_fake_redis()


@pytest.fixture
def store(fake_redis):
    return DocumentStore(fake_redis)


@pytest.fixture
def ai_mock():
    return make_ai_mock()
