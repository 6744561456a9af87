"""
Service Configuration

Settings are read once from the environment (after python-dotenv has loaded
any .env file) and passed explicitly to the services that need them.
"""

import os
import logging
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

REQUIRED_ENV_VARS = ["REDIS_URL", "OPENAI_API_KEY"]


@dataclass
class Settings:
    """
    Runtime configuration for the meeting assistant.

    Attributes:
        redis_url: Connection URL of the document store
        openai_api_key: API key for the generative model provider
        openai_model: Chat model used for summaries, insights and Q&A
        openai_transcription_model: Audio-capable model used for transcription
        session_jwt_secret: HS256 secret for app session tokens (min 32 chars)
        session_jwt_issuer: Issuer claim for session tokens
        session_jwt_audience: Audience claim for session tokens
        session_jwt_ttl_seconds: Lifetime of a session token
        google_client_id: OAuth client id of the Google identity provider
        google_client_secret: OAuth client secret
        google_redirect_uri: Redirect URI registered with Google
        chunk_seconds: Length of one recording window
        min_chunk_bytes: Encoded chunks smaller than this are treated as silence
        capture_samplerate: Sample rate used for all capture devices
        display_audio_device: Name fragment of the loopback/monitor input device
    """
    redis_url: str = "redis://localhost:6379"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o"
    openai_transcription_model: str = "gpt-4o-audio-preview"
    session_jwt_secret: str | None = None
    session_jwt_issuer: str = "meeting-assistant"
    session_jwt_audience: str = "meeting-assistant-api"
    session_jwt_ttl_seconds: int = 3600
    google_client_id: str | None = None
    google_client_secret: str | None = None
    google_redirect_uri: str | None = None
    chunk_seconds: float = 6.0
    min_chunk_bytes: int = 8000
    capture_samplerate: int = 16000
    display_audio_device: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, loading .env first."""
        load_dotenv()
        return cls(
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            openai_transcription_model=os.getenv(
                "OPENAI_TRANSCRIPTION_MODEL", "gpt-4o-audio-preview"
            ),
            session_jwt_secret=os.getenv("SESSION_JWT_SECRET"),
            session_jwt_issuer=os.getenv("SESSION_JWT_ISSUER", "meeting-assistant"),
            session_jwt_audience=os.getenv("SESSION_JWT_AUDIENCE", "meeting-assistant-api"),
            session_jwt_ttl_seconds=int(os.getenv("SESSION_JWT_TTL_SECONDS", "3600")),
            google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
            google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
            google_redirect_uri=os.getenv("GOOGLE_REDIRECT_URI"),
            chunk_seconds=float(os.getenv("CHUNK_SECONDS", "6.0")),
            min_chunk_bytes=int(os.getenv("MIN_CHUNK_BYTES", "8000")),
            capture_samplerate=int(os.getenv("CAPTURE_SAMPLERATE", "16000")),
            display_audio_device=os.getenv("DISPLAY_AUDIO_DEVICE", ""),
        )

    def missing_required(self) -> list[str]:
        """Names of required environment variables that have no value."""
        values = {"REDIS_URL": self.redis_url, "OPENAI_API_KEY": self.openai_api_key}
        return [name for name in REQUIRED_ENV_VARS if not values.get(name)]
