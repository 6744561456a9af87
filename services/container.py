"""ServiceContainer: builds every service with explicit client handles."""
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import httpx
import redis.asyncio as redis
from openai import AsyncOpenAI

from config import Settings
from services.ai_service import AIService
from services.audio_capture import MediaProvider
from services.auth_service import AuthService
from services.calendar_service import CalendarService
from services.chat_service import ChatService
from services.document_store import DocumentStore
from services.invitation_service import InvitationService
from services.media_sources import DeviceMediaProvider
from services.meeting_service import MeetingService
from services.notes_service import NotesService
from services.recording_service import RecordingService
from services.summary_service import SummaryService
from services.token_cache import TokenCache
from services.transcript_service import TranscriptService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    redis_client: redis.Redis
    http_client: httpx.AsyncClient
    openai_client: Optional[AsyncOpenAI]
    store: DocumentStore
    token_cache: TokenCache
    ai_service: AIService
    summary_service: SummaryService
    transcript_service: TranscriptService
    invitation_service: InvitationService
    notes_service: NotesService
    chat_service: ChatService
    meeting_service: MeetingService
    calendar_service: CalendarService
    auth_service: AuthService
    recording_service: RecordingService

    @classmethod
    def build(
        cls,
        settings: Settings,
        redis_client: Optional[redis.Redis] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        openai_client: Optional[AsyncOpenAI] = None,
        ai_service: Optional[AIService] = None,
        media_provider_factory: Optional[Callable[[], MediaProvider]] = None,
    ) -> "ServiceContainer":
        """Wire services together; any client not given is created from settings."""
        if redis_client is None:
            redis_client = redis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_timeout=5,
                socket_connect_timeout=5
            )
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=30.0)
        if openai_client is None and ai_service is None and settings.openai_api_key:
            openai_client = AsyncOpenAI(api_key=settings.openai_api_key)
        if ai_service is None:
            ai_service = AIService(
                openai_client,
                model=settings.openai_model,
                transcription_model=settings.openai_transcription_model,
            )
        if media_provider_factory is None:
            def media_provider_factory():
                return DeviceMediaProvider(settings.capture_samplerate, settings.display_audio_device)

        store = DocumentStore(redis_client)
        token_cache = TokenCache(redis_client, ttl_seconds=settings.session_jwt_ttl_seconds)
        summary_service = SummaryService(store, ai_service)
        transcript_service = TranscriptService(store, summary_service)
        invitation_service = InvitationService(store)
        notes_service = NotesService(store)
        chat_service = ChatService(store, ai_service, transcript_service)
        meeting_service = MeetingService(
            store,
            invitation_service,
            transcript_service,
            summary_service,
            chat_service,
            notes_service,
        )

        return cls(
            settings=settings,
            redis_client=redis_client,
            http_client=http_client,
            openai_client=openai_client,
            store=store,
            token_cache=token_cache,
            ai_service=ai_service,
            summary_service=summary_service,
            transcript_service=transcript_service,
            invitation_service=invitation_service,
            notes_service=notes_service,
            chat_service=chat_service,
            meeting_service=meeting_service,
            calendar_service=CalendarService(http_client, meeting_service, token_cache),
            auth_service=AuthService(settings, http_client, store, token_cache),
            recording_service=RecordingService(
                ai_service,
                transcript_service,
                media_provider_factory,
                chunk_seconds=settings.chunk_seconds,
                min_chunk_bytes=settings.min_chunk_bytes,
                samplerate=settings.capture_samplerate,
            ),
        )

    async def close(self) -> None:
        """Stop active recordings and close client connections."""
        await self.recording_service.shutdown()
        await self.http_client.aclose()
        if self.openai_client is not None:
            await self.openai_client.close()
        await self.redis_client.aclose()
        logger.info("Services shut down")
