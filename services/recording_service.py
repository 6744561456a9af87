"""RecordingService: one capture session per meeting, feeding the transcript log."""
import logging
from typing import Callable, Dict, List

from models.transcript import TranscriptSegment
from services.audio_capture import AudioCaptureService, MediaProvider, Transcriber
from services.transcript_service import TranscriptService
from utils.errors import MeetingOperationFailure

logger = logging.getLogger(__name__)


class RecordingService:
    """Starts and stops AudioCaptureService sessions keyed by meeting id.

    Every transcribed segment is appended to the meeting's transcript as it
    arrives. Stopping waits for the final chunk to flush and then marks the
    transcript complete, which triggers summary generation.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        transcript_service: TranscriptService,
        media_provider_factory: Callable[[], MediaProvider],
        chunk_seconds: float = 6.0,
        min_chunk_bytes: int = 8000,
        samplerate: int = 16000,
    ):
        self.transcriber = transcriber
        self.transcript_service = transcript_service
        self.media_provider_factory = media_provider_factory
        self.chunk_seconds = chunk_seconds
        self.min_chunk_bytes = min_chunk_bytes
        self.samplerate = samplerate
        self._sessions: Dict[str, AudioCaptureService] = {}

    def is_recording(self, meeting_id: str) -> bool:
        session = self._sessions.get(meeting_id)
        return session is not None and session.is_recording

    def status(self, meeting_id: str) -> dict:
        session = self._sessions.get(meeting_id)
        if session is None:
            return {"meeting_id": meeting_id, "recording": False}
        return {"meeting_id": meeting_id, **session.status()}

    async def start(self, meeting_id: str) -> None:
        if self.is_recording(meeting_id):
            raise MeetingOperationFailure(f"Meeting \"{meeting_id}\" is already being recorded.")

        async def on_segments(segments: List[TranscriptSegment]) -> None:
            await self.transcript_service.append_segments(meeting_id, segments)

        session = AudioCaptureService(
            transcriber=self.transcriber,
            on_segments=on_segments,
            media_provider=self.media_provider_factory(),
            chunk_seconds=self.chunk_seconds,
            min_chunk_bytes=self.min_chunk_bytes,
            samplerate=self.samplerate,
            label=meeting_id,
        )
        await session.start_recording()
        self._sessions[meeting_id] = session

    async def stop(self, meeting_id: str, complete: bool = True) -> List[TranscriptSegment]:
        """
        Stop recording a meeting.

        Returns:
            The stored transcript after the final flush
        """
        session = self._sessions.pop(meeting_id, None)
        if session is None:
            logger.info(f"Stop requested with no active recording: meeting_id={meeting_id}")
            return await self.transcript_service.get_transcript(meeting_id)

        session.stop_recording()
        await session.wait_closed()

        if complete:
            return await self.transcript_service.mark_complete(meeting_id)
        return await self.transcript_service.get_transcript(meeting_id)

    async def shutdown(self) -> None:
        """Stop every active session without completing transcripts."""
        for meeting_id in list(self._sessions):
            await self.stop(meeting_id, complete=False)
