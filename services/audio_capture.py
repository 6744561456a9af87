"""AudioCaptureService: chunked capture and transcription of a live meeting.

Capture runs as one supervising asyncio task. Each iteration records a fixed
window of merged display + microphone audio, encodes it, and processes it as a
single unit of work that yields a ChunkResult. Chunks are strictly
sequential: the next window opens only after the previous chunk's
transcription has resolved, so segments are emitted in capture order.

    Idle --start_recording--> Recording (Capturing <-> Flushing) --stop_recording--> Stopped
"""
import asyncio
import base64
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Protocol, Union

from models.chunk_result import ChunkResult, ChunkStatus
from models.transcript import TranscriptSegment
from services.media_sources import ChunkRecorder, MediaStream
from utils.errors import MeetingOperationFailure
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

SegmentsCallback = Callable[[List[TranscriptSegment]], Union[None, Awaitable[None]]]


class Transcriber(Protocol):
    async def transcribe_audio(self, audio_base64: str, audio_format: str = "wav") -> str:
        ...


class MediaProvider(Protocol):
    def acquire_display_stream(self) -> MediaStream:
        ...

    def acquire_microphone_stream(self) -> MediaStream:
        ...

    def merge(self, streams: List[MediaStream]) -> MediaStream:
        ...


class AudioCaptureService:
    """Records a meeting in fixed windows and emits one segment per transcribed chunk.

    Args:
        transcriber: Object with an async transcribe_audio(base64) -> str
        on_segments: Called with a single-element segment list per transcribed chunk
        media_provider: Acquires the display and microphone streams
        chunk_seconds: Length of one recording window
        min_chunk_bytes: Encoded chunks smaller than this are skipped as silence
        samplerate: Sample rate of the merged stream
    """

    def __init__(
        self,
        transcriber: Transcriber,
        on_segments: SegmentsCallback,
        media_provider: MediaProvider,
        chunk_seconds: float = 6.0,
        min_chunk_bytes: int = 8000,
        samplerate: int = 16000,
        label: str = "",
    ):
        self.transcriber = transcriber
        self.on_segments = on_segments
        self.media_provider = media_provider
        self.chunk_seconds = chunk_seconds
        self.min_chunk_bytes = min_chunk_bytes
        self.samplerate = samplerate
        self.label = label

        self._recording = False
        self._display_stream: Optional[MediaStream] = None
        self._mic_stream: Optional[MediaStream] = None
        self._stream: Optional[MediaStream] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

        self.chunks_processed = 0
        self.segments_emitted = 0
        self.last_error: Optional[str] = None

    @property
    def is_recording(self) -> bool:
        return self._recording

    def status(self) -> dict:
        return {
            "recording": self._recording,
            "chunks_processed": self.chunks_processed,
            "segments_emitted": self.segments_emitted,
            "last_error": self.last_error,
        }

    async def start_recording(self) -> None:
        """
        Acquire display audio, then microphone audio, merge them and start
        the chunk loop.

        Raises:
            MeetingOperationFailure: If a recording is already in progress
            MediaCaptureUnavailable: If either source cannot be acquired; any
                source already acquired is released first
        """
        if self._recording or (self._task is not None and not self._task.done()):
            raise MeetingOperationFailure("Recording already in progress")

        try:
            self._display_stream = self.media_provider.acquire_display_stream()
            self._display_stream.start()

            self._mic_stream = self.media_provider.acquire_microphone_stream()
            self._mic_stream.start()

            self._stream = self.media_provider.merge([self._display_stream, self._mic_stream])
            self._stream.start()
        except Exception as e:
            logger.error(f"Failed to start recording: label={self.label}, error={e}")
            self.stop_recording()
            raise

        self._recording = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(self._stream))
        logger.info(
            f"Recording started: label={self.label}, "
            f"chunk_seconds={self.chunk_seconds}, min_chunk_bytes={self.min_chunk_bytes}"
        )

    def stop_recording(self) -> None:
        """
        Stop capture. Idempotent and safe to call when never started.

        The in-flight chunk is flushed by the chunk loop and goes through the
        same processing as any other chunk.
        """
        was_recording = self._recording
        self._recording = False

        if self._stop_event is not None:
            self._stop_event.set()

        try:
            for stream in (self._display_stream, self._mic_stream, self._stream):
                if stream is None:
                    continue
                try:
                    stream.stop()
                except Exception as e:
                    logger.error(
                        f"Failed to release stream: label={self.label}, "
                        f"stream={stream.name}, error={e}"
                    )
        finally:
            self._display_stream = None
            self._mic_stream = None
            self._stream = None

        if was_recording:
            logger.info(f"Recording stopped: label={self.label}")

    async def wait_closed(self) -> None:
        """Wait for the chunk loop, including the final flush, to finish."""
        if self._task is not None:
            await self._task

    async def _run(self, stream: MediaStream) -> None:
        while True:
            recorder = ChunkRecorder(stream, self.samplerate)
            recorder.start()

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.chunk_seconds)
            except asyncio.TimeoutError:
                pass

            try:
                audio_bytes = recorder.stop()
            except Exception as e:
                logger.error(f"Failed to encode chunk: label={self.label}, error={e}", exc_info=True)
                audio_bytes = b""

            result = await self.process_chunk(audio_bytes)
            await self._dispatch(result)

            if not self._recording:
                break

        logger.info(
            f"Chunk loop finished: label={self.label}, "
            f"chunks={self.chunks_processed}, segments={self.segments_emitted}"
        )

    async def process_chunk(self, audio_bytes: bytes) -> ChunkResult:
        """Turn one encoded chunk into a ChunkResult.

        Chunks under min_chunk_bytes are skipped without calling the
        transcriber. Transcription errors are captured in the result.
        """
        self.chunks_processed += 1
        size = len(audio_bytes)

        if size < self.min_chunk_bytes:
            logger.info(f"Skipping chunk: too small (likely silence), label={self.label}, bytes={size}")
            return ChunkResult.empty(size)

        audio_base64 = base64.b64encode(audio_bytes).decode("ascii")

        try:
            text = await self.transcriber.transcribe_audio(audio_base64)
        except Exception as e:
            logger.error(f"Transcription failed: label={self.label}, bytes={size}, error={e}")
            self.last_error = str(e)
            return ChunkResult.failed(str(e), size)

        text = (text or "").strip()
        if not text:
            return ChunkResult.empty(size)

        segment = TranscriptSegment(text=text, timestamp=utc_now_iso())
        return ChunkResult(status=ChunkStatus.segments, segments=[segment], byte_size=size)

    async def _dispatch(self, result: ChunkResult) -> None:
        if result.status != ChunkStatus.segments:
            return
        try:
            outcome = self.on_segments(result.segments)
            if inspect.isawaitable(outcome):
                await outcome
            self.segments_emitted += len(result.segments)
        except Exception as e:
            logger.error(f"Segment callback failed: label={self.label}, error={e}", exc_info=True)
