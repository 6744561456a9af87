"""TranscriptService: append-only transcript log with live subscriptions."""
import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Union

from models.transcript import TranscriptDocument, TranscriptSegment
from services.document_store import DocumentStore, Subscription
from services.summary_service import SummaryService
from utils.errors import PersistenceFailure
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

TRANSCRIPTS = "transcripts"

# Shorter ids are not calendar event ids and are never persisted
MIN_MEETING_ID_LENGTH = 5

TranscriptListener = Callable[[List[TranscriptSegment]], Union[None, Awaitable[None]]]


def is_valid_meeting_id(meeting_id: Optional[str]) -> bool:
    return isinstance(meeting_id, str) and len(meeting_id) >= MIN_MEETING_ID_LENGTH


class TranscriptService:
    """Stores transcript segments per meeting and fans out changes."""

    def __init__(self, store: DocumentStore, summary_service: SummaryService):
        self.store = store
        self.summary_service = summary_service

    async def _load(self, meeting_id: str) -> Optional[TranscriptDocument]:
        data = await self.store.get(TRANSCRIPTS, meeting_id)
        if data is None:
            return None
        return TranscriptDocument.model_validate(data)

    async def append_segments(
        self,
        meeting_id: str,
        segments: Sequence[TranscriptSegment],
        is_complete: bool = False
    ) -> List[TranscriptSegment]:
        """
        Append segments to a meeting's transcript, in order, without
        deduplication.

        When is_complete is True, summary generation is triggered with the
        full transcript; generation failures are logged and do not fail the
        append.

        Returns:
            The full stored transcript after the append

        Raises:
            PersistenceFailure: If the transcript cannot be written
        """
        if not is_valid_meeting_id(meeting_id):
            logger.warning(f"Invalid or missing meeting_id, skipping transcript save: meeting_id={meeting_id}")
            return []

        try:
            current = await self._load(meeting_id)
            updated = (current.transcript if current else []) + list(segments)
            document = TranscriptDocument(
                meeting_id=meeting_id,
                transcript=updated,
                last_updated=utc_now_iso(),
                is_complete=is_complete,
            )
            await self.store.set(TRANSCRIPTS, meeting_id, document.model_dump(mode="json"))
        except PersistenceFailure as e:
            logger.error(f"Error saving transcript: meeting_id={meeting_id}, error={e.message}")
            raise PersistenceFailure("Failed to save transcript") from e

        logger.info(
            f"Transcript updated: meeting_id={meeting_id}, "
            f"appended={len(segments)}, total={len(updated)}, is_complete={is_complete}"
        )

        if is_complete:
            try:
                await self.summary_service.generate_summary_with_insights(updated, meeting_id)
            except Exception as e:
                logger.warning(
                    f"Failed to generate summary: meeting_id={meeting_id}, error={e}",
                    exc_info=True
                )

        return updated

    async def mark_complete(self, meeting_id: str) -> List[TranscriptSegment]:
        """Flag the transcript complete and trigger summary generation."""
        return await self.append_segments(meeting_id, [], is_complete=True)

    async def get_document(self, meeting_id: str) -> Optional[TranscriptDocument]:
        if not is_valid_meeting_id(meeting_id):
            return None
        return await self._load(meeting_id)

    async def get_transcript(self, meeting_id: str) -> List[TranscriptSegment]:
        document = await self.get_document(meeting_id)
        return document.transcript if document else []

    async def subscribe(self, meeting_id: str, listener: TranscriptListener) -> Optional[Subscription]:
        """
        Deliver the full segment list now and after every change.

        A missing transcript is delivered as an empty list. Returns None
        (nothing subscribed) for an invalid meeting id.
        """
        if not is_valid_meeting_id(meeting_id):
            logger.warning(f"Invalid or missing meeting_id, skipping subscription: meeting_id={meeting_id}")
            return None

        async def on_document(data):
            segments = TranscriptDocument.model_validate(data).transcript if data else []
            result = listener(segments)
            if inspect.isawaitable(result):
                await result

        logger.info(f"Subscribing to transcript updates: meeting_id={meeting_id}")
        return await self.store.watch(TRANSCRIPTS, meeting_id, on_document)
