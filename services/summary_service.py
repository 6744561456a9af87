"""SummaryService: at-most-once summary generation per meeting."""
import logging
from typing import Optional, Sequence

from models.summary import Summary
from models.transcript import TranscriptSegment
from services.ai_service import AIService
from services.document_store import DocumentStore
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

SUMMARIES = "summaries"

# Prefix of the model's reply when the transcript gave it nothing to summarize
INSUFFICIENT_INPUT_MARKER = "Please provide"
SUMMARY_PLACEHOLDER = "Summary will be generated after the meeting..."


def is_valid_summary(summary: Optional[str]) -> bool:
    """A summary is valid when non-empty and not an insufficient-input reply."""
    if not summary or not summary.strip():
        return False
    return not summary.strip().startswith(INSUFFICIENT_INPUT_MARKER)


class SummaryService:
    """Generates and stores the summary, action items and insights of a meeting.

    Generation is guarded by an existence check only: two concurrent callers
    for the same meeting can both pass the check. The second write is then
    refused by save_summary if the first already stored a valid summary.
    """

    def __init__(self, store: DocumentStore, ai_service: AIService):
        self.store = store
        self.ai_service = ai_service

    async def get_summary(self, meeting_id: str) -> Optional[Summary]:
        """Stored summary, or None when absent or empty."""
        data = await self.store.get(SUMMARIES, meeting_id)
        if not data or not data.get("summary"):
            return None
        return Summary.model_validate(data)

    async def has_valid_summary(self, meeting_id: str) -> bool:
        existing = await self.get_summary(meeting_id)
        return existing is not None and is_valid_summary(existing.summary)

    async def generate_summary_with_insights(
        self,
        transcript: Sequence[TranscriptSegment],
        meeting_id: str
    ) -> Optional[Summary]:
        """
        Produce and store the summary, action items and insights for a meeting.

        Returns:
            The stored Summary, or None when generation was skipped (a valid
            summary already exists, the transcript is empty, or AI is disabled)
        """
        if not self.ai_service.available:
            logger.error(f"AI features are disabled; skipping summary: meeting_id={meeting_id}")
            return None

        if await self.has_valid_summary(meeting_id):
            logger.info(f"Valid summary already exists, skipping generation: meeting_id={meeting_id}")
            return None

        if not transcript:
            logger.info(f"No transcript content for summary generation: meeting_id={meeting_id}")
            return None

        logger.info(
            f"Generating summary: meeting_id={meeting_id}, segments={len(transcript)}"
        )

        summary_text = await self.ai_service.generate_meeting_summary(transcript)
        action_items = await self.ai_service.extract_action_items(transcript)
        insights = await self.ai_service.generate_meeting_insights(transcript)

        summary = Summary(
            meeting_id=meeting_id,
            summary=summary_text,
            action_items=action_items,
            insights=insights,
            last_updated=utc_now_iso(),
        )

        if not await self.save_summary(meeting_id, summary):
            return None

        logger.info(
            f"Summary generated: meeting_id={meeting_id}, "
            f"action_items={len(action_items)}, sentiment={insights.sentiment.value}"
        )
        return summary

    async def save_summary(self, meeting_id: str, summary: Summary) -> bool:
        """
        Store a summary unless it is invalid or a valid one is already stored.

        Returns:
            True if the summary was written
        """
        if await self.has_valid_summary(meeting_id):
            logger.info(f"Summary already exists, not overwriting: meeting_id={meeting_id}")
            return False

        if not is_valid_summary(summary.summary):
            logger.warning(f"Refusing to save invalid summary: meeting_id={meeting_id}")
            return False

        await self.store.set(SUMMARIES, meeting_id, summary.model_dump(mode="json"))
        return True

    async def summary_text_for_display(self, meeting_id: str) -> str:
        existing = await self.get_summary(meeting_id)
        if existing is None:
            return SUMMARY_PLACEHOLDER
        return existing.summary
