"""Unit tests for SummaryService: at-most-once generation and placeholder text."""
import pytest

from models.summary import Summary
from models.transcript import TranscriptSegment
from services.summary_service import SUMMARY_PLACEHOLDER, SummaryService, is_valid_summary
from utils.errors import SummaryGenerationFailure

MEETING_ID = "evt-summary-1"

SEGMENTS = [TranscriptSegment(text="We ship on Monday.", timestamp="2024-05-01T10:00:00.000Z")]


@pytest.fixture
def summary_service(store, ai_mock):
    return SummaryService(store, ai_mock)


class TestIsValidSummary:

    @pytest.mark.parametrize("text,expected", [
        ("- a point", True),
        ("", False),
        ("   ", False),
        (None, False),
        ("Please provide the meeting transcript.", False),
    ])
    def test_validity(self, text, expected):
        assert is_valid_summary(text) is expected


class TestGenerateSummaryWithInsights:

    @pytest.mark.asyncio
    async def test_generates_and_stores(self, summary_service, ai_mock):
        summary = await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID)

        assert summary.summary == "- Discussed the launch plan"
        assert summary.action_items == ["Send the deck by Friday"]
        assert summary.insights.decisions == ["Ship on Monday"]

        stored = await summary_service.get_summary(MEETING_ID)
        assert stored == summary

    @pytest.mark.asyncio
    async def test_second_call_is_noop(self, summary_service, ai_mock):
        first = await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID)
        second = await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID)

        assert first is not None
        assert second is None
        assert ai_mock.generate_meeting_summary.await_count == 1
        assert ai_mock.extract_action_items.await_count == 1
        assert ai_mock.generate_meeting_insights.await_count == 1
        assert (await summary_service.get_summary(MEETING_ID)).summary == first.summary

    @pytest.mark.asyncio
    async def test_empty_transcript_skips_generation(self, summary_service, ai_mock):
        result = await summary_service.generate_summary_with_insights([], MEETING_ID)

        assert result is None
        ai_mock.generate_meeting_summary.assert_not_awaited()
        assert await summary_service.get_summary(MEETING_ID) is None
        assert await summary_service.summary_text_for_display(MEETING_ID) == SUMMARY_PLACEHOLDER

    @pytest.mark.asyncio
    async def test_insufficient_input_reply_not_saved(self, summary_service, ai_mock):
        ai_mock.generate_meeting_summary.return_value = "Please provide a transcript to summarize."

        result = await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID)

        assert result is None
        assert await summary_service.get_summary(MEETING_ID) is None

    @pytest.mark.asyncio
    async def test_invalid_stored_summary_is_replaced(self, summary_service, store, ai_mock):
        await store.set("summaries", MEETING_ID, {
            "meeting_id": MEETING_ID,
            "summary": "Please provide more context.",
            "action_items": [],
            "insights": None,
            "last_updated": "2024-05-01T10:00:00.000Z",
        })

        result = await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID)

        assert result is not None
        assert (await summary_service.get_summary(MEETING_ID)).summary == "- Discussed the launch plan"

    @pytest.mark.asyncio
    async def test_ai_disabled_skips(self, summary_service, ai_mock):
        ai_mock.available = False

        assert await summary_service.generate_summary_with_insights(SEGMENTS, MEETING_ID) is None
        ai_mock.generate_meeting_summary.assert_not_awaited()


class TestSaveSummary:

    @pytest.mark.asyncio
    async def test_valid_summary_not_overwritten(self, summary_service):
        original = Summary(meeting_id=MEETING_ID, summary="- original", last_updated="2024-05-01T10:00:00.000Z")
        replacement = Summary(meeting_id=MEETING_ID, summary="- replacement", last_updated="2024-05-01T11:00:00.000Z")

        assert await summary_service.save_summary(MEETING_ID, original) is True
        assert await summary_service.save_summary(MEETING_ID, replacement) is False
        assert (await summary_service.get_summary(MEETING_ID)).summary == "- original"

    @pytest.mark.asyncio
    async def test_display_text_uses_stored_summary(self, summary_service):
        await summary_service.save_summary(
            MEETING_ID,
            Summary(meeting_id=MEETING_ID, summary="- stored", last_updated="2024-05-01T10:00:00.000Z")
        )

        assert await summary_service.summary_text_for_display(MEETING_ID) == "- stored"


class TestSummaryGenerationFailure:

    def test_reports_summary_error(self):
        error = SummaryGenerationFailure("Summary could not be generated")

        assert error.status_code == 500
        assert error.to_dict() == {"error": "SUMMARY_ERROR", "message": "Summary could not be generated"}
