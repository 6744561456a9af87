"""Unit tests for CalendarService against a mocked Google Calendar API."""
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from services.calendar_service import (
    CONNECT_CALENDAR_MESSAGE,
    CalendarService,
    filter_video_meetings,
    upcoming_week_range,
)
from utils.errors import CalendarFetchFailure

VIDEO_ITEM = {
    "id": "evt-video-1",
    "summary": "Design review",
    "start": {"dateTime": "2024-05-01T10:00:00Z"},
    "conferenceData": {
        "entryPoints": [{"entryPointType": "video", "uri": "https://meet.google.com/abc-defg-hij"}]
    },
}
PLAIN_ITEM = {"id": "evt-plain-1", "summary": "Lunch", "start": {"dateTime": "2024-05-01T12:00:00Z"}}


def make_calendar(handler, token="ya29.token"):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    meeting_service = MagicMock()
    meeting_service.save_meetings_from_calendar = AsyncMock(return_value=[])
    token_cache = MagicMock()
    token_cache.get_access_token = AsyncMock(return_value=token)
    return CalendarService(http_client, meeting_service, token_cache)


class TestUpcomingWeekRange:

    @pytest.mark.parametrize("day,expected_end_day", [
        (1, 5),   # Wednesday -> Sunday
        (4, 5),   # Saturday -> Sunday
        (5, 5),   # Sunday -> same day
        (6, 12),  # Monday -> next Sunday
    ])
    def test_ends_on_sunday(self, day, expected_end_day):
        now = datetime(2024, 5, day, 9, 30, tzinfo=timezone.utc)

        start, end = upcoming_week_range(now)

        assert start == now.isoformat()
        end_dt = datetime.fromisoformat(end)
        assert end_dt.day == expected_end_day
        assert end_dt.weekday() == 6
        assert end_dt.time() == now.time()


class TestFilterVideoMeetings:

    def test_only_video_events_kept(self):
        events = filter_video_meetings([VIDEO_ITEM, PLAIN_ITEM])

        assert [e.id for e in events] == ["evt-video-1"]


class TestFetchCalendarEvents:

    @pytest.mark.asyncio
    async def test_request_and_persistence(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["request"] = request
            return httpx.Response(200, json={"items": [VIDEO_ITEM, PLAIN_ITEM]})

        calendar = make_calendar(handler)

        events = await calendar.fetch_calendar_events("ya29.token", "u1")

        assert [e.id for e in events] == ["evt-video-1"]
        request = seen["request"]
        assert request.headers["Authorization"] == "Bearer ya29.token"
        assert request.url.params["singleEvents"] == "true"
        assert request.url.params["orderBy"] == "startTime"
        calendar.meeting_service.save_meetings_from_calendar.assert_awaited_once_with(events, "u1")

    @pytest.mark.asyncio
    async def test_google_error_message_is_used(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"code": 401, "message": "Invalid Credentials"}})

        calendar = make_calendar(handler)

        with pytest.raises(CalendarFetchFailure) as exc_info:
            await calendar.fetch_calendar_events("expired", "u1")

        assert exc_info.value.message == "Invalid Credentials"
        assert exc_info.value.code == "CALENDAR_ERROR"

    @pytest.mark.asyncio
    async def test_status_text_when_body_unreadable(self):
        def handler(request):
            return httpx.Response(503, content=b"<html>down</html>")

        calendar = make_calendar(handler)

        with pytest.raises(CalendarFetchFailure) as exc_info:
            await calendar.fetch_calendar_events("ya29.token", "u1")

        assert exc_info.value.message == "Failed to fetch calendar events: 503 Service Unavailable"

    @pytest.mark.asyncio
    async def test_display_range_does_not_persist(self):
        seen = {}

        def handler(request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, content=json.dumps({"items": [VIDEO_ITEM]}))

        calendar = make_calendar(handler)

        events = await calendar.fetch_calendar_events_for_display(
            "ya29.token", "2024-05-01T00:00:00Z", "2024-05-31T00:00:00Z"
        )

        assert len(events) == 1
        assert seen["params"]["maxResults"] == "100"
        calendar.meeting_service.save_meetings_from_calendar.assert_not_awaited()


class TestLoadCalendarView:

    @pytest.mark.asyncio
    async def test_no_token_prompts_connect(self):
        def handler(request):
            raise AssertionError("no request expected without a token")

        calendar = make_calendar(handler, token=None)

        view = await calendar.load_calendar_view("u1")

        assert view.events == []
        assert view.error == CONNECT_CALENDAR_MESSAGE

    @pytest.mark.asyncio
    async def test_fetch_failure_becomes_error_text(self):
        def handler(request):
            return httpx.Response(403, json={"error": {"message": "Calendar API disabled"}})

        view = await make_calendar(handler).load_calendar_view("u1")

        assert view.events == []
        assert view.error == "Calendar API disabled"
