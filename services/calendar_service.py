"""CalendarService: upcoming video meetings from the user's Google Calendar."""
import logging
from datetime import datetime, timedelta
from typing import List, Optional

import httpx

from models.calendar_event import CalendarEvent, CalendarView
from services.meeting_service import MeetingService
from services.token_cache import TokenCache
from utils.errors import CalendarFetchFailure
from utils.timestamps import utc_now

logger = logging.getLogger(__name__)

EVENTS_URL = "https://www.googleapis.com/calendar/v3/calendars/primary/events"
CONNECT_CALENDAR_MESSAGE = "Please connect your Google Calendar"


def upcoming_week_range(now: Optional[datetime] = None) -> tuple[str, str]:
    """From now until the same time on the upcoming Sunday (now itself on a Sunday)."""
    now = now or utc_now()
    sunday_offset = (7 - (now.weekday() + 1) % 7) % 7
    return now.isoformat(), (now + timedelta(days=sunday_offset)).isoformat()


def filter_video_meetings(items: List[dict]) -> List[CalendarEvent]:
    """Events that carry a video conference entry point with a uri."""
    events = []
    for item in items:
        event = CalendarEvent.model_validate(item)
        if event.has_video_entry_point():
            events.append(event)
    return events


class CalendarService:

    def __init__(self, http_client: httpx.AsyncClient, meeting_service: MeetingService, token_cache: TokenCache):
        self.http_client = http_client
        self.meeting_service = meeting_service
        self.token_cache = token_cache

    async def _list_events(self, access_token: str, params: dict) -> List[CalendarEvent]:
        try:
            response = await self.http_client.get(
                EVENTS_URL,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"}
            )
        except httpx.HTTPError as e:
            logger.error(f"Calendar request failed: error={e}")
            raise CalendarFetchFailure(f"Failed to fetch calendar events: {e}") from e

        if response.status_code >= 400:
            try:
                message = response.json().get("error", {}).get("message")
            except ValueError:
                message = None
            message = message or (
                f"Failed to fetch calendar events: {response.status_code} {response.reason_phrase}"
            )
            logger.warning(f"Calendar API error: status={response.status_code}, message={message}")
            raise CalendarFetchFailure(message)

        events = filter_video_meetings(response.json().get("items", []))
        logger.info(f"Calendar events fetched: video_meetings={len(events)}")
        return events

    async def fetch_calendar_events(self, access_token: str, user_id: str) -> List[CalendarEvent]:
        """Video meetings from now to the upcoming Sunday; new ones are saved as meetings."""
        time_min, time_max = upcoming_week_range()
        events = await self._list_events(access_token, {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
            "conferenceDataVersion": "1",
        })
        await self.meeting_service.save_meetings_from_calendar(events, user_id)
        return events

    async def fetch_calendar_events_for_display(
        self,
        access_token: str,
        time_min: str,
        time_max: str
    ) -> List[CalendarEvent]:
        """Video meetings in an arbitrary range; nothing is persisted."""
        return await self._list_events(access_token, {
            "timeMin": time_min,
            "timeMax": time_max,
            "singleEvents": "true",
            "orderBy": "startTime",
            "maxResults": "100",
            "conferenceDataVersion": "1",
        })

    async def load_calendar_view(self, user_id: str) -> CalendarView:
        """Upcoming meetings for the user, or a connect prompt without a cached token."""
        access_token = await self.token_cache.get_access_token(user_id)
        if not access_token:
            logger.info(f"No calendar access token cached: user_id={user_id}")
            return CalendarView(events=[], error=CONNECT_CALENDAR_MESSAGE)

        try:
            events = await self.fetch_calendar_events(access_token, user_id)
        except CalendarFetchFailure as e:
            return CalendarView(events=[], error=e.message)
        return CalendarView(events=events)
