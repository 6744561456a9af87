"""
Calendar router: upcoming meetings with a video conference link.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from models.calendar_event import CalendarEvent, CalendarView
from models.request_context import RequestContext
from services.calendar_service import CONNECT_CALENDAR_MESSAGE
from utils.context_utils import get_current_user, get_services
from utils.errors import CalendarFetchFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/events", response_model=CalendarView)
async def upcoming_events(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """
    Video meetings from now until the upcoming Sunday.

    Without a cached Google access token the response carries no events and
    the message "Please connect your Google Calendar".
    """
    return await services.calendar_service.load_calendar_view(context.user_id)


@router.get("/events/range", response_model=List[CalendarEvent])
async def events_in_range(
    time_min: str = Query(..., description="RFC 3339 lower bound (inclusive)"),
    time_max: str = Query(..., description="RFC 3339 upper bound (exclusive)"),
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Video meetings in an arbitrary range, for calendar display."""
    access_token = await services.auth_service.get_access_token(context.user_id)
    if not access_token:
        raise CalendarFetchFailure(CONNECT_CALENDAR_MESSAGE)
    return await services.calendar_service.fetch_calendar_events_for_display(
        access_token, time_min, time_max
    )
