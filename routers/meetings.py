"""
Meetings router: meeting records, lifecycle and the aggregated meeting view.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from models.meeting import Meeting, MeetingUpdate, MeetingView
from models.request_context import RequestContext
from utils.context_utils import get_current_user, get_services
from utils.errors import MeetingOperationFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("", response_model=List[Meeting])
async def list_meetings(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Meetings of the signed-in user, newest first."""
    return await services.meeting_service.retrieve_all_meetings(context.user_id)


@router.get("/{meeting_id}", response_model=Meeting)
async def get_meeting(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """
    Meeting details; an accepted invitation creates the meeting on first open.

    Raises:
        MeetingOperationFailure: 404 when the user has no meeting or invitation for it
    """
    meeting = await services.meeting_service.fetch_meeting_details(meeting_id, context.user_id)
    if meeting is None:
        raise MeetingOperationFailure(
            f"Meeting with ID \"{meeting_id}\" not found.",
            status_code=404
        )
    return meeting


@router.patch("/{meeting_id}", response_model=Meeting)
async def update_meeting(
    meeting_id: str,
    body: MeetingUpdate,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.meeting_service.update_meeting_data(meeting_id, body.fields())


@router.post("/{meeting_id}/start", response_model=Meeting)
async def start_meeting(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    logger.info(f"Meeting started: meeting_id={meeting_id}, user_id={context.user_id}")
    return await services.meeting_service.start_meeting(meeting_id)


@router.post("/{meeting_id}/complete", response_model=Meeting)
async def complete_meeting(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Mark the meeting completed; this triggers summary generation."""
    if services.recording_service.is_recording(meeting_id):
        await services.recording_service.stop(meeting_id, complete=False)
    logger.info(f"Meeting completed: meeting_id={meeting_id}, user_id={context.user_id}")
    return await services.meeting_service.complete_meeting(meeting_id)


@router.get("/{meeting_id}/view", response_model=MeetingView)
async def meeting_view(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Meeting, transcript, summary (or placeholder), chat and notes in one response."""
    return await services.meeting_service.get_meeting_view(meeting_id)
