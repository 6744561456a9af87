"""
Recording router: start and stop chunked capture for a meeting.

Capture uses the audio devices of the host running this service.
"""
import logging

from fastapi import APIRouter, Depends

from models.request_context import RequestContext
from utils.context_utils import get_current_user, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings/{meeting_id}/recording", tags=["recording"])


@router.post("/start")
async def start_recording(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """
    Begin capturing display and microphone audio for the meeting.

    Raises:
        MediaCaptureUnavailable: 400 when an audio source cannot be opened
        MeetingOperationFailure: 400 when the meeting is already being recorded
    """
    await services.meeting_service.get_meeting_data(meeting_id)
    await services.recording_service.start(meeting_id)
    await services.meeting_service.start_meeting(meeting_id)
    logger.info(f"Recording requested: meeting_id={meeting_id}, user_id={context.user_id}")
    return services.recording_service.status(meeting_id)


@router.post("/stop")
async def stop_recording(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Stop capture, flush the last chunk and mark the transcript complete."""
    transcript = await services.recording_service.stop(meeting_id)
    logger.info(
        f"Recording stop handled: meeting_id={meeting_id}, "
        f"user_id={context.user_id}, segments={len(transcript)}"
    )
    return {"meeting_id": meeting_id, "recording": False, "segments": len(transcript)}


@router.get("/status")
async def recording_status(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return services.recording_service.status(meeting_id)
