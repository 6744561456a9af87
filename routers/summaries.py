"""
Summaries router: read or (re)request a meeting summary.
"""
import logging

from fastapi import APIRouter, Depends

from models.request_context import RequestContext
from services.summary_service import SUMMARY_PLACEHOLDER
from utils.context_utils import get_current_user, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings/{meeting_id}/summary", tags=["summaries"])


@router.get("")
async def get_summary(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Stored summary, or the placeholder text while none exists."""
    summary = await services.summary_service.get_summary(meeting_id)
    if summary is None:
        return {
            "meeting_id": meeting_id,
            "summary": SUMMARY_PLACEHOLDER,
            "action_items": [],
            "insights": None,
            "generated": False,
        }
    return {**summary.model_dump(mode="json"), "generated": True}


@router.post("")
async def generate_summary(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """
    Generate the summary from the stored transcript.

    A no-op when a valid summary already exists or the transcript is empty.
    """
    transcript = await services.transcript_service.get_transcript(meeting_id)
    created = await services.summary_service.generate_summary_with_insights(transcript, meeting_id)
    logger.info(
        f"Summary requested: meeting_id={meeting_id}, user_id={context.user_id}, "
        f"created={created is not None}"
    )
    return await get_summary(meeting_id, context, services)
