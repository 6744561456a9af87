"""
Notes router: private notes attached to a meeting.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from models.notes import NoteContent, NoteItem
from models.request_context import RequestContext
from utils.context_utils import get_current_user, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings/{meeting_id}/notes", tags=["notes"])


@router.get("", response_model=List[NoteItem])
async def get_notes(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.notes_service.get_notes(meeting_id)


@router.post("", response_model=NoteItem)
async def add_note(
    meeting_id: str,
    body: NoteContent,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.notes_service.add_note(meeting_id, context.user_id, body.content)


@router.patch("/{note_id}", response_model=NoteItem)
async def update_note(
    meeting_id: str,
    note_id: str,
    body: NoteContent,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.notes_service.update_note(meeting_id, note_id, body.content)


@router.delete("/{note_id}")
async def delete_note(
    meeting_id: str,
    note_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    await services.notes_service.delete_note(meeting_id, note_id)
    return {"meeting_id": meeting_id, "deleted": note_id}
