"""
Invitations router: invite users to meetings and answer invitations.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from models.invitation import Invitation, InvitationCreate
from models.request_context import RequestContext
from utils.context_utils import get_current_user, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("", response_model=Invitation)
async def create_invitation(
    body: InvitationCreate,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    invitation_id = await services.invitation_service.create_invitation(
        event_id=body.event_id,
        organizer_id=context.user_id,
        invitee_email=body.invitee_email,
        meeting_title=body.meeting_title,
    )
    return await services.invitation_service.get_invitation(invitation_id)


@router.get("/pending", response_model=List[Invitation])
async def pending_invitations(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    """Invitations sent to the signed-in user's email that await an answer."""
    return await services.invitation_service.get_pending_invitations(context.email.lower())


@router.get("/accepted", response_model=List[Invitation])
async def accepted_invitations(
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.invitation_service.get_accepted_invitations(context.user_id)


@router.post("/{invitation_id}/accept", response_model=Invitation)
async def accept_invitation(
    invitation_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.invitation_service.accept_invitation(invitation_id, context.user_id)


@router.post("/{invitation_id}/decline", response_model=Invitation)
async def decline_invitation(
    invitation_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.invitation_service.decline_invitation(invitation_id)
