"""InvitationService: invite users to meetings and track their answers."""
import logging
from typing import List, Optional

from models.invitation import Invitation, InvitationStatus
from services.document_store import DocumentStore
from utils.errors import MeetingOperationFailure
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

INVITATIONS = "meeting_invitations"


class InvitationService:
    """Invitation lifecycle: pending -> accepted | declined."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def create_invitation(
        self,
        event_id: str,
        organizer_id: str,
        invitee_email: str,
        meeting_title: str = ""
    ) -> str:
        """Store a pending invitation and return its id."""
        now = utc_now_iso()
        invitation_id = await self.store.add(INVITATIONS, {
            "event_id": event_id,
            "organizer_id": organizer_id,
            "invitee_email": invitee_email,
            "invitee_id": "",
            "meeting_title": meeting_title,
            "status": InvitationStatus.pending.value,
            "created_at": now,
            "updated_at": now,
        })
        logger.info(
            f"Invitation created: invitation_id={invitation_id}, "
            f"event_id={event_id}, organizer_id={organizer_id}"
        )
        return invitation_id

    async def get_invitation(self, invitation_id: str) -> Invitation:
        data = await self.store.get(INVITATIONS, invitation_id)
        if data is None:
            raise MeetingOperationFailure(f"Invitation \"{invitation_id}\" not found.")
        return Invitation.model_validate(data)

    async def accept_invitation(self, invitation_id: str, invitee_id: str) -> Invitation:
        """Accept an invitation; accepting twice leaves it accepted."""
        await self.get_invitation(invitation_id)
        await self.store.update(INVITATIONS, invitation_id, {
            "invitee_id": invitee_id,
            "status": InvitationStatus.accepted.value,
            "updated_at": utc_now_iso(),
        })
        logger.info(f"Invitation accepted: invitation_id={invitation_id}, invitee_id={invitee_id}")
        return await self.get_invitation(invitation_id)

    async def decline_invitation(self, invitation_id: str) -> Invitation:
        await self.get_invitation(invitation_id)
        await self.store.update(INVITATIONS, invitation_id, {
            "status": InvitationStatus.declined.value,
            "updated_at": utc_now_iso(),
        })
        logger.info(f"Invitation declined: invitation_id={invitation_id}")
        return await self.get_invitation(invitation_id)

    async def get_pending_invitations(self, invitee_email: str) -> List[Invitation]:
        rows = await self.store.query(
            INVITATIONS,
            invitee_email=invitee_email,
            status=InvitationStatus.pending.value
        )
        return [Invitation.model_validate(row) for row in rows]

    async def get_accepted_invitations(self, invitee_id: str) -> List[Invitation]:
        rows = await self.store.query(
            INVITATIONS,
            invitee_id=invitee_id,
            status=InvitationStatus.accepted.value
        )
        return [Invitation.model_validate(row) for row in rows]

    async def find_for_invitee(self, event_id: str, invitee_id: str) -> Optional[Invitation]:
        """An invitation to event_id held by invitee_id, if one exists."""
        rows = await self.store.query(INVITATIONS, event_id=event_id, invitee_id=invitee_id)
        if not rows:
            return None
        return Invitation.model_validate(rows[0])
