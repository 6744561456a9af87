"""Meeting invitation models."""
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class InvitationStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    declined = "declined"


class Invitation(BaseModel):
    """
    An invitation from an organizer to another user for one calendar event.

    Attributes:
        event_id: Meeting (calendar event) the invitation is for
        organizer_id: User who sent the invitation
        invitee_email: Address the invitation was sent to
        invitee_id: User id of the invitee, set on accept
        status: pending until accepted or declined
    """
    id: str
    event_id: str
    organizer_id: str
    invitee_email: str
    invitee_id: str = ""
    meeting_title: str = ""
    status: InvitationStatus = InvitationStatus.pending
    created_at: str
    updated_at: str


class InvitationCreate(BaseModel):
    """Request body for inviting a user to a meeting."""
    event_id: str = Field(..., description="Calendar event id of the meeting")
    invitee_email: str = Field(..., description="Email address of the invitee")
    meeting_title: str = Field(default="", description="Title shown to the invitee")

    @field_validator('invitee_email')
    @classmethod
    def email_must_look_valid(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invitee_email must be an email address")
        return v
