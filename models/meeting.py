"""
Meeting Models

A meeting is created the first time a calendar event with a video conference
link is observed, or when an invitee opens a meeting they were invited to.
Meetings are never deleted.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.calendar_event import Attendee, EventTime
from models.chat import ChatExchange
from models.notes import NoteItem
from models.summary import Insights
from models.transcript import TranscriptSegment


class MeetingStatus(str, Enum):
    """Lifecycle status of a meeting."""
    invited = "invited"
    active = "active"
    in_progress = "in_progress"
    completed = "completed"


class Meeting(BaseModel):
    """
    Stored meeting record.

    Attributes:
        id: Calendar event id, also the key of every per-meeting document
        user_id: Owner (organizer or invitee) of this record
        status: Lifecycle status
        title: Event title copied from the calendar
        meet_link: Video conference URL
        start / end: Event start and end, as the calendar reports them
    """
    id: str
    user_id: str
    status: MeetingStatus = MeetingStatus.active
    created_at: str
    updated_at: str
    title: Optional[str] = None
    meet_link: Optional[str] = None
    description: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    attendees: List[Attendee] = Field(default_factory=list)

    def start_sort_key(self) -> str:
        if self.start is None:
            return ""
        return self.start.date_time or self.start.date or ""


class MeetingUpdate(BaseModel):
    """Partial update for a meeting; unset fields are left untouched."""
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[MeetingStatus] = None
    meet_link: Optional[str] = None

    def fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class MeetingView(BaseModel):
    """Everything the meeting page renders, in one response."""
    meeting: Meeting
    transcript: List[TranscriptSegment] = Field(default_factory=list)
    is_complete: bool = False
    summary: str
    action_items: List[str] = Field(default_factory=list)
    insights: Optional[Insights] = None
    chat: List[ChatExchange] = Field(default_factory=list)
    notes: List[NoteItem] = Field(default_factory=list)
