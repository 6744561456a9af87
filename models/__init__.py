"""Data models for the meeting assistant service."""
from .transcript import TranscriptSegment, TranscriptDocument, TranscriptAppendRequest
from .summary import Insights, SentimentEnum, StructuredSummary, Summary
from .calendar_event import CalendarEvent, CalendarView, EventTime, Attendee
from .chat import ChatExchange, ChatLog, ChatQuestion
from .notes import NoteItem, NoteCollection, NoteContent
from .invitation import Invitation, InvitationCreate, InvitationStatus
from .meeting import Meeting, MeetingStatus, MeetingUpdate, MeetingView
from .user import UserProfile, GoogleSignInRequest, SignInResponse
from .chunk_result import ChunkResult, ChunkStatus
from .request_context import RequestContext

__all__ = [
    # Transcript
    "TranscriptSegment",
    "TranscriptDocument",
    "TranscriptAppendRequest",
    # Summary and insights
    "Insights",
    "SentimentEnum",
    "StructuredSummary",
    "Summary",
    # Calendar
    "CalendarEvent",
    "CalendarView",
    "EventTime",
    "Attendee",
    # Chat
    "ChatExchange",
    "ChatLog",
    "ChatQuestion",
    # Notes
    "NoteItem",
    "NoteCollection",
    "NoteContent",
    # Invitations
    "Invitation",
    "InvitationCreate",
    "InvitationStatus",
    # Meetings
    "Meeting",
    "MeetingStatus",
    "MeetingUpdate",
    "MeetingView",
    # Users
    "UserProfile",
    "GoogleSignInRequest",
    "SignInResponse",
    # Capture
    "ChunkResult",
    "ChunkStatus",
    "RequestContext",
]
