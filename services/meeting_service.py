"""MeetingService: meeting records and the aggregated meeting view."""
import logging
from typing import Any, Dict, List, Optional, Sequence

from models.calendar_event import CalendarEvent
from models.meeting import Meeting, MeetingStatus, MeetingView
from services.chat_service import ChatService
from services.document_store import DocumentStore
from services.invitation_service import InvitationService
from services.notes_service import NotesService
from services.summary_service import SummaryService
from services.transcript_service import TranscriptService
from utils.errors import MeetingOperationFailure
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

MEETINGS = "meetings"


class MeetingService:
    """Creates meetings from calendar events and invitations; never deletes them."""

    def __init__(
        self,
        store: DocumentStore,
        invitation_service: InvitationService,
        transcript_service: TranscriptService,
        summary_service: SummaryService,
        chat_service: ChatService,
        notes_service: NotesService,
    ):
        self.store = store
        self.invitation_service = invitation_service
        self.transcript_service = transcript_service
        self.summary_service = summary_service
        self.chat_service = chat_service
        self.notes_service = notes_service

    async def save_meetings_from_calendar(
        self,
        events: Sequence[CalendarEvent],
        user_id: str
    ) -> List[str]:
        """
        Create a meeting for every event not stored yet.

        Returns:
            Ids of the meetings created by this call
        """
        created = []
        for event in events:
            if await self.store.exists(MEETINGS, event.id):
                continue

            now = utc_now_iso()
            meeting = Meeting(
                id=event.id,
                user_id=user_id,
                status=MeetingStatus.active,
                created_at=now,
                updated_at=now,
                title=event.summary,
                meet_link=event.meet_link(),
                description=event.description,
                start=event.start,
                end=event.end,
                attendees=event.attendees,
            )
            await self.store.set(MEETINGS, meeting.id, meeting.model_dump(mode="json"))
            created.append(meeting.id)

        if created:
            logger.info(f"Meetings saved from calendar: user_id={user_id}, created={len(created)}")
        return created

    async def fetch_meeting_details(self, event_id: str, user_id: str) -> Optional[Meeting]:
        """
        Existing meeting, or a new 'invited' meeting when the user holds an
        invitation for the event, or None.
        """
        data = await self.store.get(MEETINGS, event_id)
        if data is not None:
            return Meeting.model_validate(data)

        invitation = await self.invitation_service.find_for_invitee(event_id, user_id)
        if invitation is None:
            return None

        now = utc_now_iso()
        meeting = Meeting(
            id=event_id,
            user_id=user_id,
            status=MeetingStatus.invited,
            created_at=now,
            updated_at=now,
            title=invitation.meeting_title or None,
        )
        await self.store.set(MEETINGS, event_id, meeting.model_dump(mode="json"))
        logger.info(f"Meeting created from invitation: event_id={event_id}, user_id={user_id}")
        return meeting

    async def get_meeting_data(self, event_id: str) -> Meeting:
        data = await self.store.get(MEETINGS, event_id)
        if data is None:
            raise MeetingOperationFailure(f"Meeting with ID \"{event_id}\" not found.")
        return Meeting.model_validate(data)

    async def update_meeting_data(self, event_id: str, fields: Dict[str, Any]) -> Meeting:
        """Merge fields into a stored meeting."""
        await self.get_meeting_data(event_id)
        await self.store.set(MEETINGS, event_id, {**fields, "updated_at": utc_now_iso()}, merge=True)
        logger.info(f"Meeting updated: event_id={event_id}, fields={sorted(fields)}")
        return await self.get_meeting_data(event_id)

    async def retrieve_all_meetings(self, user_id: Optional[str] = None) -> List[Meeting]:
        """Meetings sorted by start time, newest first."""
        rows = await self.store.list(MEETINGS)
        meetings = [Meeting.model_validate(row) for row in rows]
        if user_id is not None:
            meetings = [meeting for meeting in meetings if meeting.user_id == user_id]
        return sorted(meetings, key=lambda meeting: meeting.start_sort_key(), reverse=True)

    async def start_meeting(self, event_id: str) -> Meeting:
        return await self.update_meeting_data(event_id, {"status": MeetingStatus.in_progress.value})

    async def complete_meeting(self, event_id: str) -> Meeting:
        """Mark the meeting completed and its transcript complete (triggers the summary)."""
        meeting = await self.update_meeting_data(event_id, {"status": MeetingStatus.completed.value})
        await self.transcript_service.mark_complete(event_id)
        return meeting

    async def get_meeting_view(self, event_id: str) -> MeetingView:
        meeting = await self.get_meeting_data(event_id)
        document = await self.transcript_service.get_document(event_id)
        summary = await self.summary_service.get_summary(event_id)

        return MeetingView(
            meeting=meeting,
            transcript=document.transcript if document else [],
            is_complete=document.is_complete if document else False,
            summary=await self.summary_service.summary_text_for_display(event_id),
            action_items=summary.action_items if summary else [],
            insights=summary.insights if summary else None,
            chat=await self.chat_service.get_chat(event_id),
            notes=await self.notes_service.get_notes(event_id),
        )
