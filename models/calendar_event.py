"""Models for the subset of Google Calendar v3 events the service reads."""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class EventTime(BaseModel):
    """Start or end of an event; timed events use date_time, all-day events date."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date_time: Optional[str] = Field(default=None, alias="dateTime")
    date: Optional[str] = None
    time_zone: Optional[str] = Field(default=None, alias="timeZone")


class Attendee(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    response_status: Optional[str] = Field(default=None, alias="responseStatus")


class EntryPoint(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    entry_point_type: Optional[str] = Field(default=None, alias="entryPointType")
    uri: Optional[str] = None
    label: Optional[str] = None


class ConferenceData(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    entry_points: List[EntryPoint] = Field(default_factory=list, alias="entryPoints")


class CalendarEvent(BaseModel):
    """
    A calendar event as returned by the events.list endpoint.

    Unknown fields are ignored; field names accept both the API's camelCase
    and snake_case.
    """
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    summary: Optional[str] = None
    description: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    attendees: List[Attendee] = Field(default_factory=list)
    creator: Optional[Attendee] = None
    hangout_link: Optional[str] = Field(default=None, alias="hangoutLink")
    conference_data: Optional[ConferenceData] = Field(default=None, alias="conferenceData")

    def video_entry_point(self) -> Optional[EntryPoint]:
        """First entry point of type 'video' that has a uri, if any."""
        if self.conference_data is None:
            return None
        for entry in self.conference_data.entry_points:
            if entry.entry_point_type == "video" and entry.uri:
                return entry
        return None

    def has_video_entry_point(self) -> bool:
        return self.video_entry_point() is not None

    def meet_link(self) -> Optional[str]:
        entry = self.video_entry_point()
        if entry is not None:
            return entry.uri
        return self.hangout_link


class CalendarView(BaseModel):
    """Calendar listing shown to the user, with a message when unavailable."""
    events: List[CalendarEvent] = Field(default_factory=list)
    error: Optional[str] = None
