"""Transcript models: the append-only segment log kept per meeting."""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class TranscriptSegment(BaseModel):
    """One piece of transcribed speech, produced from a single audio chunk."""
    text: str = Field(
        description="Trimmed, non-empty transcribed text"
    )
    timestamp: str = Field(
        description="ISO-8601 UTC time at which the chunk was transcribed"
    )
    confidence: Optional[float] = Field(
        default=None,
        description="Model confidence, when the transcriber reports one"
    )

    @field_validator('text')
    @classmethod
    def text_must_not_be_empty(cls, v: str) -> str:
        """Segments never carry empty or whitespace-only text."""
        if not v or not v.strip():
            raise ValueError("segment text cannot be empty or contain only whitespace")
        return v


class TranscriptDocument(BaseModel):
    """
    Stored transcript for a meeting.

    Segments are only ever appended; order is the order in which chunks
    were transcribed.
    """
    meeting_id: str
    transcript: List[TranscriptSegment] = Field(default_factory=list)
    last_updated: str
    is_complete: bool = False


class TranscriptAppendRequest(BaseModel):
    """Request body for appending segments to a meeting transcript."""
    segments: List[TranscriptSegment] = Field(
        default_factory=list,
        description="Segments to append, in order"
    )
    is_complete: bool = Field(
        default=False,
        description="Mark the transcript complete; triggers summary generation"
    )
