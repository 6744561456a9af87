"""Per-meeting private notes."""
from typing import Dict

from pydantic import BaseModel, Field, field_validator


class NoteItem(BaseModel):
    id: str
    content: str
    created_at: str
    updated_at: str


class NoteCollection(BaseModel):
    """
    All notes for one meeting, stored as a single document.

    The document is removed when its last note is deleted.
    """
    id: str
    meeting_id: str
    user_id: str
    notes: Dict[str, NoteItem] = Field(default_factory=dict)
    created_at: str
    updated_at: str


class NoteContent(BaseModel):
    """Request body for creating or editing a note."""
    content: str = Field(..., description="Note text")

    @field_validator('content')
    @classmethod
    def content_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("note content cannot be empty or contain only whitespace")
        return v
