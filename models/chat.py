"""Chat models for Q&A over a meeting transcript."""
from typing import List

from pydantic import BaseModel, Field, field_validator


class ChatExchange(BaseModel):
    """One question and the assistant's answer."""
    question: str
    answer: str


class ChatLog(BaseModel):
    """Stored chat history for a meeting, in ask order."""
    meeting_id: str
    chat: List[ChatExchange] = Field(default_factory=list)
    last_updated: str


class ChatQuestion(BaseModel):
    """Request body for asking a question about a meeting."""
    question: str = Field(
        ...,
        description="Question about the meeting transcript"
    )

    @field_validator('question')
    @classmethod
    def question_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("question cannot be empty or contain only whitespace")
        return v.strip()
