"""Pydantic models for meeting summaries and insights.

Insights are extracted with instructor; StructuredSummary is decoded from the
model's raw JSON answer (see utils/response_parsing.py).
"""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class SentimentEnum(str, Enum):
    """Overall tone of a meeting."""
    positive = "positive"
    neutral = "neutral"
    negative = "negative"


class Insights(BaseModel):
    """Sentiment, topics and decisions derived from a transcript."""
    sentiment: SentimentEnum = Field(
        default=SentimentEnum.neutral,
        description="Overall sentiment of the meeting: positive, neutral, or negative"
    )
    key_topics: List[str] = Field(
        default_factory=list,
        description="Main topics discussed in the meeting"
    )
    decisions: List[str] = Field(
        default_factory=list,
        description="Decisions that were made during the meeting"
    )

    @field_validator('sentiment', mode='before')
    @classmethod
    def unknown_sentiment_is_neutral(cls, v):
        """Values outside positive/neutral/negative are read as neutral."""
        if isinstance(v, SentimentEnum):
            return v
        if isinstance(v, str) and v.strip().lower() in SentimentEnum.__members__:
            return v.strip().lower()
        return SentimentEnum.neutral

    @classmethod
    def placeholder(cls, reason: str = "Could not analyze") -> "Insights":
        """Insights used when extraction fails."""
        return cls(
            sentiment=SentimentEnum.neutral,
            key_topics=[reason],
            decisions=[reason],
        )


class StructuredSummary(BaseModel):
    """JSON shape requested from the model for the primary summary path."""
    summary: str = Field(
        description="Bullet-point summary of the meeting, 10-12 points"
    )
    key_points: List[str] = Field(
        default_factory=list,
        alias="keyPoints",
        description="Most important points raised"
    )
    decisions: List[str] = Field(
        default_factory=list,
        description="Decisions recorded in the meeting"
    )

    model_config = {"populate_by_name": True}


class Summary(BaseModel):
    """
    Stored summary for a meeting.

    At most one is generated per meeting; a stored summary is only replaced
    when it is invalid (empty or an insufficient-input reply).
    """
    meeting_id: str
    summary: str
    action_items: List[str] = Field(default_factory=list)
    insights: Optional[Insights] = None
    last_updated: str
