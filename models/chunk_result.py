"""Outcome of processing one recorded audio chunk."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.transcript import TranscriptSegment


class ChunkStatus(str, Enum):
    segments = "segments"
    empty = "empty"
    error = "error"


class ChunkResult(BaseModel):
    """
    Result of one capture-and-transcribe step.

    Attributes:
        status: segments when text was produced; empty for silence or no
            speech; error when transcription raised
        segments: Exactly one segment when status is segments
        error: Error description when status is error
        byte_size: Size of the encoded chunk
    """
    status: ChunkStatus
    segments: List[TranscriptSegment] = Field(default_factory=list)
    error: Optional[str] = None
    byte_size: int = 0

    @classmethod
    def empty(cls, byte_size: int = 0) -> "ChunkResult":
        return cls(status=ChunkStatus.empty, byte_size=byte_size)

    @classmethod
    def failed(cls, error: str, byte_size: int = 0) -> "ChunkResult":
        return cls(status=ChunkStatus.error, error=error, byte_size=byte_size)
