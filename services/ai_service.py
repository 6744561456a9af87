"""AIService: transcription, summaries, insights and Q&A over meeting transcripts.

Plain-text generations go through the async OpenAI client. Insights are
extracted as a typed model with instructor. The structured summary is decoded
strictly from the model's JSON reply and falls back to a free-text prompt when
the reply is malformed.
"""
import re
import logging
from datetime import datetime
from typing import List, Optional, Sequence

import instructor
import openai
from openai import AsyncOpenAI

from models.summary import Insights, StructuredSummary
from models.transcript import TranscriptSegment
from utils.errors import AppError, MalformedResponse, TranscriptionUnavailable
from utils.response_parsing import decode_model, strip_markdown

logger = logging.getLogger(__name__)

TRANSCRIPTION_PROMPT = (
    "You are a speech-to-text transcription service. Transcribe the following audio "
    "exactly as spoken. If there is no speech, return nothing. Do not add any "
    "commentary or explanations."
)

# Preambles and refusals the model sometimes adds around a transcription
_TRANSCRIPTION_NOISE = [
    re.compile(r"^Here's.*?:", re.IGNORECASE),
    re.compile(r"^The transcription is:", re.IGNORECASE),
    re.compile(r"^The audio says:", re.IGNORECASE),
    re.compile(r"^I'm unable to transcribe.*$", re.IGNORECASE),
    re.compile(r"^I don't have access.*$", re.IGNORECASE),
    re.compile(r"^I need the audio.*$", re.IGNORECASE),
]
_BULLET_RE = re.compile(r"^[-•]\s*")

SUMMARY_FAILED = "Failed to generate structured summary."
FALLBACK_SUMMARY_EMPTY = "Fallback summary generated, but was empty."
ACTION_ITEMS_FAILED = "Failed to extract action items."
CHAT_FAILED = "Unable to answer the question."
CHUNK_EMPTY = "No meaningful content found."
CHUNK_FAILED = "Failed to clean this segment."
AI_UNAVAILABLE = "AI unavailable."


def clean_transcription(text: str) -> str:
    """Strip model preambles; refusals collapse to an empty string."""
    cleaned = text
    for pattern in _TRANSCRIPTION_NOISE:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.strip()
    if not cleaned or "unable to transcribe" in cleaned.lower():
        return ""
    return cleaned


def format_transcript(transcript: Sequence[TranscriptSegment]) -> str:
    return "\n".join(segment.text for segment in transcript)


def _clock_time(timestamp: str) -> str:
    try:
        return datetime.fromisoformat(timestamp.replace("Z", "+00:00")).strftime("%H:%M:%S")
    except ValueError:
        return timestamp


class AIService:
    """Generative model operations used by the capture pipeline and meeting pages.

    Args:
        client: Async OpenAI client; None disables every AI feature
        model: Chat model for summaries, insights and Q&A
        transcription_model: Audio-capable chat model for transcription
        instructor_client: Optional pre-built instructor client (tests)
    """

    def __init__(
        self,
        client: Optional[AsyncOpenAI],
        model: str = "gpt-4o",
        transcription_model: str = "gpt-4o-audio-preview",
        instructor_client=None,
    ):
        self.client = client
        self.model = model
        self.transcription_model = transcription_model

        if instructor_client is not None:
            self.instructor_client = instructor_client
        elif client is not None:
            self.instructor_client = instructor.from_openai(client)
        else:
            self.instructor_client = None

        if self.available:
            logger.info(
                f"AIService initialized with model: {self.model}, "
                f"transcription_model={self.transcription_model}"
            )
        else:
            logger.error("AIService initialized without a client; AI features are disabled")

    @property
    def available(self) -> bool:
        return self.client is not None

    async def _complete(self, prompt: str, **params) -> str:
        completion = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            **params
        )
        return completion.choices[0].message.content or ""

    async def transcribe_audio(self, audio_base64: str, audio_format: str = "wav") -> str:
        """Transcribe one base64-encoded audio chunk.

        Returns:
            The cleaned transcription, or "" for silence, refusals, rate limits
            and unexpected errors.

        Raises:
            TranscriptionUnavailable: If AI is disabled or the model rejects
                the audio (too long or unsupported format).
        """
        if not self.available:
            raise TranscriptionUnavailable("AI features are disabled.")

        logger.info(
            f"Transcribing chunk: model={self.transcription_model}, "
            f"base64_length={len(audio_base64)}"
        )

        try:
            completion = await self.client.chat.completions.create(
                model=self.transcription_model,
                modalities=["text"],
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": TRANSCRIPTION_PROMPT},
                            {
                                "type": "input_audio",
                                "input_audio": {"data": audio_base64, "format": audio_format},
                            },
                        ],
                    }
                ],
            )
        except openai.BadRequestError as e:
            logger.error(f"Transcription rejected: error={e}")
            raise TranscriptionUnavailable("Audio too long or in unsupported format.") from e
        except openai.RateLimitError:
            logger.warning("Transcription quota hit, skipping chunk")
            return ""
        except Exception as e:
            logger.error(f"Transcription failed: error={e}", exc_info=True)
            return ""

        text = clean_transcription(completion.choices[0].message.content or "")
        if text:
            logger.info(f"Transcription complete: length={len(text)} chars")
        return text

    async def summarize_transcript_chunk(self, text: str) -> str:
        """Clean up one transcript segment for display."""
        if not self.available:
            return AI_UNAVAILABLE

        prompt = (
            "Clean up and summarize this segment of a meeting transcript. \n"
            "Preserve natural flow, fix grammar, and remove any disfluencies. "
            "Don't fabricate. Just clean and present clearly:\n---\n"
            f"{text}\n---"
        )
        try:
            response = (await self._complete(prompt, temperature=0.3)).strip()
            return response or CHUNK_EMPTY
        except Exception as e:
            logger.error(f"Segment cleanup failed: error={e}", exc_info=True)
            return CHUNK_FAILED

    async def generate_meeting_summary(self, transcript: Sequence[TranscriptSegment]) -> str:
        """Bullet-point summary; structured JSON first, free text as fallback."""
        if not self.available:
            return AI_UNAVAILABLE

        formatted = format_transcript(transcript)

        try:
            structured = await self._structured_summary(formatted)
            return strip_markdown(structured.summary, drop_code_blocks=True)
        except MalformedResponse as e:
            logger.warning(f"Structured summary malformed, using fallback: error={e.message}")
        except Exception as e:
            logger.warning(f"Structured summary failed, using fallback: error={e}")

        try:
            return await self._fallback_summary(formatted)
        except Exception as e:
            logger.error(f"Fallback summary generation also failed: error={e}", exc_info=True)
            return SUMMARY_FAILED

    async def _structured_summary(self, formatted_transcript: str) -> StructuredSummary:
        prompt = f"""Return ONLY a JSON object in the following format:
{{
  "summary": "A detailed bullet-point summary of the meeting (10-12 points)",
  "keyPoints": ["Main discussion topics as phrases"],
  "decisions": ["Any decisions made during the meeting"]
}}

The summary must cover all key updates, issues discussed, solutions proposed, deadlines mentioned, and responsibilities assigned.

Do NOT include any explanation before or after the JSON object. Return valid JSON only.

Transcript:
{formatted_transcript}"""

        raw = await self._complete(prompt, temperature=0.2, top_p=0.9)
        return decode_model(raw, StructuredSummary)

    async def _fallback_summary(self, formatted_transcript: str) -> str:
        prompt = f"""Provide a detailed bullet-point summary (10-12 points) of the following meeting transcript.
Include key updates, bugs discussed, fixes proposed, deadlines, and decisions. Do not add any explanation.

Transcript:
{formatted_transcript}"""

        text = strip_markdown((await self._complete(prompt)).strip())
        logger.info(f"Fallback summary generated: length={len(text)} chars")
        return text or FALLBACK_SUMMARY_EMPTY

    async def extract_action_items(self, transcript: Sequence[TranscriptSegment]) -> List[str]:
        """One action item per line of the model's plain-text answer."""
        if not self.available:
            return [AI_UNAVAILABLE]

        prompt = f"""Extract all action items from this meeting transcript.
Format each action item as a single bullet point like this:
- [Task] by [Due Date]

If no due date is mentioned, skip it.

Respond with plain text, one bullet point per line. Do not include markdown formatting like **bold** or extra explanation.

Transcript:
{format_transcript(transcript)}"""

        try:
            raw = (await self._complete(prompt)).strip()
        except Exception as e:
            logger.error(f"Action item extraction failed: error={e}", exc_info=True)
            return [ACTION_ITEMS_FAILED]

        items = []
        for line in strip_markdown(raw).split("\n"):
            item = _BULLET_RE.sub("", line).strip()
            if item:
                items.append(item)
        return items

    async def generate_meeting_insights(self, transcript: Sequence[TranscriptSegment]) -> Insights:
        """Sentiment, key topics and decisions; placeholder insights on failure."""
        if self.instructor_client is None:
            return Insights.placeholder("AI unavailable")

        try:
            return await self.instructor_client.create(
                model=self.model,
                response_model=Insights,
                messages=[
                    {"role": "system", "content": self._get_insights_prompt()},
                    {
                        "role": "user",
                        "content": f"Analyze this meeting transcript:\n\n{format_transcript(transcript)}"
                    }
                ],
                temperature=0.1,
                max_retries=2
            )
        except Exception as e:
            logger.error(f"Insight generation failed: error={e}", exc_info=True)
            return Insights.placeholder()

    def _get_insights_prompt(self) -> str:
        return """You analyze meeting transcripts.

Return:
1. **sentiment**: the overall tone of the meeting, one of positive, neutral or negative
2. **key_topics**: the main topics discussed, as short phrases
3. **decisions**: every decision made during the meeting

Only use information explicitly present in the transcript."""

    async def chat_with_ai(self, transcript: Sequence[TranscriptSegment], question: str) -> str:
        """Answer a question using only the transcript."""
        if not self.available:
            raise AppError("AI service unavailable.", code="AI_UNAVAILABLE", status_code=503)

        formatted = "\n".join(
            f"[{_clock_time(segment.timestamp)}] {segment.text}" for segment in transcript
        )
        prompt = (
            "You are an AI assistant for a meeting transcript.\n\n"
            f"Transcript:\n{formatted}\n\n"
            f"User Question: {question}\n\n"
            "Give a helpful answer based only on the transcript. If it's not present, say so."
        )

        try:
            return await self._complete(prompt)
        except Exception as e:
            logger.error(f"Chat answer failed: error={e}", exc_info=True)
            return CHAT_FAILED
