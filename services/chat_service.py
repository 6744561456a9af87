"""ChatService: Q&A over a meeting transcript, with stored history."""
import logging
from typing import List

from models.chat import ChatExchange, ChatLog
from services.ai_service import AIService
from services.document_store import DocumentStore
from services.transcript_service import TranscriptService
from utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

CHATS = "chats"


class ChatService:

    def __init__(self, store: DocumentStore, ai_service: AIService, transcript_service: TranscriptService):
        self.store = store
        self.ai_service = ai_service
        self.transcript_service = transcript_service

    async def get_chat(self, meeting_id: str) -> List[ChatExchange]:
        data = await self.store.get(CHATS, meeting_id)
        if data is None:
            return []
        return ChatLog.model_validate(data).chat

    async def save_chat(self, meeting_id: str, chat: List[ChatExchange]) -> None:
        """Replace the stored history with chat."""
        log = ChatLog(meeting_id=meeting_id, chat=list(chat), last_updated=utc_now_iso())
        await self.store.set(CHATS, meeting_id, log.model_dump(mode="json"))

    async def clear_chat(self, meeting_id: str) -> None:
        await self.save_chat(meeting_id, [])
        logger.info(f"Chat cleared: meeting_id={meeting_id}")

    async def ask(self, meeting_id: str, question: str) -> ChatExchange:
        """Answer a question from the stored transcript and append it to the history."""
        transcript = await self.transcript_service.get_transcript(meeting_id)
        answer = await self.ai_service.chat_with_ai(transcript, question)

        exchange = ChatExchange(question=question, answer=answer)
        history = await self.get_chat(meeting_id)
        await self.save_chat(meeting_id, history + [exchange])

        logger.info(
            f"Chat answered: meeting_id={meeting_id}, segments={len(transcript)}, "
            f"history={len(history) + 1}"
        )
        return exchange
