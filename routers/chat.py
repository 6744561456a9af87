"""
Chat router: questions about a meeting, answered from its transcript.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends

from models.chat import ChatExchange, ChatQuestion
from models.request_context import RequestContext
from utils.context_utils import get_current_user, get_services

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/meetings/{meeting_id}/chat", tags=["chat"])


@router.get("", response_model=List[ChatExchange])
async def get_chat(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.chat_service.get_chat(meeting_id)


@router.post("", response_model=ChatExchange)
async def ask_question(
    meeting_id: str,
    body: ChatQuestion,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    return await services.chat_service.ask(meeting_id, body.question)


@router.delete("")
async def clear_chat(
    meeting_id: str,
    context: RequestContext = Depends(get_current_user),
    services=Depends(get_services)
):
    await services.chat_service.clear_chat(meeting_id)
    return {"meeting_id": meeting_id, "chat": []}
