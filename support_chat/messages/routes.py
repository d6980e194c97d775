"""Chat endpoints: send a message, page through history."""

import asyncio
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request

from support_chat.config.settings import get_settings
from support_chat.conversations.repository import HistoryStore, get_history_store
from support_chat.conversations.schemas import ConversationRef, HistoryMessage, HistoryResponse
from support_chat.conversations.service import get_history_page
from support_chat.messages.identity import derive_conversation_id
from support_chat.messages.schemas import SendMessageRequest, SendMessageResponse
from support_chat.messages.service import ChatService, get_chat_service

router = APIRouter(prefix="/chat", tags=["Messages"])


@router.post(
    "/message",
    response_model=SendMessageResponse,
    summary="Send a message",
    description="Store the user's message, ask the model for a reply, store and return the reply.",
)
async def send(body: SendMessageRequest, request: Request, service: ChatService = Depends(get_chat_service)):
    conversation_id = derive_conversation_id(request, body.conversation_id)
    # Shielded: a client disconnect must not cancel the model call or the persistence after it
    reply = await asyncio.shield(service.get_response(conversation_id, body.message))
    return SendMessageResponse(reply=reply, conversation_id=conversation_id)


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Page through history",
    description=(
        "Messages of the caller's conversation, newest page first, each page oldest-first. "
        "Pass the oldest returned timestamp as `before` to fetch the previous page."
    ),
)
async def history(
    request: Request,
    limit: int | None = Query(None, ge=1),
    before: datetime | None = Query(None),
    conversation_id: str | None = Query(None, alias="conversationId"),
    store: HistoryStore = Depends(get_history_store),
):
    settings = get_settings()
    limit = min(limit or settings.HISTORY_PAGE_SIZE, settings.HISTORY_MAX_PAGE_SIZE)
    page = await get_history_page(store, derive_conversation_id(request, conversation_id), limit, before)
    return HistoryResponse(
        conversation=ConversationRef(id=page.conversation.conversation_id) if page.conversation else None,
        messages=[HistoryMessage.model_validate(m, from_attributes=True) for m in page.messages],
        has_more=page.has_more,
    )
