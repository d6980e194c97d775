"""Conversation history endpoints (admin/debug)."""

from fastapi import APIRouter, Depends

from support_chat.conversations.repository import HistoryStore, get_history_store
from support_chat.conversations.schemas import (
    ConversationDetail,
    ConversationHistoryResponse,
    ConversationListResponse,
    ConversationSummary,
    HistoryMessage,
)
from support_chat.conversations.service import get_full_history, list_recent_conversations

router = APIRouter(prefix="/chat", tags=["Conversations"])


@router.get(
    "/history/{conversation_id}",
    response_model=ConversationHistoryResponse,
    summary="Get a conversation",
    description="Full message history of one conversation, oldest first.",
)
async def get(conversation_id: str, store: HistoryStore = Depends(get_history_store)):
    conv, messages = await get_full_history(store, conversation_id)
    return ConversationHistoryResponse(
        conversation=ConversationDetail(
            id=conv.conversation_id, created_at=conv.created_at, updated_at=conv.updated_at,
        ),
        messages=[HistoryMessage.model_validate(m, from_attributes=True) for m in messages],
    )


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List conversations",
    description="The 50 most recently updated conversations with their message counts.",
)
async def list_all(store: HistoryStore = Depends(get_history_store)):
    rows = await list_recent_conversations(store)
    return ConversationListResponse(
        conversations=[
            ConversationSummary(
                id=conv.conversation_id,
                created_at=conv.created_at,
                updated_at=conv.updated_at,
                message_count=count,
            )
            for conv, count in rows
        ]
    )
