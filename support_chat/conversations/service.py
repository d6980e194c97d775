"""Read access to stored conversation history."""

import asyncio
from datetime import datetime

from fastapi import HTTPException

from support_chat.conversations.repository import HistoryStore
from support_chat.conversations.schemas import ConversationRecord, HistoryPage, MessageRecord


async def get_history_page(
    store: HistoryStore,
    conversation_id: str,
    limit: int,
    before: datetime | None = None,
) -> HistoryPage:
    """Return up to `limit` messages older than `before`, oldest first.

    `has_more` is true when messages remain older than the oldest one returned.
    """
    conv = await store.find_conversation(conversation_id)
    if conv is None:
        return HistoryPage(conversation=None, messages=[], has_more=False)

    newest_first = await store.query_messages(conversation_id, before=before, limit=limit, order="desc")
    if not newest_first:
        return HistoryPage(conversation=conv, messages=[], has_more=False)

    remaining = await store.count_messages(conversation_id, before=newest_first[-1].timestamp)
    return HistoryPage(conversation=conv, messages=list(reversed(newest_first)), has_more=remaining > 0)


async def get_full_history(store: HistoryStore, conversation_id: str) -> tuple[ConversationRecord, list[MessageRecord]]:
    conv = await store.find_conversation(conversation_id)
    if conv is None:
        raise HTTPException(status_code=404, detail="Conversation not found")
    messages = await store.query_messages(conversation_id, order="asc")
    return conv, messages


async def list_recent_conversations(store: HistoryStore, limit: int = 50) -> list[tuple[ConversationRecord, int]]:
    conversations = await store.list_conversations(limit)
    counts = await asyncio.gather(*(store.count_messages(c.conversation_id) for c in conversations))
    return list(zip(conversations, counts))
