"""History store: append-only message log keyed by conversation identifier."""

from abc import ABC, abstractmethod
from datetime import datetime
from functools import lru_cache
from typing import Literal

from starlette.concurrency import run_in_threadpool

from support_chat.conversations.schemas import ConversationRecord, MessageRecord
from support_chat.db.client import get_supabase
from support_chat.db.models import CONVERSATIONS, MESSAGES

Order = Literal["asc", "desc"]


class HistoryStore(ABC):
    @abstractmethod
    async def find_conversation(self, conversation_id: str) -> ConversationRecord | None:
        ...

    @abstractmethod
    async def create_conversation(self, conversation_id: str) -> ConversationRecord:
        """Create the conversation, or return the existing one if it is already there."""
        ...

    @abstractmethod
    async def touch_conversation(self, conversation_id: str, timestamp: datetime) -> None:
        ...

    @abstractmethod
    async def list_conversations(self, limit: int = 50) -> list[ConversationRecord]:
        """Most recently updated first."""
        ...

    @abstractmethod
    async def append_message(
        self, conversation_id: str, sender: str, text: str, timestamp: datetime
    ) -> MessageRecord:
        ...

    @abstractmethod
    async def query_messages(
        self,
        conversation_id: str,
        *,
        before: datetime | None = None,
        limit: int | None = None,
        order: Order = "asc",
    ) -> list[MessageRecord]:
        """Messages ordered by timestamp, ties by insertion order. `before` is exclusive."""
        ...

    @abstractmethod
    async def count_messages(self, conversation_id: str, *, before: datetime | None = None) -> int:
        ...


class SupabaseHistoryStore(HistoryStore):
    """HistoryStore over the `conversations` and `messages` tables.

    The supabase client is synchronous, so every query runs in the thread pool.
    Errors from PostgREST propagate unchanged.
    """

    def __init__(self, client=None):
        self._client = client

    @property
    def db(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    async def _run(self, query):
        return await run_in_threadpool(query.execute)

    async def find_conversation(self, conversation_id: str) -> ConversationRecord | None:
        result = await self._run(
            self.db.table(CONVERSATIONS).select("*").eq("conversation_id", conversation_id).limit(1)
        )
        return ConversationRecord.model_validate(result.data[0]) if result.data else None

    async def create_conversation(self, conversation_id: str) -> ConversationRecord:
        # The unique constraint on conversation_id makes racing creators converge on one row
        await self._run(
            self.db.table(CONVERSATIONS).upsert(
                {"conversation_id": conversation_id},
                on_conflict="conversation_id",
                ignore_duplicates=True,
            )
        )
        conv = await self.find_conversation(conversation_id)
        if conv is None:
            raise RuntimeError(f"Conversation {conversation_id} missing after upsert")
        return conv

    async def touch_conversation(self, conversation_id: str, timestamp: datetime) -> None:
        await self._run(
            self.db.table(CONVERSATIONS)
            .update({"updated_at": timestamp.isoformat()})
            .eq("conversation_id", conversation_id)
        )

    async def list_conversations(self, limit: int = 50) -> list[ConversationRecord]:
        result = await self._run(
            self.db.table(CONVERSATIONS).select("*").order("updated_at", desc=True).limit(limit)
        )
        return [ConversationRecord.model_validate(row) for row in result.data]

    async def append_message(
        self, conversation_id: str, sender: str, text: str, timestamp: datetime
    ) -> MessageRecord:
        row = {
            "conversation_id": conversation_id,
            "sender": sender,
            "text": text,
            "timestamp": timestamp.isoformat(),
        }
        result = await self._run(self.db.table(MESSAGES).insert(row))
        return MessageRecord.model_validate(result.data[0])

    async def query_messages(
        self,
        conversation_id: str,
        *,
        before: datetime | None = None,
        limit: int | None = None,
        order: Order = "asc",
    ) -> list[MessageRecord]:
        desc = order == "desc"
        query = self.db.table(MESSAGES).select("*").eq("conversation_id", conversation_id)
        if before is not None:
            query = query.lt("timestamp", before.isoformat())
        query = query.order("timestamp", desc=desc).order("id", desc=desc)
        if limit is not None:
            query = query.limit(limit)
        result = await self._run(query)
        return [MessageRecord.model_validate(row) for row in result.data]

    async def count_messages(self, conversation_id: str, *, before: datetime | None = None) -> int:
        query = self.db.table(MESSAGES).select("id", count="exact").eq("conversation_id", conversation_id)
        if before is not None:
            query = query.lt("timestamp", before.isoformat())
        result = await self._run(query)
        return result.count or 0


@lru_cache()
def get_history_store() -> HistoryStore:
    return SupabaseHistoryStore()
