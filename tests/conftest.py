"""Shared test fixtures: in-memory history store and a scripted model gateway."""

import asyncio
import os
from datetime import datetime, timezone

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("RATE_LIMIT_REQUESTS", "10000")

import pytest
from fastapi.testclient import TestClient

from support_chat.conversations.repository import HistoryStore, get_history_store
from support_chat.conversations.schemas import ConversationRecord, MessageRecord
from support_chat.llm.gateway import GenerationRequest, ModelGateway, get_model_gateway
from support_chat.main import app


class InMemoryHistoryStore(HistoryStore):
    """Behaves like the Supabase store, including the unique conversation id."""

    def __init__(self):
        self.conversations: dict[str, ConversationRecord] = {}
        self.messages: list[MessageRecord] = []
        self.create_calls = 0
        self.fail_appends = False

    async def find_conversation(self, conversation_id):
        # Yield so concurrent requests interleave between lookup and creation
        await asyncio.sleep(0)
        return self.conversations.get(conversation_id)

    async def create_conversation(self, conversation_id):
        self.create_calls += 1
        await asyncio.sleep(0)
        if conversation_id not in self.conversations:
            now = datetime.now(timezone.utc)
            self.conversations[conversation_id] = ConversationRecord(
                conversation_id=conversation_id, created_at=now, updated_at=now,
            )
        return self.conversations[conversation_id]

    async def touch_conversation(self, conversation_id, timestamp):
        conv = self.conversations[conversation_id]
        self.conversations[conversation_id] = conv.model_copy(update={"updated_at": timestamp})

    async def list_conversations(self, limit=50):
        ordered = sorted(self.conversations.values(), key=lambda c: c.updated_at, reverse=True)
        return ordered[:limit]

    async def append_message(self, conversation_id, sender, text, timestamp):
        if self.fail_appends:
            raise RuntimeError("store unavailable")
        msg = MessageRecord(
            id=len(self.messages) + 1,
            conversation_id=conversation_id,
            sender=sender,
            text=text,
            timestamp=timestamp,
        )
        self.messages.append(msg)
        return msg

    def _select(self, conversation_id, before):
        return [
            m for m in self.messages
            if m.conversation_id == conversation_id and (before is None or m.timestamp < before)
        ]

    async def query_messages(self, conversation_id, *, before=None, limit=None, order="asc"):
        rows = sorted(self._select(conversation_id, before), key=lambda m: (m.timestamp, m.id))
        if order == "desc":
            rows.reverse()
        return rows[:limit] if limit is not None else rows

    async def count_messages(self, conversation_id, *, before=None):
        return len(self._select(conversation_id, before))

    def texts(self, conversation_id):
        return [(m.sender, m.text) for m in self.messages if m.conversation_id == conversation_id]


class ScriptedGateway(ModelGateway):
    """Records every request; replies with `reply` or raises `error`."""

    def __init__(self, reply="Happy to help!"):
        self.reply = reply
        self.error: Exception | None = None
        self.requests: list[GenerationRequest] = []

    async def generate(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def store():
    return InMemoryHistoryStore()


@pytest.fixture
def gateway():
    return ScriptedGateway()


@pytest.fixture
def client(store, gateway):
    app.dependency_overrides[get_history_store] = lambda: store
    app.dependency_overrides[get_model_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def session_header():
    return {"X-Session-ID": "abc123"}
