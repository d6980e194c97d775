"""Tests for the Supabase history store's query construction."""

import asyncio
from datetime import datetime, timezone
from types import SimpleNamespace

from support_chat.conversations.repository import SupabaseHistoryStore
from support_chat.conversations.schemas import ConversationRecord

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

CONV_ROW = {
    "id": 1,
    "conversation_id": "session_abc",
    "created_at": "2026-03-01T12:00:00+00:00",
    "updated_at": "2026-03-01T12:00:00+00:00",
}

MSG_ROW = {
    "id": 7,
    "conversation_id": "session_abc",
    "sender": "user",
    "text": "Hi",
    "timestamp": "2026-03-01T12:00:00+00:00",
}


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.calls = [("table", table)]

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, *args, *sorted(kwargs.items())))
            return self
        return method

    def execute(self):
        self.client.executed.append(self.calls)
        return self.client.results.pop(0)


class FakeClient:
    def __init__(self, *results):
        self.results = list(results)
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def _result(data=None, count=None):
    return SimpleNamespace(data=data or [], count=count)


def test_find_conversation():
    client = FakeClient(_result([CONV_ROW]), _result([]))
    store = SupabaseHistoryStore(client)

    conv = asyncio.run(store.find_conversation("session_abc"))
    assert conv.conversation_id == "session_abc"
    assert asyncio.run(store.find_conversation("missing")) is None
    assert client.executed[0] == [
        ("table", "conversations"),
        ("select", "*"),
        ("eq", "conversation_id", "session_abc"),
        ("limit", 1),
    ]


def test_create_conversation_is_an_upsert():
    client = FakeClient(_result([]), _result([CONV_ROW]))
    store = SupabaseHistoryStore(client)

    conv = asyncio.run(store.create_conversation("session_abc"))
    assert conv.conversation_id == "session_abc"
    assert client.executed[0] == [
        ("table", "conversations"),
        ("upsert", {"conversation_id": "session_abc"}, ("ignore_duplicates", True), ("on_conflict", "conversation_id")),
    ]


def test_append_message():
    client = FakeClient(_result([MSG_ROW]))
    store = SupabaseHistoryStore(client)

    msg = asyncio.run(store.append_message("session_abc", "user", "Hi", NOW))
    assert msg.id == 7
    assert client.executed[0][1] == (
        "insert",
        {"conversation_id": "session_abc", "sender": "user", "text": "Hi", "timestamp": NOW.isoformat()},
    )


def test_query_messages_newest_first_before():
    client = FakeClient(_result([MSG_ROW]))
    store = SupabaseHistoryStore(client)

    rows = asyncio.run(store.query_messages("session_abc", before=NOW, limit=20, order="desc"))
    assert [m.text for m in rows] == ["Hi"]
    assert client.executed[0] == [
        ("table", "messages"),
        ("select", "*"),
        ("eq", "conversation_id", "session_abc"),
        ("lt", "timestamp", NOW.isoformat()),
        ("order", "timestamp", ("desc", True)),
        ("order", "id", ("desc", True)),
        ("limit", 20),
    ]


def test_query_messages_ascending_unbounded():
    client = FakeClient(_result([]))
    store = SupabaseHistoryStore(client)

    asyncio.run(store.query_messages("session_abc"))
    assert client.executed[0][-2:] == [("order", "timestamp", ("desc", False)), ("order", "id", ("desc", False))]


def test_count_messages():
    client = FakeClient(_result(count=12), _result(count=None))
    store = SupabaseHistoryStore(client)

    assert asyncio.run(store.count_messages("session_abc", before=NOW)) == 12
    assert asyncio.run(store.count_messages("session_abc")) == 0
    assert client.executed[0][1] == ("select", "id", ("count", "exact"))
    assert ("lt", "timestamp", NOW.isoformat()) in client.executed[0]
    assert not any(call[0] == "lt" for call in client.executed[1])


def test_conversation_record_fields():
    assert set(ConversationRecord.model_fields) == {"conversation_id", "created_at", "updated_at"}
