"""Pydantic schemas for stored conversations, messages and history responses."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# --- Store records ---

class ConversationRecord(BaseModel):
    conversation_id: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MessageRecord(BaseModel):
    id: int
    conversation_id: str
    sender: Literal["user", "assistant"]
    text: str
    timestamp: datetime

    model_config = {"from_attributes": True}


class HistoryPage(BaseModel):
    conversation: ConversationRecord | None
    messages: list[MessageRecord]
    has_more: bool


# --- Responses ---

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConversationRef(_CamelModel):
    id: str


class HistoryMessage(_CamelModel):
    id: int
    sender: str
    text: str
    timestamp: datetime


class HistoryResponse(_CamelModel):
    conversation: ConversationRef | None
    messages: list[HistoryMessage]
    has_more: bool = Field(alias="hasMore")


class ConversationDetail(_CamelModel):
    id: str
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class ConversationHistoryResponse(_CamelModel):
    conversation: ConversationDetail
    messages: list[HistoryMessage]


class ConversationSummary(ConversationDetail):
    message_count: int = Field(alias="messageCount")


class ConversationListResponse(_CamelModel):
    conversations: list[ConversationSummary]
