"""Pydantic schemas for chat message requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    # Type and length are checked by the service so every caller gets the same 400
    message: Any = None
    conversation_id: str | None = Field(default=None, alias="conversationId")

    model_config = ConfigDict(populate_by_name=True)


class SendMessageResponse(BaseModel):
    reply: str
    conversation_id: str = Field(alias="conversationId")

    model_config = ConfigDict(populate_by_name=True)
