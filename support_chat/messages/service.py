"""Message business logic: persist the user turn, call the model, persist the reply."""

import logging
from datetime import datetime, timezone

from fastapi import Depends

from support_chat.config.settings import Settings, get_settings
from support_chat.conversations.repository import HistoryStore, get_history_store
from support_chat.conversations.schemas import ConversationRecord
from support_chat.db.models import SENDER_ASSISTANT, SENDER_USER
from support_chat.llm.context import load_history_window, trim_history_for_budget
from support_chat.llm.errors import GatewayError, RateLimitedError
from support_chat.llm.gateway import GenerationRequest, ModelGateway, Role, get_model_gateway
from support_chat.llm.prompts import build_system_instruction
from support_chat.llm.token_counter import get_estimator

logger = logging.getLogger(__name__)


class InvalidMessageError(ValueError):
    """The inbound message is not a 1..max length string."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_message(message: object, max_length: int) -> str:
    if not isinstance(message, str):
        raise InvalidMessageError("Invalid Input: 'message' is required")
    text = message.strip()
    if not 0 < len(text) <= max_length:
        raise InvalidMessageError(f"Message must be 1-{max_length} characters.")
    return text


class ChatService:
    def __init__(self, store: HistoryStore, gateway: ModelGateway, settings: Settings):
        self.store = store
        self.gateway = gateway
        self.settings = settings
        self.system_instruction = build_system_instruction(settings.SYSTEM_INSTRUCTION)
        self.estimate = get_estimator(settings.TOKEN_ESTIMATOR)

    async def resolve_conversation(self, conversation_id: str) -> ConversationRecord:
        conv = await self.store.find_conversation(conversation_id)
        if conv is None:
            # Idempotent: a concurrent creator for the same id yields the same record
            conv = await self.store.create_conversation(conversation_id)
            logger.info("Created conversation %s", conversation_id)
        return conv

    async def build_request(self, conversation_id: str, user_message: str) -> GenerationRequest:
        window = await load_history_window(self.store, conversation_id, self.settings.HISTORY_WINDOW_SIZE)

        # The window ends with the user turn just stored; it is sent as the new message instead
        if window and window[-1].role is Role.USER and window[-1].text == user_message:
            window = window[:-1]

        history = trim_history_for_budget(window, self.estimate, self.settings.CONTEXT_TOKEN_BUDGET)
        return GenerationRequest(
            system_instruction=self.system_instruction,
            history=history,
            new_message=user_message,
            max_output_tokens=self.settings.MAX_OUTPUT_TOKENS,
        )

    async def get_response(self, conversation_id: str, user_message: object) -> str:
        """Handle one inbound user message and return the assistant reply."""
        text = normalize_message(user_message, self.settings.MAX_MESSAGE_LENGTH)

        await self.resolve_conversation(conversation_id)
        await self.store.append_message(conversation_id, SENDER_USER, text, _utcnow())

        request = await self.build_request(conversation_id, text)

        try:
            reply = await self.gateway.generate(request)
        except RateLimitedError:
            logger.warning("Model gateway rate limited for conversation %s", conversation_id)
            raise
        except GatewayError:
            logger.exception("Model gateway failed for conversation %s", conversation_id)
            raise

        now = _utcnow()
        await self.store.append_message(conversation_id, SENDER_ASSISTANT, reply, now)
        await self.store.touch_conversation(conversation_id, now)
        return reply


def get_chat_service(
    store: HistoryStore = Depends(get_history_store),
    gateway: ModelGateway = Depends(get_model_gateway),
    settings: Settings = Depends(get_settings),
) -> ChatService:
    return ChatService(store, gateway, settings)
