"""Model gateway: Google AI (default) and Groq behind one typed interface."""

import logging
from abc import ABC, abstractmethod
from enum import Enum

from pydantic import BaseModel, Field

from support_chat.config.settings import get_settings
from support_chat.llm.errors import GatewayError, RateLimitedError

logger = logging.getLogger(__name__)


class Role(str, Enum):
    USER = "user"
    MODEL = "model"


class Turn(BaseModel):
    role: Role
    text: str


class GenerationRequest(BaseModel):
    system_instruction: str
    history: list[Turn] = Field(default_factory=list)
    new_message: str
    max_output_tokens: int = Field(gt=0)


class ModelGateway(ABC):
    @abstractmethod
    async def generate(self, request: GenerationRequest) -> str:
        """Return the reply text. Raises RateLimitedError or GatewayError."""
        ...


def _translate_google_error(exc: Exception) -> GatewayError:
    from google.api_core import exceptions as google_exceptions

    if isinstance(exc, google_exceptions.ResourceExhausted):
        return RateLimitedError(str(exc))
    return GatewayError(f"Google AI request failed: {exc}")


def _translate_groq_error(exc: Exception) -> GatewayError:
    import groq

    if isinstance(exc, groq.RateLimitError):
        return RateLimitedError(str(exc))
    return GatewayError(f"Groq request failed: {exc}")


class GoogleAIGateway(ModelGateway):
    def __init__(self, api_key: str, model: str):
        import google.generativeai as genai

        genai.configure(api_key=api_key)
        self._genai = genai
        self.model = model

    def _safety_settings(self) -> dict:
        from google.generativeai.types import HarmBlockThreshold, HarmCategory

        return {HarmCategory.HARM_CATEGORY_HARASSMENT: HarmBlockThreshold.BLOCK_LOW_AND_ABOVE}

    def _convert_history(self, history: list[Turn]) -> list[dict]:
        return [{"role": turn.role.value, "parts": [turn.text]} for turn in history]

    async def generate(self, request: GenerationRequest) -> str:
        try:
            gen_model = self._genai.GenerativeModel(
                self.model,
                system_instruction=request.system_instruction,
                safety_settings=self._safety_settings(),
            )
            chat = gen_model.start_chat(history=self._convert_history(request.history))
            response = await chat.send_message_async(
                request.new_message,
                generation_config=self._genai.GenerationConfig(max_output_tokens=request.max_output_tokens),
            )
            # .text raises ValueError when the candidate was blocked or empty
            return response.text
        except Exception as exc:
            raise _translate_google_error(exc) from exc


class GroqGateway(ModelGateway):
    def __init__(self, api_key: str, model: str):
        from groq import AsyncGroq

        self._client = AsyncGroq(api_key=api_key)
        self.model = model

    def _convert_messages(self, request: GenerationRequest) -> list[dict]:
        """Convert turns to OpenAI-style chat messages."""
        messages = [{"role": "system", "content": request.system_instruction}]
        for turn in request.history:
            role = "user" if turn.role is Role.USER else "assistant"
            messages.append({"role": role, "content": turn.text})
        messages.append({"role": "user", "content": request.new_message})
        return messages

    async def generate(self, request: GenerationRequest) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=self._convert_messages(request),
                max_tokens=request.max_output_tokens,
            )
        except Exception as exc:
            raise _translate_groq_error(exc) from exc
        return response.choices[0].message.content or ""


# Singletons
_gateways: dict[str, ModelGateway] = {}


def get_model_gateway() -> ModelGateway:
    settings = get_settings()
    provider = settings.LLM_PROVIDER
    if provider not in _gateways:
        if provider == "google":
            _gateways[provider] = GoogleAIGateway(settings.GEMINI_API_KEY, settings.GEMINI_MODEL)
        elif provider == "groq":
            _gateways[provider] = GroqGateway(settings.GROQ_API_KEY, settings.GROQ_MODEL)
        else:
            raise ValueError(f"Unknown LLM provider: {provider}")
        logger.info("Model gateway ready: provider=%s model=%s", provider, settings.active_model)
    return _gateways[provider]
