"""Support Chat API: FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from urllib.parse import urlparse

from fastapi import FastAPI

from support_chat.config.cors import SecurityHeadersMiddleware, configure_cors
from support_chat.config.settings import get_settings
from support_chat.conversations.routes import router as conversations_router
from support_chat.messages.routes import router as messages_router
from support_chat.middleware.error_handler import register_error_handlers
from support_chat.middleware.rate_limiter import RateLimiterMiddleware
from support_chat.middleware.request_id import RequestIDMiddleware

settings = get_settings()
logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Support chat starting: provider=%s model=%s store=%s",
        settings.LLM_PROVIDER, settings.active_model, urlparse(settings.SUPABASE_URL).hostname,
    )
    yield


app = FastAPI(
    title="Support Chat API",
    description=(
        "Customer-support chat backend.\n\n"
        "## Features\n"
        "- Conversations keyed by session token or client address\n"
        "- Durable message history with paginated reads\n"
        "- Recent-history window trimmed to a token budget before each model call\n"
        "- Google AI (Gemini) or Groq model gateway\n"
        "- Per-address rate limiting"
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Health", "description": "Health check endpoints"},
        {"name": "Messages", "description": "Send messages and page through history"},
        {"name": "Conversations", "description": "Conversation listings (admin/debug)"},
    ],
)

# --- Middleware (order matters: last added runs outermost) ---
app.add_middleware(RateLimiterMiddleware)
configure_cors(app)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

# --- Error handlers ---
register_error_handlers(app)

# --- Routes ---
app.include_router(messages_router)
app.include_router(conversations_router)


@app.get("/", tags=["Health"], include_in_schema=False)
@app.get("/health", tags=["Health"], summary="Health check", description="Returns OK if the service is running.")
async def health_check():
    return {"status": "ok", "provider": settings.LLM_PROVIDER, "model": settings.active_model}
