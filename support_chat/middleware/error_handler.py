"""Global exception handlers: map exceptions to `{"error": ...}` JSON responses."""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from support_chat.llm.errors import GatewayError, RateLimitedError
from support_chat.messages.service import InvalidMessageError

logger = logging.getLogger(__name__)

RATE_LIMITED_MESSAGE = "Too many requests. Please try again later."
INTERNAL_ERROR_MESSAGE = "Internal Server Error"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(status: int, message: str, request: Request, headers: dict | None = None) -> JSONResponse:
    headers = {"X-Request-ID": _request_id(request), **(headers or {})}
    return JSONResponse(status_code=status, content={"error": message}, headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        messages = "; ".join(
            f"{'.'.join(str(part) for part in e['loc'])}: {e['msg']}" for e in exc.errors()
        )
        return _error_response(400, f"Invalid Input: {messages}", request)

    @app.exception_handler(InvalidMessageError)
    async def invalid_message(request: Request, exc: InvalidMessageError):
        return _error_response(400, str(exc), request)

    @app.exception_handler(RateLimitedError)
    async def rate_limited(request: Request, exc: RateLimitedError):
        return _error_response(429, RATE_LIMITED_MESSAGE, request)

    @app.exception_handler(GatewayError)
    async def gateway_error(request: Request, exc: GatewayError):
        # Provider detail was logged by the service; it does not cross the boundary
        return _error_response(500, INTERNAL_ERROR_MESSAGE, request)

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return _error_response(exc.status_code, exc.detail, request, exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(500, INTERNAL_ERROR_MESSAGE, request)
