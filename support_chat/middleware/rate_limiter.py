"""In-memory sliding window rate limiter keyed by client address."""

import logging
import time
from collections import defaultdict, deque

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from support_chat.config.settings import get_settings
from support_chat.middleware.error_handler import RATE_LIMITED_MESSAGE
from support_chat.utils.ip import get_client_ip

logger = logging.getLogger(__name__)

EXEMPT_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}


class RateLimiterMiddleware(BaseHTTPMiddleware):
    def __init__(self, app):
        super().__init__(app)
        # client address -> request timestamps within the window
        self._windows: dict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = 0.0

    def _check_limit(self, window: deque[float], limit: int, period: float, now: float) -> tuple[bool, int]:
        """Remove expired entries, check if under limit. Returns (allowed, retry_after_seconds)."""
        cutoff = now - period
        while window and window[0] <= cutoff:
            window.popleft()

        if len(window) >= limit:
            retry_after = int(window[0] - cutoff) + 1
            return False, retry_after

        window.append(now)
        return True, 0

    def _sweep(self, period: float, now: float) -> None:
        """Drop clients with no requests left inside the window."""
        cutoff = now - period
        stale = [key for key, window in self._windows.items() if not window or window[-1] <= cutoff]
        for key in stale:
            del self._windows[key]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        settings = get_settings()
        period = settings.RATE_LIMIT_WINDOW_SECONDS
        now = time.time()
        if now - self._last_sweep >= period:
            self._sweep(period, now)

        client_ip = get_client_ip(request)
        allowed, retry_after = self._check_limit(self._windows[client_ip], settings.RATE_LIMIT_REQUESTS, period, now)
        if not allowed:
            logger.debug("Rate limit exceeded for %s on %s", client_ip, request.url.path)
            return JSONResponse(
                status_code=429,
                content={"error": RATE_LIMITED_MESSAGE},
                headers={"Retry-After": str(retry_after)},
            )

        return await call_next(request)
