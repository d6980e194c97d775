"""Derive the conversation identifier for an inbound request."""

import re

from starlette.requests import Request

from support_chat.utils.ip import get_client_ip

SESSION_HEADER = "X-Session-ID"
MAX_TOKEN_LENGTH = 64

_TOKEN_DISALLOWED = re.compile(r"[^a-zA-Z0-9_-]")
# Identifiers echoed back to clients may carry an address (ip_10.0.0.1, ip_::1)
_ID_DISALLOWED = re.compile(r"[^a-zA-Z0-9_.:-]")


def _clean(value: str | None, disallowed: re.Pattern, max_length: int) -> str | None:
    if not value:
        return None
    cleaned = disallowed.sub("", value.strip()[:max_length])
    return cleaned or None


def normalize_token(value: str | None) -> str | None:
    return _clean(value, _TOKEN_DISALLOWED, MAX_TOKEN_LENGTH)


def session_token(request: Request) -> str | None:
    # Repeated headers: the first value wins
    values = request.headers.getlist(SESSION_HEADER)
    return normalize_token(values[0]) if values else None


def derive_conversation_id(request: Request, requested_id: str | None = None) -> str:
    """Explicit id, else `session_<token>`, else `ip_<client address>`."""
    explicit = _clean(requested_id, _ID_DISALLOWED, MAX_TOKEN_LENGTH + len("session_"))
    if explicit:
        return explicit
    token = session_token(request)
    if token:
        return f"session_{token}"
    return f"ip_{get_client_ip(request)}"
