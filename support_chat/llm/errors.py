"""Model gateway failure categories."""


class GatewayError(Exception):
    """The model provider failed to produce a reply."""


class RateLimitedError(GatewayError):
    """The model provider rejected the request for exceeding its rate limit."""
