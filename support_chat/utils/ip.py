"""Client network address resolution."""

from starlette.requests import Request

from support_chat.config.settings import get_settings


def get_client_ip(request: Request) -> str:
    """Socket peer address, or the forwarded client when the peer is a trusted proxy."""
    peer = request.client.host if request.client else "unknown"
    trusted = get_settings().trusted_proxies_set
    forwarded = request.headers.get("x-forwarded-for")
    ip = peer
    if forwarded and peer in trusted:
        hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
        # Walk back from the nearest hop; the first untrusted one is the client
        for hop in reversed(hops):
            ip = hop
            if hop not in trusted:
                break
    return ip.replace("::ffff:", "")
