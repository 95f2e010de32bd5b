"""Client identity extraction for request limiting."""

from __future__ import annotations

from fastapi import Request

# Checked in order; the first non-empty value wins
PROXY_IP_HEADERS: tuple[str, ...] = (
    "X-Real-IP",
    "X-Forwarded-For",
    "X-Forwarded",
    "Client-IP",
)


def real_ip_address(request: Request, *, trust_proxy_headers: bool = True) -> str:
    """Return the client IP, looking behind reverse proxies.

    Header values are returned unmodified, so a multi-hop X-Forwarded-For
    list identifies the whole chain.

    Args:
        request: Incoming request.
        trust_proxy_headers: Read proxy-forwarded headers before the socket
            peer address.

    Returns:
        The identity string, or "unknown" when no address is available.
    """
    if trust_proxy_headers:
        for header in PROXY_IP_HEADERS:
            value = request.headers.get(header)
            if value:
                return value

    return request.client.host if request.client else "unknown"
