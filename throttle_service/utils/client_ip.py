"""Client IP extraction from proxy headers."""

from __future__ import annotations

from typing import Mapping

UNKNOWN_CLIENT_IP = "unknown"


def _header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup for plain dicts and Starlette Headers."""

    value = headers.get(name)
    if value is not None:
        return value
    for key, candidate in headers.items():
        if key.lower() == name:
            return candidate
    return None


def get_client_ip(headers: Mapping[str, str]) -> str:
    """Return the originating client IP from request headers.

    Checks, in order:
    - ``x-forwarded-for`` (first entry of the comma-separated chain)
    - ``cf-connecting-ip`` (Cloudflare)
    - ``x-real-ip`` (nginx)

    Args:
        headers: Request headers (Starlette Headers or a plain mapping).

    Returns:
        The client IP, or "unknown" when no header is present.

    Examples:
        >>> get_client_ip({"x-forwarded-for": "1.2.3.4, 5.6.7.8"})
        '1.2.3.4'
        >>> get_client_ip({})
        'unknown'
    """

    forwarded_for = _header(headers, "x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    cf_connecting_ip = _header(headers, "cf-connecting-ip")
    if cf_connecting_ip:
        return cf_connecting_ip

    real_ip = _header(headers, "x-real-ip")
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT_IP
