"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency function only.
- Swap-friendly: storage backend can be replaced (e.g., a shared counter
  service) behind an abstract interface.
- Namespaced keys: each policy class gets its own identifier prefix so
  unrelated policies never share a bucket.

Key strategy:
- Per user when the X-User-ID header is present.
- Otherwise per client IP taken from proxy headers.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Annotated, Awaitable, Callable

from fastapi import Header, Request

from throttle_service.adapters.rate_limit.base import AbstractRateLimiter, RateLimitPolicy, RateLimitResult
from throttle_service.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from throttle_service.core.config import settings
from throttle_service.core.errors import RateLimitExceededAppError
from throttle_service.core.policies import get_policy
from throttle_service.utils.client_ip import get_client_ip

logger = logging.getLogger(__name__)


_limiter: AbstractRateLimiter | None = None
_limiter_config: int | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return a process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.

    Returns:
        AbstractRateLimiter: Configured limiter instance.
    """

    global _limiter, _limiter_config

    config = settings.rate_limit.lock_stripes

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(lock_stripes=config)
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the cached limiter so the next request starts from an empty store."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def build_rate_limit_key(policy_name: str, request: Request, user_id: str | None) -> tuple[str, str]:
    """Build the limiter key for the current request.

    Args:
        policy_name: Policy class used as namespace.
        request: FastAPI request.
        user_id: Authenticated user id from the X-User-ID header, if any.

    Returns:
        Tuple of (namespaced limiter key, key type).
    """

    if user_id:
        return f"{policy_name}:user:{user_id}", "user"

    return f"{policy_name}:ip:{get_client_ip(request.headers)}", "ip"


def hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing identities."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Standard rate limit response headers for a decision."""

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


def check_and_log(key: str, key_type: str, policy_name: str, policy: RateLimitPolicy) -> RateLimitResult:
    """Run the limiter for key and emit the allowed/exceeded log event."""

    result = get_rate_limiter().check(key, policy)
    log_fields = {
        "policy": policy_name,
        "key_type": key_type,
        "key_hash": hash_limiter_key(key),
        "limit": result.limit,
        "remaining": result.remaining,
        "window_s": policy.window_seconds,
    }

    if result.allowed:
        logger.info("rate_limit.allowed", extra=log_fields)
    else:
        logger.warning(
            "rate_limit.exceeded",
            extra={**log_fields, "retry_after_s": result.retry_after_seconds or 0},
        )
    return result


def enforce_rate_limit(policy_name: str) -> Callable[..., Awaitable[None]]:
    """Build a FastAPI dependency enforcing the named policy.

    Usage:
        @router.post("/tips", dependencies=[Depends(enforce_rate_limit("tips"))])

    Args:
        policy_name: Name of a configured policy.

    Returns:
        Async dependency raising RateLimitExceededAppError (HTTP 429) when the
        requester has exhausted the window.
    """

    async def _dependency(
        request: Request,
        x_user_id: Annotated[str | None, Header(alias="X-User-ID")] = None,
    ) -> None:
        if not settings.rate_limit.enabled:
            return

        policy = get_policy(policy_name)
        key, key_type = build_rate_limit_key(policy_name, request, x_user_id)
        result = check_and_log(key, key_type, policy_name, policy)
        if result.allowed:
            return

        retry_after = result.retry_after_seconds or 0
        raise RateLimitExceededAppError(
            code="rate_limit_exceeded",
            message="Rate limit exceeded. Try again later.",
            details={
                "policy": policy_name,
                "limit": result.limit,
                "retry_after": retry_after,
                "reset_at_ms": result.reset_at_ms,
            },
            headers=rate_limit_headers(result) if settings.rate_limit.include_headers else None,
        )

    _dependency.__name__ = f"enforce_{policy_name}_rate_limit"
    return _dependency
