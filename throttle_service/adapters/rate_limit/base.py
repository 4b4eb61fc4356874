"""Rate limiter interfaces.

The API should depend on this abstraction (not the concrete implementation)
so we can swap storage backends later (e.g., a shared counter service) with
minimal changes.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from throttle_service.core.errors import InvalidPolicyError


@dataclass(frozen=True)
class RateLimitPolicy:
    """How many requests an identifier may make per fixed window.

    Attributes:
        limit: Max requests per window.
        window_seconds: Window duration in seconds (sub-second values allowed).
    """

    limit: int
    window_seconds: float

    def __post_init__(self) -> None:
        validate_policy(self)

    @property
    def window_ms(self) -> int:
        return max(1, int(round(self.window_seconds * 1000)))


def validate_policy(policy: RateLimitPolicy) -> None:
    """Fail fast on a policy that would always allow or always block.

    Args:
        policy: Policy to validate.

    Raises:
        InvalidPolicyError: If limit or window_seconds is not positive.
    """

    if not isinstance(policy.limit, int) or isinstance(policy.limit, bool) or policy.limit < 1:
        raise InvalidPolicyError(
            code="invalid_policy",
            message="limit must be a positive integer",
            details={"field": "limit", "actual_value": policy.limit},
        )
    if not math.isfinite(policy.window_seconds) or policy.window_seconds <= 0:
        raise InvalidPolicyError(
            code="invalid_policy",
            message="window_seconds must be a finite number > 0",
            details={"field": "window_seconds", "actual_value": policy.window_seconds},
        )


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at_ms: UNIX epoch milliseconds when the current window resets.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at_ms: int
    retry_after_seconds: int | None

    @property
    def reset_at(self) -> int:
        """Reset time in whole epoch seconds, rounded up."""
        return -(-self.reset_at_ms // 1000)


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Count one request for identifier against policy.

        Args:
            identifier: Caller/resource key (e.g., IP address, namespaced user id).
            policy: Limit and window to enforce.

        Returns:
            RateLimitResult describing whether it was allowed.

        Raises:
            InvalidPolicyError: If the policy is malformed.
        """
        raise NotImplementedError

    def sweep(self) -> int:
        """Drop expired state. Backends without local state have nothing to do."""
        return 0
