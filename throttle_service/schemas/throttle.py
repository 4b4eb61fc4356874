from __future__ import annotations

from pydantic import BaseModel, Field

from throttle_service.adapters.rate_limit.base import RateLimitPolicy, RateLimitResult


class ThrottleCheckRequest(BaseModel):
    """Body of a throttle decision request."""

    identifier: str = Field(
        ...,
        description="Caller/resource key, e.g. a user id or IP. Namespaced by policy server-side.",
        examples=["user:123"],
    )


class ThrottleDecisionResponse(BaseModel):
    """Allow/deny decision for one request."""

    policy: str
    allowed: bool
    limit: int = Field(..., ge=1)
    remaining: int = Field(..., ge=0)
    reset_at_ms: int = Field(..., description="UNIX epoch milliseconds when the window resets")
    retry_after_seconds: int | None = Field(
        None,
        description="Seconds to wait before retrying; null when allowed",
    )

    @classmethod
    def from_result(cls, policy: str, result: RateLimitResult) -> "ThrottleDecisionResponse":
        return cls(
            policy=policy,
            allowed=result.allowed,
            limit=result.limit,
            remaining=result.remaining,
            reset_at_ms=result.reset_at_ms,
            retry_after_seconds=result.retry_after_seconds,
        )


class PolicyResponse(BaseModel):
    name: str
    limit: int = Field(..., ge=1)
    window_seconds: float = Field(..., gt=0)

    @classmethod
    def from_policy(cls, name: str, policy: RateLimitPolicy) -> "PolicyResponse":
        return cls(name=name, limit=policy.limit, window_seconds=policy.window_seconds)


class PolicyTableResponse(BaseModel):
    policies: list[PolicyResponse]
