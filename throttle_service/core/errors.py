"""Application-level exception types.

This module defines domain errors used across adapters and the HTTP layer,
enabling consistent error handling, logging, and API responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients.

    Fields are optional to keep backward compatibility while encouraging
    consistent shapes across the codebase.
    """

    code: str
    message: str
    hint: str
    field: str
    actual_value: int | float
    policy: str
    available_policies: list[str]
    limit: int
    retry_after: int
    reset_at_ms: int
    request_id: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class InvalidPolicyError(ValidationAppError, ValueError):
    """Raised when a rate limit policy has a non-positive limit or window.

    Also a ValueError so plain callers can treat it as bad input.
    """


class UnknownPolicyError(AppError):
    """Raised when a policy name is not present in the policy table."""


@dataclass
class RateLimitExceededAppError(AppError):
    """Raised when a caller has exhausted its quota for the current window.

    Attributes:
        headers: Response headers (Retry-After, X-RateLimit-*) for the 429.
    """

    headers: dict[str, str] | None = None
