"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets TESTING so settings never read a local .env file, and pins the
rate limit defaults the tests rely on.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["TESTING"] = "true"
os.environ.setdefault("RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("RATE_LIMIT_SWEEP_ENABLED", "true")
os.environ.setdefault("LOG_FORMAT", "json")

import pytest

from throttle_service.core.rate_limit import reset_rate_limiter


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    """Give every test an empty process-wide limiter."""
    reset_rate_limiter()
    yield
    reset_rate_limiter()


class FakeClock:
    """Deterministic clock returning UNIX seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
