"""Named rate limit policies.

Maps endpoint classes (financial, auth, ...) to a RateLimitPolicy built from
RateLimitSettings. The limiter itself never sees these names.
"""

from __future__ import annotations

from throttle_service.adapters.rate_limit.base import RateLimitPolicy
from throttle_service.core.config import POLICY_NAMES, RateLimitSettings, settings
from throttle_service.core.errors import UnknownPolicyError


def _policy_from_settings(name: str, cfg: RateLimitSettings) -> RateLimitPolicy:
    return RateLimitPolicy(
        limit=getattr(cfg, f"{name}_limit"),
        window_seconds=getattr(cfg, f"{name}_window_seconds"),
    )


def build_policy_table(rate_limit_settings: RateLimitSettings | None = None) -> dict[str, RateLimitPolicy]:
    """Build the policy table from settings.

    Args:
        rate_limit_settings: Settings to read; defaults to the global settings.

    Returns:
        Mapping of policy name to policy, in POLICY_NAMES order.
    """

    cfg = rate_limit_settings or settings.rate_limit
    return {name: _policy_from_settings(name, cfg) for name in POLICY_NAMES}


def get_policy(name: str, rate_limit_settings: RateLimitSettings | None = None) -> RateLimitPolicy:
    """Look up a single policy by name.

    Only the named policy is read from settings, so this stays cheap on the
    per-request path.

    Raises:
        UnknownPolicyError: If name is not a configured policy.
    """

    if name not in POLICY_NAMES:
        raise UnknownPolicyError(
            code="unknown_policy",
            message=f"Unknown rate limit policy: {name}",
            details={"policy": name, "available_policies": list(POLICY_NAMES)},
        )

    return _policy_from_settings(name, rate_limit_settings or settings.rate_limit)
