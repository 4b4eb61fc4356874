from fastapi import APIRouter, Depends

from throttle_service.core.policies import build_policy_table, get_policy
from throttle_service.core.rate_limit import check_and_log, enforce_rate_limit
from throttle_service.schemas.throttle import (
    PolicyResponse,
    PolicyTableResponse,
    ThrottleCheckRequest,
    ThrottleDecisionResponse,
)

router = APIRouter(tags=["Throttle"])


@router.get(
    "/policies",
    response_model=PolicyTableResponse,
    dependencies=[Depends(enforce_rate_limit("general"))],
)
async def list_policies() -> PolicyTableResponse:
    """List the configured rate limit policies.

    Returns:
        PolicyTableResponse: Every named policy with its limit and window.
    """
    table = build_policy_table()
    return PolicyTableResponse(
        policies=[PolicyResponse.from_policy(name, policy) for name, policy in table.items()]
    )


@router.post(
    "/throttle/{policy_name}",
    response_model=ThrottleDecisionResponse,
    dependencies=[Depends(enforce_rate_limit("general"))],
)
async def check_throttle(policy_name: str, body: ThrottleCheckRequest) -> ThrottleDecisionResponse:
    """Count one request for an identifier under a named policy.

    The decision is reported in the body: a blocked identifier still gets a
    200 response with ``allowed: false``. Only the caller's own quota on this
    endpoint produces a 429.

    Args:
        policy_name: Name of a configured policy (e.g. financial, tips).
        body: Identifier to count.

    Returns:
        ThrottleDecisionResponse: Decision, remaining quota and reset time.

    Raises:
        UnknownPolicyError: 404 when policy_name is not configured.
    """
    policy = get_policy(policy_name)
    key = f"{policy_name}:ext:{body.identifier}"
    result = check_and_log(key, "external", policy_name, policy)
    return ThrottleDecisionResponse.from_result(policy_name, result)
