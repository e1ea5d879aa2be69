# backend/app/routes/v1/cancellation_policy.py
"""
Public cancellation policy - API v1

Endpoints:
    GET / - Currently active cancellation policy
"""

from fastapi import APIRouter, Depends

from ...api.dependencies import get_policy_service
from ...core.exceptions import DomainException
from ...schemas.policy import CancellationPolicyResponse
from ...services.policy_service import PolicyService

router = APIRouter(tags=["policies-v1"])


@router.get(
    "",
    response_model=CancellationPolicyResponse,
    responses={503: {"description": "No cancellation policy published"}},
)
def get_active_cancellation_policy(
    policy_service: PolicyService = Depends(get_policy_service),
) -> CancellationPolicyResponse:
    try:
        policy = policy_service.get_active_policy()
    except DomainException as e:
        raise e.to_http_exception()
    return CancellationPolicyResponse.model_validate(policy)
