# backend/app/routes/v1/admin_policies.py
"""
Admin policy management - API v1

Publishing a policy creates a new version and retires the previous one.
Bookings keep the version they were made under.

Endpoints:
    POST /cancellation-policies - Publish a cancellation policy version
    GET /cancellation-policies - Version history, newest first
    POST /waiver-policies - Publish a waiver policy version
    GET /waiver-policies/active - Currently active waiver
"""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, status

from ...api.dependencies import get_policy_service
from ...auth import AuthenticatedClient, require_admin
from ...core.exceptions import DomainException
from ...schemas.policy import (
    CancellationPolicyCreate,
    CancellationPolicyResponse,
    WaiverPolicyCreate,
    WaiverPolicyResponse,
)
from ...services.policy_service import PolicyService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin-policies-v1"])


@router.post(
    "/cancellation-policies",
    response_model=CancellationPolicyResponse,
    status_code=status.HTTP_201_CREATED,
)
def publish_cancellation_policy(
    payload: CancellationPolicyCreate = Body(...),
    admin: AuthenticatedClient = Depends(require_admin),
    policy_service: PolicyService = Depends(get_policy_service),
) -> CancellationPolicyResponse:
    try:
        policy = policy_service.publish_policy(
            standard_cancellation_hours=payload.standard_cancellation_hours,
            late_cancellation_hours=payload.late_cancellation_hours,
            late_fees=payload.late_fees,
            grace_cancellations_allowed=payload.grace_cancellations_allowed,
            policy_text=payload.policy_text,
            created_by=admin.id,
        )
    except DomainException as e:
        raise e.to_http_exception()
    logger.info("Cancellation policy v%s published by %s", policy.version, admin.id)
    return CancellationPolicyResponse.model_validate(policy)


@router.get("/cancellation-policies", response_model=List[CancellationPolicyResponse])
def list_cancellation_policies(
    _: AuthenticatedClient = Depends(require_admin),
    policy_service: PolicyService = Depends(get_policy_service),
) -> List[CancellationPolicyResponse]:
    return [
        CancellationPolicyResponse.model_validate(p) for p in policy_service.list_policy_history()
    ]


@router.post(
    "/waiver-policies",
    response_model=WaiverPolicyResponse,
    status_code=status.HTTP_201_CREATED,
)
def publish_waiver_policy(
    payload: WaiverPolicyCreate = Body(...),
    admin: AuthenticatedClient = Depends(require_admin),
    policy_service: PolicyService = Depends(get_policy_service),
) -> WaiverPolicyResponse:
    try:
        waiver = policy_service.publish_waiver(policy_text=payload.policy_text, created_by=admin.id)
    except DomainException as e:
        raise e.to_http_exception()
    return WaiverPolicyResponse.model_validate(waiver)


@router.get("/waiver-policies/active", response_model=WaiverPolicyResponse)
def get_active_waiver_policy(
    _: AuthenticatedClient = Depends(require_admin),
    policy_service: PolicyService = Depends(get_policy_service),
) -> WaiverPolicyResponse:
    try:
        waiver = policy_service.get_active_waiver()
    except DomainException as e:
        raise e.to_http_exception()
    return WaiverPolicyResponse.model_validate(waiver)
