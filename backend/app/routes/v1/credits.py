# backend/app/routes/v1/credits.py
"""
Credit balance routes - API v1

Endpoints:
    GET / - Caller's usable credits and grace status
"""

import asyncio

from fastapi import APIRouter, Depends

from ...api.dependencies import get_credit_ledger_service
from ...auth import AuthenticatedClient, get_current_client
from ...schemas.credits import CreditBalanceResponse, CreditGrantResponse
from ...services.credit_ledger_service import CreditLedgerService

router = APIRouter(tags=["credits-v1"])


def build_balance_response(
    credit_ledger: CreditLedgerService, client_id: str
) -> CreditBalanceResponse:
    summary = credit_ledger.get_balance_summary(client_id)
    return CreditBalanceResponse(
        client_id=client_id,
        total_credits=summary.total_credits,
        package_credits=summary.package_credits,
        type_specific_credits=summary.type_specific_credits,
        by_session_type=summary.by_session_type,
        has_used_grace=credit_ledger.has_used_grace(client_id),
        credits=[CreditGrantResponse.model_validate(g) for g in summary.grants],
    )


@router.get("", response_model=CreditBalanceResponse)
async def get_my_credits(
    current_client: AuthenticatedClient = Depends(get_current_client),
    credit_ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditBalanceResponse:
    """Usable (unexpired, non-empty) credits for the caller."""
    return await asyncio.to_thread(build_balance_response, credit_ledger, current_client.id)
