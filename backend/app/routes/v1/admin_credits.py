# backend/app/routes/v1/admin_credits.py
"""
Admin view of client credit balances - API v1

Endpoints:
    GET /clients/{client_id}/credits - Usable credits for any client
"""

import asyncio

from fastapi import APIRouter, Depends
from fastapi.params import Path

from ...api.dependencies import get_credit_ledger_service
from ...auth import AuthenticatedClient, require_admin
from ...schemas.credits import CreditBalanceResponse
from ...services.credit_ledger_service import CreditLedgerService
from .credits import build_balance_response

router = APIRouter(tags=["admin-credits-v1"])


@router.get("/clients/{client_id}/credits", response_model=CreditBalanceResponse)
async def get_client_credits(
    client_id: str = Path(..., min_length=1, max_length=26),
    _: AuthenticatedClient = Depends(require_admin),
    credit_ledger: CreditLedgerService = Depends(get_credit_ledger_service),
) -> CreditBalanceResponse:
    return await asyncio.to_thread(build_balance_response, credit_ledger, client_id)
