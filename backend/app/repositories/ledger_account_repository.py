# backend/app/repositories/ledger_account_repository.py
"""Per-client ledger account counters."""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.exceptions import RepositoryException
from app.models.credit import ClientLedgerAccount

from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ClientLedgerAccountRepository(BaseRepository[ClientLedgerAccount]):
    def __init__(self, db: Session):
        super().__init__(db, ClientLedgerAccount)
        self.logger = logging.getLogger(__name__)

    def get_or_create(self, client_id: str) -> ClientLedgerAccount:
        """Return the client's account, creating it on first use."""
        account = self.get_by_id(client_id)
        if account is not None:
            return account
        # A concurrent first insert for the same client fails the enclosing
        # transaction on the primary key and surfaces as a service error.
        return self.create(client_id=client_id, grace_cancellations_used=0)

    def claim_grace(self, client_id: str, allowed: int) -> bool:
        """
        Atomically consume one grace cancellation if the client is under ``allowed``.

        Returns True when the counter was incremented.
        """
        if allowed <= 0:
            return False
        self.get_or_create(client_id)
        try:
            result = self.db.execute(
                update(ClientLedgerAccount)
                .where(
                    ClientLedgerAccount.client_id == client_id,
                    ClientLedgerAccount.grace_cancellations_used < allowed,
                )
                .values(
                    grace_cancellations_used=ClientLedgerAccount.grace_cancellations_used + 1
                )
            )
            return result.rowcount == 1
        except Exception as exc:
            self.logger.error("Failed to claim grace for %s: %s", client_id, str(exc))
            raise RepositoryException("Failed to claim grace cancellation") from exc

    def grace_used(self, client_id: str) -> int:
        account = self.get_by_id(client_id)
        return account.grace_cancellations_used if account else 0


__all__ = ["ClientLedgerAccountRepository"]
