"""Domain events consumed by the ledger."""

from .purchase_events import PurchaseCompleted

__all__ = ["PurchaseCompleted"]
