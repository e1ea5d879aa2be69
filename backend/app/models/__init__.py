"""
Database models for the session credit ledger.

The models are organized by functionality:
- Catalog: practitioners, session types and packages
- Ledger: credit grants, per-client accounts, processed purchases
- Bookings and their cancellation records
- Versioned cancellation and waiver policies
"""

from .booking import Booking, BookingStatus
from .cancellation import CancellationRecord, CancellationType
from .catalog import Practitioner, SessionPackage, SessionType
from .credit import ClientLedgerAccount, CreditGrant, CreditSourceType, ProcessedPurchase
from .policy import CancellationPolicy, WaiverPolicy

__all__ = [
    "Booking",
    "BookingStatus",
    "CancellationPolicy",
    "CancellationRecord",
    "CancellationType",
    "ClientLedgerAccount",
    "CreditGrant",
    "CreditSourceType",
    "Practitioner",
    "ProcessedPurchase",
    "SessionPackage",
    "SessionType",
    "WaiverPolicy",
]
