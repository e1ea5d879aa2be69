"""Purchase domain events delivered by the payment provider."""
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class PurchaseCompleted:
    """A checkout that completed upstream and should become session credits.

    ``package_id`` / ``package_size`` describe a package purchase; without
    either, the purchase buys a single credit for ``session_type_id``.
    """

    purchase_reference: str
    client_id: str
    amount_cents: int = 0
    currency: str = "usd"
    package_id: Optional[str] = None
    package_size: Optional[int] = None
    session_type_id: Optional[str] = None
    purchased_at: datetime = field(default_factory=_now_utc)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["purchased_at"] = self.purchased_at.isoformat()
        return payload
