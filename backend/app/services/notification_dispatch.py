"""Best-effort delivery of notification requests after a commit."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)


class NotificationSender(Protocol):
    def send(self, template: str, payload: Dict[str, Any]) -> None: ...


def dispatch_notification(
    sender: NotificationSender,
    template: str,
    payload: Dict[str, Any],
    *,
    log: Optional[logging.Logger] = None,
) -> bool:
    """
    Send a notification without letting its failure reach the caller.

    Ledger state is already committed when this runs; a lost notification is
    logged and counted, never retried inline.
    """
    try:
        sender.send(template, payload)
        return True
    except Exception as exc:
        prometheus_metrics.inc_outbound_failure("notifications")
        (log or logger).warning("Notification %s failed for %s: %s", template, payload, exc)
        return False
