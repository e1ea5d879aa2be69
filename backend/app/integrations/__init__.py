"""External service integrations for the session credit ledger."""

from .hundredms_client import FakeHundredMsClient, HundredMsClient, HundredMsError
from .notification_client import FakeNotificationClient, NotificationClient, NotificationError

__all__ = [
    "FakeHundredMsClient",
    "FakeNotificationClient",
    "HundredMsClient",
    "HundredMsError",
    "NotificationClient",
    "NotificationError",
]
