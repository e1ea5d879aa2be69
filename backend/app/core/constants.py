"""Application-wide constants for the session credit ledger."""

BRAND_NAME = "Session Ledger"
API_TITLE = f"{BRAND_NAME} API"
API_VERSION = "1.0.0"
API_DESCRIPTION = (
    "Session credits, bookings redeemed against them, and the versioned "
    "cancellation policy that decides fees and returned credit."
)

REQUEST_ID_HEADER = "X-Request-ID"
