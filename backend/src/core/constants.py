"""Application constants and configuration values."""

from core.config import FRONTEND_URL

# Database field lengths
MAX_RESOURCE_NUMBER_LENGTH = 50

# Database connection settings
DB_POOL_RECYCLE_SECONDS = 300  # 5 minutes

# CORS origins for development and production
_CORS_ORIGINS_RAW = [
    "http://localhost:3000",      # Next.js dev server
    FRONTEND_URL,
]

# Filter out None values and empty strings to avoid CORS errors
CORS_ORIGINS = [origin for origin in _CORS_ORIGINS_RAW if origin and origin.strip()]

# Subscription statuses
SUBSCRIPTION_STATUS_PENDING = "pending"
SUBSCRIPTION_STATUS_ACTIVE = "active"
SUBSCRIPTION_STATUS_EXPIRED = "expired"
SUBSCRIPTION_STATUS_CANCELLED = "cancelled"

SUBSCRIPTION_STATUSES = (
    SUBSCRIPTION_STATUS_PENDING,
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_EXPIRED,
    SUBSCRIPTION_STATUS_CANCELLED,
)

# User roles
ROLE_PLATFORM_ADMIN = "platform_admin"
ROLE_OWNER = "owner"
ROLE_STAFF = "staff"
ROLE_STUDENT = "student"

# Resources
DEFAULT_SEAT_TYPE = "standard"
MAX_BULK_SEATS = 500  # Upper bound for a single bulk creation request

# Bookings
MAX_BOOKING_CYCLES = 24
# Bounds are inclusive, so a renewal starts just after the previous booking ends
RENEWAL_START_GAP_SECONDS = 1
