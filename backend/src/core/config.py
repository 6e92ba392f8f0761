"""
Application configuration using python-dotenv.

This module loads environment variables from .env file into os.environ
for use throughout the application.
"""

import os
import pathlib
from dotenv import load_dotenv


# Determine if we're running in a test environment
# Don't load .env file during testing to ensure predictable test behavior
is_testing = os.getenv("PYTEST_VERSION") is not None or any("pytest" in str(frame) for frame in __import__('inspect').stack(0))

# Load .env file into os.environ (only outside of testing)
if not is_testing:
    # Try multiple possible locations for .env file
    possible_paths = [
        pathlib.Path(__file__).parent.parent.parent / ".env",  # backend/.env (when run from backend/src)
        pathlib.Path(__file__).parent.parent.parent.parent / ".env",  # .env (repository root)
        pathlib.Path.cwd() / ".env",  # .env in current directory
    ]

    for env_path in possible_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _status_list(name: str, default: str) -> list[str]:
    """Parse a comma separated list of subscription statuses."""
    return [s.strip() for s in os.getenv(name, default).split(",") if s.strip()]


def get_database_url():
    """Get the database URL from environment."""
    return os.getenv(
        "DATABASE_URL",
        "postgresql://localhost/study_space_dev"
    )

DATABASE_URL = get_database_url()
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Authentication
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# Subscription statuses that block a seat/locker for an overlapping interval.
# New bookings are blocked by active and pending bookings; reassignment of an existing
# booking only looks at active bookings unless configured otherwise.
BOOKING_BLOCKING_STATUSES = _status_list("BOOKING_BLOCKING_STATUSES", "active,pending")
REASSIGNMENT_BLOCKING_STATUSES = _status_list("REASSIGNMENT_BLOCKING_STATUSES", "active")

RESOURCE_HISTORY_LIMIT = int(os.getenv("RESOURCE_HISTORY_LIMIT", "10"))
