"""
Services package for shared business logic.

This package contains service classes that encapsulate business logic
shared across multiple API endpoints.
"""

from .resource_service import ResourceService
from .subscription_service import SubscriptionService

__all__ = [
    "ResourceService",
    "SubscriptionService",
]
