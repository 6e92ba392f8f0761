"""
Shared type definitions for the study space backend.

This module contains dataclasses and types that are used across services and API modules.
"""

from shared_types.occupancy import ResourceAvailability, ResourceOccupancy
from shared_types.results import ErrorCode, ServiceResult
from shared_types.scope import PLATFORM_SCOPE, TenantScope
from shared_types.updates import NewSubscription, ResourceUpdate, SubscriptionResourceUpdate

__all__ = [
    "ResourceAvailability",
    "ResourceOccupancy",
    "ErrorCode",
    "ServiceResult",
    "PLATFORM_SCOPE",
    "TenantScope",
    "NewSubscription",
    "ResourceUpdate",
    "SubscriptionResourceUpdate",
]
