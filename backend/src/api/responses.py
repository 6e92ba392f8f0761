"""
Shared request and response models for API endpoints.

This module contains Pydantic models that are shared across the resource and
subscription endpoints to keep payloads consistent.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class ResourceResponse(BaseModel):
    """Response model for a seat or locker."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    library_id: int
    branch_id: int
    number: str
    section: Optional[str] = None
    type: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class ResourceListResponse(BaseModel):
    """Response model for a list of seats or lockers."""
    resources: List[ResourceResponse]


class ResourceOccupancyResponse(BaseModel):
    """Response model for a resource with derived occupancy."""
    id: int
    number: str
    section: Optional[str] = None
    type: Optional[str] = None
    is_active: bool
    is_occupied: bool
    library_id: int
    branch_id: int


class ResourceOccupancyListResponse(BaseModel):
    """Response model for branch occupancy listing."""
    branch_id: int
    kind: str
    resources: List[ResourceOccupancyResponse]


class AvailabilityResponse(BaseModel):
    """Response model for a resource availability check."""
    resource_id: int
    kind: str
    start: datetime
    end: datetime
    available: bool
    conflict_id: Optional[int] = None


class SubscriptionResponse(BaseModel):
    """Response model for a booking."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    library_id: int
    branch_id: int
    student_id: int
    plan_id: Optional[int] = None
    seat_id: Optional[int] = None
    locker_id: Optional[int] = None
    start_date: datetime
    end_date: datetime
    status: str
    amount: float = 0


class SubscriptionListResponse(BaseModel):
    """Response model for a list of bookings."""
    subscriptions: List[SubscriptionResponse]


class SubscriptionOperationResponse(BaseModel):
    """Response model for booking changes, mirroring the service result."""
    success: bool
    data: Optional[SubscriptionResponse] = None
    error: Optional[str] = None
