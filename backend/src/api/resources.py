# pyright: reportMissingTypeStubs=false
"""
Seat and Locker Management API endpoints.

Seats and lockers share one set of routes; the ``collection`` path segment
("seats" or "lockers") selects the resource kind.
"""

import enum
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi import status as http_status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.errors import raise_for_failure
from api.responses import (
    AvailabilityResponse,
    ResourceListResponse,
    ResourceOccupancyListResponse,
    ResourceOccupancyResponse,
    ResourceResponse,
    SubscriptionListResponse,
    SubscriptionResponse,
)
from auth.dependencies import UserContext, require_library_member, require_manager, require_owner
from core.constants import DEFAULT_SEAT_TYPE, MAX_RESOURCE_NUMBER_LENGTH
from core.database import get_db
from core.sentinels import MISSING
from models import ResourceKind
from services.resource_service import ResourceService
from services.subscription_service import SubscriptionService
from shared_types import ResourceUpdate
from utils.interval_utils import InvalidIntervalError, validate_interval

logger = logging.getLogger(__name__)

router = APIRouter()


class ResourceCollection(str, enum.Enum):
    """URL collection names for resource kinds."""
    SEATS = "seats"
    LOCKERS = "lockers"

    @property
    def kind(self) -> ResourceKind:
        return ResourceKind.SEAT if self == ResourceCollection.SEATS else ResourceKind.LOCKER


# ===== Request Models =====

class ResourceCreateRequest(BaseModel):
    """Request model for creating a seat or locker."""
    number: str = Field(..., min_length=1, max_length=MAX_RESOURCE_NUMBER_LENGTH)
    section: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = Field(None, max_length=50)


class BulkSeatCreateRequest(BaseModel):
    """Request model for creating a numbered range of seats."""
    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)
    prefix: str = Field("", max_length=20)
    section: Optional[str] = Field(None, max_length=100)
    type: str = Field(DEFAULT_SEAT_TYPE, min_length=1, max_length=50)


class ResourceUpdateRequest(BaseModel):
    """Request model for updating a seat or locker. Omitted fields are left unchanged."""
    number: Optional[str] = Field(None, min_length=1, max_length=MAX_RESOURCE_NUMBER_LENGTH)
    section: Optional[str] = Field(None, max_length=100)
    type: Optional[str] = Field(None, max_length=50)
    is_active: Optional[bool] = None

    def to_update(self) -> ResourceUpdate:
        provided = self.model_fields_set
        return ResourceUpdate(
            number=self.number if "number" in provided else MISSING,  # type: ignore[arg-type]
            section=self.section if "section" in provided else MISSING,
            type=self.type if "type" in provided else MISSING,
            is_active=self.is_active if "is_active" in provided else MISSING,  # type: ignore[arg-type]
        )


# ===== API Endpoints =====

@router.get("/branches/{branch_id}/{collection}", summary="List seats or lockers of a branch with occupancy")
async def list_branch_resource_occupancy(
    branch_id: int,
    collection: ResourceCollection,
    current_user: UserContext = Depends(require_library_member),
    db: Session = Depends(get_db)
) -> ResourceOccupancyListResponse:
    """List every seat or locker of a branch with its current occupancy."""
    try:
        raise_for_failure(ResourceService.get_branch_in_scope(db, branch_id, current_user.scope))

        occupancy = ResourceService.list_branch_resource_occupancy(db, branch_id, collection.kind)
        return ResourceOccupancyListResponse(
            branch_id=branch_id,
            kind=collection.kind.value,
            resources=[ResourceOccupancyResponse(**item.to_dict()) for item in occupancy]
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to list {collection.value} for branch {branch_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch {collection.value}"
        )


@router.post(
    "/branches/{branch_id}/seats/bulk",
    summary="Create a numbered range of seats",
    status_code=status.HTTP_201_CREATED
)
async def create_bulk_seats(
    branch_id: int,
    request: BulkSeatCreateRequest,
    current_user: UserContext = Depends(require_owner),
    db: Session = Depends(get_db)
) -> ResourceListResponse:
    """Create seats prefix+start .. prefix+end, skipping existing numbers."""
    try:
        result = ResourceService.create_bulk_seats(
            db,
            branch_id,
            start=request.start,
            end=request.end,
            prefix=request.prefix,
            section=request.section,
            seat_type=request.type,
            scope=current_user.scope
        )
        raise_for_failure(result)
        return ResourceListResponse(
            resources=[ResourceResponse.model_validate(seat) for seat in result.data or []]
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to create bulk seats: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create seats"
        )


@router.post(
    "/branches/{branch_id}/{collection}",
    summary="Create a seat or locker",
    status_code=status.HTTP_201_CREATED
)
async def create_resource(
    branch_id: int,
    collection: ResourceCollection,
    request: ResourceCreateRequest,
    current_user: UserContext = Depends(require_owner),
    db: Session = Depends(get_db)
) -> ResourceResponse:
    """Create a seat or locker in a branch."""
    try:
        result = ResourceService.create_resource(
            db,
            collection.kind,
            branch_id,
            number=request.number,
            section=request.section,
            resource_type=request.type,
            scope=current_user.scope
        )
        raise_for_failure(result)
        return ResourceResponse.model_validate(result.data)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to create {collection.kind.value}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create {collection.kind.value}"
        )


@router.get(
    "/branches/{branch_id}/lockers/by-seat-number/{seat_number}",
    summary="Find the locker matching a seat number"
)
async def find_locker_by_seat_number(
    branch_id: int,
    seat_number: str,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> ResourceResponse:
    """Find the locker numbered like the given seat in the same branch."""
    try:
        result = ResourceService.find_locker_by_seat_number(db, branch_id, seat_number, current_user.scope)
        raise_for_failure(result)
        return ResourceResponse.model_validate(result.data)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to find locker by seat number: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to find locker"
        )


@router.get(
    "/branches/{branch_id}/{collection}/eligible-subscriptions",
    summary="List active bookings without a seat or locker"
)
async def list_eligible_subscriptions(
    branch_id: int,
    collection: ResourceCollection,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionListResponse:
    """List bookings that can receive a seat or locker."""
    try:
        result = SubscriptionService.list_eligible_subscriptions(
            db, branch_id, collection.kind, current_user.scope
        )
        raise_for_failure(result)
        return SubscriptionListResponse(
            subscriptions=[SubscriptionResponse.model_validate(s) for s in result.data or []]
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to fetch eligible bookings: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch eligible students"
        )


@router.get("/{collection}/{resource_id}/availability", summary="Check seat or locker availability")
async def check_resource_availability(
    collection: ResourceCollection,
    resource_id: int,
    start: datetime = Query(...),
    end: datetime = Query(...),
    exclude_subscription_id: Optional[int] = Query(None),
    current_user: UserContext = Depends(require_library_member),
    db: Session = Depends(get_db)
) -> AvailabilityResponse:
    """
    Check whether a seat or locker is free for [start, end].

    Active and pending bookings block the resource.
    """
    try:
        try:
            validate_interval(start, end)
        except InvalidIntervalError as e:
            raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(e))

        raise_for_failure(
            ResourceService.get_resource_in_scope(db, collection.kind, resource_id, current_user.scope)
        )

        availability = ResourceService.check_resource_availability(
            db,
            collection.kind,
            resource_id,
            start,
            end,
            exclude_subscription_id=exclude_subscription_id
        )
        return AvailabilityResponse(
            resource_id=resource_id,
            kind=collection.kind.value,
            start=start,
            end=end,
            available=availability.available,
            conflict_id=availability.conflict_id
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to check availability of {collection.kind.value} {resource_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to check availability"
        )


@router.get("/{collection}/{resource_id}/history", summary="Booking history of a seat or locker")
async def get_resource_history(
    collection: ResourceCollection,
    resource_id: int,
    limit: Optional[int] = Query(None, ge=1, le=100),
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionListResponse:
    """Get the most recent bookings of a seat or locker."""
    try:
        result = ResourceService.get_resource_history(
            db, collection.kind, resource_id, current_user.scope, limit=limit
        )
        raise_for_failure(result)
        return SubscriptionListResponse(
            subscriptions=[SubscriptionResponse.model_validate(s) for s in result.data or []]
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to fetch history of {collection.kind.value} {resource_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch history"
        )


@router.put("/{collection}/{resource_id}", summary="Update a seat or locker")
async def update_resource(
    collection: ResourceCollection,
    resource_id: int,
    request: ResourceUpdateRequest,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> ResourceResponse:
    """Update number, section, type or active flag of a seat or locker."""
    try:
        result = ResourceService.update_resource(
            db, collection.kind, resource_id, request.to_update(), current_user.scope
        )
        raise_for_failure(result)
        return ResourceResponse.model_validate(result.data)
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update {collection.kind.value} {resource_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to update {collection.kind.value}"
        )


@router.delete(
    "/{collection}/{resource_id}",
    summary="Delete a seat or locker without booking history",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_resource(
    collection: ResourceCollection,
    resource_id: int,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> None:
    """Delete a seat or locker. Resources with bookings must be deactivated instead."""
    try:
        raise_for_failure(
            ResourceService.delete_resource(db, collection.kind, resource_id, current_user.scope)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to delete {collection.kind.value} {resource_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to delete {collection.kind.value}"
        )
