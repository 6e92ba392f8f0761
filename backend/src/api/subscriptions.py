# pyright: reportMissingTypeStubs=false
"""
Booking (student subscription) API endpoints.

Covers booking creation, seat/locker reassignment, single resource
assignment and status changes. All writes go through SubscriptionService so
the overlap checks run in the same transaction as the update.
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from api.errors import raise_for_failure
from api.responses import SubscriptionOperationResponse, SubscriptionResponse
from auth.dependencies import UserContext, require_manager
from core.database import get_db
from core.constants import MAX_BOOKING_CYCLES, SUBSCRIPTION_STATUS_ACTIVE
from core.sentinels import MISSING
from models import ResourceKind
from services.subscription_service import SubscriptionService
from shared_types import NewSubscription, SubscriptionResourceUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== Request Models =====

class SubscriptionCreateRequest(BaseModel):
    """
    Request model for creating a booking.

    The period covers ``quantity`` plan cycles starting at ``start_date``, or
    right after the student's current booking unless ``is_add_on`` is set.
    """
    branch_id: int = Field(..., ge=1)
    student_id: int = Field(..., ge=1)
    plan_id: int = Field(..., ge=1)
    start_date: datetime
    seat_id: Optional[int] = Field(None, ge=1)
    locker_id: Optional[int] = Field(None, ge=1)
    quantity: int = Field(1, ge=1, le=MAX_BOOKING_CYCLES)
    with_locker: bool = False
    is_add_on: bool = False
    status: str = Field(SUBSCRIPTION_STATUS_ACTIVE, min_length=1, max_length=20)

    def to_booking(self) -> NewSubscription:
        return NewSubscription(
            student_id=self.student_id,
            plan_id=self.plan_id,
            start_date=self.start_date,
            seat_id=self.seat_id,
            locker_id=self.locker_id,
            quantity=self.quantity,
            with_locker=self.with_locker,
            is_add_on=self.is_add_on,
            status=self.status
        )


class SubscriptionResourceUpdateRequest(BaseModel):
    """
    Request model for changing the resources or period of a booking.

    Omitted fields are left unchanged; an explicit null clears the seat or locker.
    """
    seat_id: Optional[int] = None
    locker_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    def to_update(self) -> SubscriptionResourceUpdate:
        provided = self.model_fields_set
        return SubscriptionResourceUpdate(
            seat_id=self.seat_id if "seat_id" in provided else MISSING,
            locker_id=self.locker_id if "locker_id" in provided else MISSING,
            start_date=self.start_date if "start_date" in provided else MISSING,  # type: ignore[arg-type]
            end_date=self.end_date if "end_date" in provided else MISSING,  # type: ignore[arg-type]
        )


class AssignResourceRequest(BaseModel):
    """Request model for attaching a seat or locker to a booking."""
    resource_id: int = Field(..., ge=1)


class SubscriptionStatusUpdateRequest(BaseModel):
    """Request model for changing a booking status."""
    status: str = Field(..., min_length=1, max_length=20)


def _collection_kind(collection: str) -> ResourceKind:
    """Map the singular path segment ("seat" / "locker") to a resource kind."""
    try:
        return ResourceKind(collection)
    except ValueError:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="Not found")


# ===== API Endpoints =====

@router.post("", summary="Create a booking", status_code=http_status.HTTP_201_CREATED)
async def create_subscription(
    request: SubscriptionCreateRequest,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionOperationResponse:
    """
    Create a booking for a student, optionally claiming a seat and locker.

    Returns 409 with "Seat is already occupied for the selected dates" when an
    active or pending booking holds the seat during the computed period.
    """
    try:
        result = SubscriptionService.create_subscription(
            db, request.branch_id, request.to_booking(), current_user.scope
        )
        raise_for_failure(result)
        return SubscriptionOperationResponse(
            success=True,
            data=SubscriptionResponse.model_validate(result.data)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to create booking: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create booking"
        )


@router.put("/{subscription_id}/resources", summary="Reassign seat, locker or period of a booking")
async def reassign_subscription_resources(
    subscription_id: int,
    request: SubscriptionResourceUpdateRequest,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionOperationResponse:
    """
    Change the seat, locker and/or dates of a booking.

    Returns 409 with "Seat is already occupied" / "Locker is already occupied"
    when another active booking holds the requested resource.
    """
    try:
        result = SubscriptionService.reassign_subscription_resources(
            db, subscription_id, request.to_update(), current_user.scope
        )
        raise_for_failure(result)
        return SubscriptionOperationResponse(
            success=True,
            data=SubscriptionResponse.model_validate(result.data)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update booking details: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking details"
        )


@router.post("/{subscription_id}/{kind}", summary="Assign a seat or locker to a booking")
async def assign_resource(
    subscription_id: int,
    kind: str,
    request: AssignResourceRequest,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionOperationResponse:
    """Assign a seat or locker for the booking's own period."""
    resource_kind = _collection_kind(kind)
    try:
        result = SubscriptionService.assign_resource(
            db, resource_kind, request.resource_id, subscription_id, current_user.scope
        )
        raise_for_failure(result)
        return SubscriptionOperationResponse(
            success=True,
            data=SubscriptionResponse.model_validate(result.data)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to assign {resource_kind.value}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to assign {resource_kind.value}"
        )


@router.delete("/{subscription_id}/{kind}", summary="Release the seat or locker of a booking")
async def unassign_resource(
    subscription_id: int,
    kind: str,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionOperationResponse:
    """Clear the seat or locker of a booking."""
    resource_kind = _collection_kind(kind)
    try:
        result = SubscriptionService.unassign_resource(db, resource_kind, subscription_id, current_user.scope)
        raise_for_failure(result)
        return SubscriptionOperationResponse(
            success=True,
            data=SubscriptionResponse.model_validate(result.data)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to unassign {resource_kind.value}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to unassign {resource_kind.value}"
        )


@router.put("/{subscription_id}/status", summary="Change the status of a booking")
async def update_subscription_status(
    subscription_id: int,
    request: SubscriptionStatusUpdateRequest,
    current_user: UserContext = Depends(require_manager),
    db: Session = Depends(get_db)
) -> SubscriptionOperationResponse:
    """Activate, cancel or expire a booking."""
    try:
        result = SubscriptionService.update_subscription_status(
            db, subscription_id, request.status, current_user.scope
        )
        raise_for_failure(result)
        return SubscriptionOperationResponse(
            success=True,
            data=SubscriptionResponse.model_validate(result.data)
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.exception(f"Failed to update booking {subscription_id}: {e}")
        raise HTTPException(
            status_code=http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update booking"
        )
