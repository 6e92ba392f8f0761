"""
Resource service for seat/locker management, availability and occupancy.

This service handles:
- Overlap checks of a resource against existing subscriptions
- Derived occupancy listing per branch
- Seat/locker creation, bulk seat creation, updates and deletion
- Booking history and locker lookup by seat number
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import BOOKING_BLOCKING_STATUSES, RESOURCE_HISTORY_LIMIT
from core.constants import (
    DEFAULT_SEAT_TYPE,
    MAX_BULK_SEATS,
    MAX_RESOURCE_NUMBER_LENGTH,
    SUBSCRIPTION_STATUS_ACTIVE,
)
from models import (
    Branch,
    Library,
    Locker,
    Seat,
    StudentSubscription,
    ResourceKind,
    resource_model,
    subscription_resource_column,
)
from models.resource import ResourceModel
from shared_types import (
    ErrorCode,
    PLATFORM_SCOPE,
    ResourceAvailability,
    ResourceOccupancy,
    ResourceUpdate,
    ServiceResult,
    TenantScope,
)
from utils.datetime_utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ResourceService:
    """Service for seat/locker management and availability checking."""

    @staticmethod
    def get_resource_in_scope(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        scope: TenantScope = PLATFORM_SCOPE,
        lock: bool = False
    ) -> ServiceResult[ResourceModel]:
        """
        Resolve a seat or locker visible to the caller.

        Args:
            lock: Take a row lock (SELECT ... FOR UPDATE) so concurrent claims
                of the same resource serialize until commit/rollback.
        """
        model = resource_model(kind)
        query = db.query(model).filter(model.id == resource_id)
        if lock:
            query = query.with_for_update()
        resource = query.first()

        if not resource:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, f"{kind.label} not found")
        if not scope.allows(resource.library_id, resource.branch_id):
            return ServiceResult.fail(ErrorCode.UNAUTHORIZED, f"Access denied to this {kind.value}")
        return ServiceResult.ok(resource)

    @staticmethod
    def get_branch_in_scope(
        db: Session,
        branch_id: int,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[Branch]:
        """Resolve a branch visible to the caller."""
        branch = db.query(Branch).filter(Branch.id == branch_id).first()
        if not branch:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, "Branch not found")
        if not scope.allows(branch.library_id, branch.id):
            return ServiceResult.fail(ErrorCode.UNAUTHORIZED, "Access denied to this branch")
        return ServiceResult.ok(branch)

    @staticmethod
    def check_resource_availability(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        start: datetime,
        end: datetime,
        exclude_subscription_id: Optional[int] = None,
        statuses: Optional[Iterable[str]] = None
    ) -> ResourceAvailability:
        """
        Check whether a resource is free for the closed interval [start, end].

        A subscription conflicts when it references the same resource, its
        status is one of the blocking statuses and its interval overlaps
        ``start_date <= end AND end_date >= start``.

        An unknown resource id has no subscriptions and therefore reports
        available; callers that need a not-found error resolve the resource
        first.

        Args:
            db: Database session
            kind: Seat or locker
            resource_id: Resource to check
            start: Interval start (inclusive)
            end: Interval end (inclusive)
            exclude_subscription_id: Subscription being edited, ignored in the check
            statuses: Blocking statuses. Defaults to BOOKING_BLOCKING_STATUSES.

        Returns:
            ResourceAvailability with the first conflicting subscription id, if any
        """
        blocking = list(statuses) if statuses is not None else list(BOOKING_BLOCKING_STATUSES)
        column = subscription_resource_column(kind)

        query = db.query(StudentSubscription.id).filter(
            column == resource_id,
            StudentSubscription.status.in_(blocking),
            StudentSubscription.start_date <= ensure_utc(end),
            StudentSubscription.end_date >= ensure_utc(start)
        )
        if exclude_subscription_id is not None:
            query = query.filter(StudentSubscription.id != exclude_subscription_id)

        conflict = query.order_by(StudentSubscription.id).first()
        if conflict:
            return ResourceAvailability(available=False, conflict_id=conflict.id)
        return ResourceAvailability(available=True)

    @staticmethod
    def list_branch_resource_occupancy(
        db: Session,
        branch_id: int,
        kind: ResourceKind,
        now: Optional[datetime] = None
    ) -> List[ResourceOccupancy]:
        """
        List every seat or locker of a branch with its derived occupancy.

        A resource is occupied when at least one subscription referencing it is
        active and has not ended yet (end_date > now). Occupancy is computed
        from the subscription table on every call.

        Results are ordered by number (lexical) and then id.
        """
        now = ensure_utc(now) if now else utc_now()
        model = resource_model(kind)
        column = subscription_resource_column(kind)

        resources = db.query(model).filter(
            model.branch_id == branch_id
        ).order_by(model.number.asc(), model.id.asc()).all()

        if not resources:
            return []

        occupied_ids = {
            row[0]
            for row in db.query(column).filter(
                column.in_([r.id for r in resources]),
                StudentSubscription.status == SUBSCRIPTION_STATUS_ACTIVE,
                StudentSubscription.end_date > now
            ).distinct().all()
        }

        return [
            ResourceOccupancy(
                id=r.id,
                number=r.number,
                section=r.section,
                type=r.type,
                is_active=r.is_active,
                is_occupied=r.id in occupied_ids,
                library_id=r.library_id,
                branch_id=r.branch_id
            )
            for r in resources
        ]

    @staticmethod
    def _number_taken(
        db: Session,
        kind: ResourceKind,
        branch_id: int,
        number: str,
        exclude_id: Optional[int] = None
    ) -> bool:
        model = resource_model(kind)
        query = db.query(model.id).filter(model.branch_id == branch_id, model.number == number)
        if exclude_id is not None:
            query = query.filter(model.id != exclude_id)
        return query.first() is not None

    @staticmethod
    def _seat_limit_reached(db: Session, library_id: int, additional: int) -> bool:
        """Check the library's platform seat limit before adding seats."""
        library = db.query(Library).filter(Library.id == library_id).first()
        if not library or library.max_seats is None:
            return False
        current = db.query(Seat).filter(Seat.library_id == library_id).count()
        return current + additional > library.max_seats

    @staticmethod
    def _normalize_number(number: Optional[str]) -> Optional[str]:
        if number is None:
            return None
        number = number.strip()
        if not number or len(number) > MAX_RESOURCE_NUMBER_LENGTH:
            return None
        return number

    @staticmethod
    def create_resource(
        db: Session,
        kind: ResourceKind,
        branch_id: int,
        number: str,
        section: Optional[str] = None,
        resource_type: Optional[str] = None,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[ResourceModel]:
        """
        Create a seat or locker in a branch.

        Seat numbers and locker numbers are unique per branch. Seats count
        against the library's seat limit and bump the branch seat counter.
        """
        found = ResourceService.get_branch_in_scope(db, branch_id, scope)
        if not found.success or found.data is None:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or "Branch not found")
        branch = found.data

        normalized = ResourceService._normalize_number(number)
        if normalized is None:
            return ServiceResult.fail(ErrorCode.INVALID, f"{kind.label} number is required")

        try:
            if ResourceService._number_taken(db, kind, branch.id, normalized):
                return ServiceResult.fail(
                    ErrorCode.CONFLICT, f"{kind.label} number already exists in this branch"
                )

            if kind == ResourceKind.SEAT:
                if ResourceService._seat_limit_reached(db, branch.library_id, 1):
                    return ServiceResult.fail(ErrorCode.CONFLICT, "Seat limit reached")
                resource: ResourceModel = Seat(
                    library_id=branch.library_id,
                    branch_id=branch.id,
                    number=normalized,
                    section=section,
                    type=resource_type or DEFAULT_SEAT_TYPE
                )
                branch.seat_count = (branch.seat_count or 0) + 1
            else:
                resource = Locker(
                    library_id=branch.library_id,
                    branch_id=branch.id,
                    number=normalized,
                    section=section,
                    type=resource_type
                )

            db.add(resource)
            db.commit()
            db.refresh(resource)
            logger.info(f"Created {kind.value} {resource.number} (id={resource.id}) in branch {branch.id}")
            return ServiceResult.ok(resource)
        except IntegrityError:
            db.rollback()
            return ServiceResult.fail(
                ErrorCode.CONFLICT, f"{kind.label} number already exists in this branch"
            )
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to create {kind.value}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, f"Failed to create {kind.value}")

    @staticmethod
    def create_bulk_seats(
        db: Session,
        branch_id: int,
        start: int,
        end: int,
        prefix: str = "",
        section: Optional[str] = None,
        seat_type: str = DEFAULT_SEAT_TYPE,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[List[Seat]]:
        """
        Create seats ``prefix + N`` for N in [start, end].

        Numbers that already exist in the branch are skipped. The whole batch
        is rejected if it would exceed the library's seat limit.
        """
        if start < 0 or end < start:
            return ServiceResult.fail(ErrorCode.INVALID, "Invalid seat range")
        if end - start + 1 > MAX_BULK_SEATS:
            return ServiceResult.fail(ErrorCode.INVALID, f"Cannot create more than {MAX_BULK_SEATS} seats at once")

        found = ResourceService.get_branch_in_scope(db, branch_id, scope)
        if not found.success or found.data is None:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or "Branch not found")
        branch = found.data

        try:
            existing = {
                number for (number,) in db.query(Seat.number).filter(Seat.branch_id == branch.id).all()
            }
            numbers = [f"{prefix}{n}" for n in range(start, end + 1)]
            to_create = [number for number in numbers if number not in existing]

            if not to_create:
                return ServiceResult.ok([])

            if ResourceService._seat_limit_reached(db, branch.library_id, len(to_create)):
                return ServiceResult.fail(ErrorCode.CONFLICT, "Seat limit reached")

            seats = [
                Seat(
                    library_id=branch.library_id,
                    branch_id=branch.id,
                    number=number,
                    section=section,
                    type=seat_type
                )
                for number in to_create
            ]
            db.add_all(seats)
            branch.seat_count = (branch.seat_count or 0) + len(seats)
            db.commit()
            logger.info(f"Created {len(seats)} seats in branch {branch.id} ({len(numbers) - len(seats)} skipped)")
            return ServiceResult.ok(seats)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to create bulk seats: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, "Failed to create seats")

    @staticmethod
    def update_resource(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        update: ResourceUpdate,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[ResourceModel]:
        """Apply a partial update to a seat or locker."""
        found = ResourceService.get_resource_in_scope(db, kind, resource_id, scope)
        if not found.success or found.data is None:
            return found
        resource = found.data

        changes = update.changed_fields()

        if "number" in changes:
            normalized = ResourceService._normalize_number(changes["number"])
            if normalized is None:
                return ServiceResult.fail(ErrorCode.INVALID, f"{kind.label} number is required")
            if ResourceService._number_taken(db, kind, resource.branch_id, normalized, exclude_id=resource.id):
                return ServiceResult.fail(
                    ErrorCode.CONFLICT, f"{kind.label} number already exists in this branch"
                )
            changes["number"] = normalized

        if changes.get("is_active", True) is None:
            return ServiceResult.fail(ErrorCode.INVALID, "is_active cannot be null")
        if kind == ResourceKind.SEAT and "type" in changes and not changes["type"]:
            return ServiceResult.fail(ErrorCode.INVALID, "Seat type cannot be empty")

        try:
            for field, value in changes.items():
                setattr(resource, field, value)
            db.commit()
            db.refresh(resource)
            return ServiceResult.ok(resource)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to update {kind.value} {resource_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, f"Failed to update {kind.value}")

    @staticmethod
    def delete_resource(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[None]:
        """
        Delete a seat or locker that no subscription has ever referenced.

        Resources with booking history are kept for referential integrity and
        must be deactivated instead.
        """
        found = ResourceService.get_resource_in_scope(db, kind, resource_id, scope)
        if not found.success or found.data is None:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or f"{kind.label} not found")
        resource = found.data

        column = subscription_resource_column(kind)
        referenced = db.query(StudentSubscription.id).filter(column == resource.id).first()
        if referenced:
            return ServiceResult.fail(
                ErrorCode.CONFLICT,
                f"{kind.label} has booking history; deactivate it instead",
                conflict_id=referenced.id
            )

        try:
            if kind == ResourceKind.SEAT:
                branch = db.query(Branch).filter(Branch.id == resource.branch_id).first()
                if branch:
                    branch.seat_count = max((branch.seat_count or 0) - 1, 0)
            db.delete(resource)
            db.commit()
            logger.info(f"Deleted {kind.value} {resource_id}")
            return ServiceResult.ok(None)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to delete {kind.value} {resource_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, f"Failed to delete {kind.value}")

    @staticmethod
    def get_resource_history(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        scope: TenantScope = PLATFORM_SCOPE,
        limit: Optional[int] = None
    ) -> ServiceResult[List[StudentSubscription]]:
        """Subscriptions that held a resource, latest end date first."""
        found = ResourceService.get_resource_in_scope(db, kind, resource_id, scope)
        if not found.success:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or f"{kind.label} not found")

        column = subscription_resource_column(kind)
        history = db.query(StudentSubscription).filter(
            column == resource_id
        ).order_by(
            StudentSubscription.end_date.desc(),
            StudentSubscription.id.desc()
        ).limit(limit or RESOURCE_HISTORY_LIMIT).all()
        return ServiceResult.ok(history)

    @staticmethod
    def find_locker_by_seat_number(
        db: Session,
        branch_id: int,
        seat_number: str,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[Locker]:
        """Find the locker numbered like a seat in the same branch."""
        found = ResourceService.get_branch_in_scope(db, branch_id, scope)
        if not found.success:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or "Branch not found")

        locker = db.query(Locker).filter(
            Locker.branch_id == branch_id,
            Locker.number == seat_number.strip()
        ).first()
        if not locker:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, "Locker not found")
        return ServiceResult.ok(locker)
