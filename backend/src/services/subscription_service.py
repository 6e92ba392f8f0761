"""
Subscription service for booking creation, seat/locker assignment and status
changes.

Every write that claims a seat or locker follows the same sequence: resolve
the booking in the caller's scope, lock the target resource rows, run the
overlap check excluding the booking itself, then write and commit in one
transaction. A failed check leaves the booking untouched.
"""

import logging
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import BOOKING_BLOCKING_STATUSES, REASSIGNMENT_BLOCKING_STATUSES
from core.constants import (
    MAX_BOOKING_CYCLES,
    RENEWAL_START_GAP_SECONDS,
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_PENDING,
    SUBSCRIPTION_STATUSES,
)
from models import Plan, Seat, Student, StudentSubscription, ResourceKind, subscription_resource_column
from models.resource import ResourceModel
from services.resource_service import ResourceService
from shared_types import (
    ErrorCode,
    NewSubscription,
    PLATFORM_SCOPE,
    ServiceResult,
    SubscriptionResourceUpdate,
    TenantScope,
)
from utils.datetime_utils import ensure_utc, utc_now
from utils.interval_utils import InvalidIntervalError, validate_interval

logger = logging.getLogger(__name__)

RESOURCE_FIELDS: Tuple[Tuple[ResourceKind, str], ...] = (
    (ResourceKind.SEAT, "seat_id"),
    (ResourceKind.LOCKER, "locker_id"),
)


class SubscriptionService:
    """Service for booking resource assignment and status changes."""

    @staticmethod
    def get_subscription_in_scope(
        db: Session,
        subscription_id: int,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[StudentSubscription]:
        """Resolve a booking visible to the caller."""
        subscription = db.query(StudentSubscription).filter(
            StudentSubscription.id == subscription_id
        ).first()
        if not subscription:
            return ServiceResult.fail(ErrorCode.NOT_FOUND, "Booking not found")
        if not scope.allows(subscription.library_id, subscription.branch_id):
            return ServiceResult.fail(ErrorCode.UNAUTHORIZED, "Access denied to this booking")
        return ServiceResult.ok(subscription)

    @staticmethod
    def _lock_resource_for_booking(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        branch_id: int,
        scope: TenantScope,
        claiming: bool = True
    ) -> ServiceResult[ResourceModel]:
        """
        Lock a resource row and check it can be attached to the booking.

        A deactivated resource cannot be newly claimed. Bookings that already
        hold it keep it (``claiming=False``).
        """
        found = ResourceService.get_resource_in_scope(db, kind, resource_id, scope, lock=True)
        if not found.success or found.data is None:
            return found
        if found.data.branch_id != branch_id:
            return ServiceResult.fail(
                ErrorCode.INVALID, f"{kind.label} does not belong to the booking's branch"
            )
        if claiming and not found.data.is_active:
            return ServiceResult.fail(ErrorCode.INVALID, f"{kind.label} is not active")
        return found

    @staticmethod
    def reassign_subscription_resources(
        db: Session,
        subscription_id: int,
        update: SubscriptionResourceUpdate,
        scope: TenantScope = PLATFORM_SCOPE,
        blocking_statuses: Optional[Iterable[str]] = None
    ) -> ServiceResult[StudentSubscription]:
        """
        Change the seat, locker and/or period of an existing booking.

        Every resource being set to a non-null value is checked against the
        other bookings of that resource over the booking's effective
        interval. When only the period changes, the resources the booking
        already holds are re-checked over the new period. The booking itself
        is always excluded from the check.

        Conflicts abort the whole update with "Seat is already occupied" or
        "Locker is already occupied" and nothing is written.

        Args:
            db: Database session
            subscription_id: Booking to modify
            update: Partial update; MISSING fields are left unchanged
            scope: Caller's tenant scope
            blocking_statuses: Statuses that block a resource. Defaults to
                REASSIGNMENT_BLOCKING_STATUSES.

        Returns:
            ServiceResult with the updated booking on success
        """
        statuses = list(blocking_statuses) if blocking_statuses is not None else list(REASSIGNMENT_BLOCKING_STATUSES)

        try:
            found = SubscriptionService.get_subscription_in_scope(db, subscription_id, scope)
            if not found.success or found.data is None:
                return found
            subscription = found.data

            changes = update.changed_fields()
            for bound in ("start_date", "end_date"):
                if bound in changes:
                    if changes[bound] is None:
                        return ServiceResult.fail(ErrorCode.INVALID, "Booking dates cannot be cleared")
                    changes[bound] = ensure_utc(changes[bound])

            start = changes.get("start_date", ensure_utc(subscription.start_date))
            end = changes.get("end_date", ensure_utc(subscription.end_date))
            try:
                validate_interval(start, end)
            except InvalidIntervalError as e:
                return ServiceResult.fail(ErrorCode.INVALID, str(e))

            period_changed = "start_date" in changes or "end_date" in changes

            # (kind, resource id, newly claimed)
            to_check: List[Tuple[ResourceKind, int, bool]] = []
            for kind, field in RESOURCE_FIELDS:
                held = getattr(subscription, field)
                if field in changes:
                    if changes[field] is not None:
                        to_check.append((kind, changes[field], changes[field] != held))
                elif period_changed and held is not None:
                    to_check.append((kind, held, False))

            for kind, resource_id, claiming in to_check:
                locked = SubscriptionService._lock_resource_for_booking(
                    db, kind, resource_id, subscription.branch_id, scope, claiming=claiming
                )
                if not locked.success:
                    db.rollback()
                    return ServiceResult.fail(locked.error_code or ErrorCode.NOT_FOUND, locked.error or "")

            for kind, resource_id, _ in to_check:
                availability = ResourceService.check_resource_availability(
                    db,
                    kind,
                    resource_id,
                    start,
                    end,
                    exclude_subscription_id=subscription.id,
                    statuses=statuses
                )
                if not availability.available:
                    logger.info(
                        f"Reassignment of booking {subscription.id} rejected: {kind.value} {resource_id} "
                        f"held by booking {availability.conflict_id}"
                    )
                    db.rollback()
                    return ServiceResult.fail(
                        ErrorCode.CONFLICT,
                        f"{kind.label} is already occupied",
                        conflict_id=availability.conflict_id
                    )

            for field, value in changes.items():
                setattr(subscription, field, value)
            db.commit()
            db.refresh(subscription)
            return ServiceResult.ok(subscription)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to update booking details for {subscription_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, "Failed to update booking details")

    @staticmethod
    def assign_resource(
        db: Session,
        kind: ResourceKind,
        resource_id: int,
        subscription_id: int,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[StudentSubscription]:
        """
        Attach a seat or locker to a booking for the booking's own period.

        Active and pending bookings of the resource both block the assignment.
        """
        try:
            found = SubscriptionService.get_subscription_in_scope(db, subscription_id, scope)
            if not found.success or found.data is None:
                return found
            subscription = found.data

            column = subscription_resource_column(kind)
            failure = SubscriptionService._claim_resources(
                db,
                [(kind, resource_id, getattr(subscription, column.key) != resource_id)],
                subscription.branch_id,
                ensure_utc(subscription.start_date),
                ensure_utc(subscription.end_date),
                scope,
                exclude_subscription_id=subscription.id
            )
            if failure:
                db.rollback()
                return failure

            setattr(subscription, column.key, resource_id)
            db.commit()
            db.refresh(subscription)
            logger.info(f"Assigned {kind.value} {resource_id} to booking {subscription.id}")
            return ServiceResult.ok(subscription)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to assign {kind.value} {resource_id} to booking {subscription_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, f"Failed to assign {kind.value}")

    @staticmethod
    def unassign_resource(
        db: Session,
        kind: ResourceKind,
        subscription_id: int,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[StudentSubscription]:
        """Release the seat or locker held by a booking."""
        try:
            found = SubscriptionService.get_subscription_in_scope(db, subscription_id, scope)
            if not found.success or found.data is None:
                return found
            subscription = found.data

            setattr(subscription, subscription_resource_column(kind).key, None)
            db.commit()
            db.refresh(subscription)
            return ServiceResult.ok(subscription)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to unassign {kind.value} from booking {subscription_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, f"Failed to unassign {kind.value}")

    @staticmethod
    def _claim_resources(
        db: Session,
        resources: List[Tuple[ResourceKind, int, bool]],
        branch_id: int,
        start: datetime,
        end: datetime,
        scope: TenantScope,
        exclude_subscription_id: Optional[int] = None
    ) -> Optional[ServiceResult[StudentSubscription]]:
        """
        Lock each (kind, resource id, newly claimed) entry and check it is free
        for [start, end] against active and pending bookings.

        Returns the failure to report, or None when every resource is free.
        The caller rolls back on failure.
        """
        for kind, resource_id, claiming in resources:
            locked = SubscriptionService._lock_resource_for_booking(
                db, kind, resource_id, branch_id, scope, claiming=claiming
            )
            if not locked.success:
                return ServiceResult.fail(locked.error_code or ErrorCode.NOT_FOUND, locked.error or "")

        for kind, resource_id, _ in resources:
            availability = ResourceService.check_resource_availability(
                db,
                kind,
                resource_id,
                start,
                end,
                exclude_subscription_id=exclude_subscription_id,
                statuses=BOOKING_BLOCKING_STATUSES
            )
            if not availability.available:
                logger.info(
                    f"{kind.label} {resource_id} is held by booking {availability.conflict_id} "
                    f"between {start.isoformat()} and {end.isoformat()}"
                )
                return ServiceResult.fail(
                    ErrorCode.CONFLICT,
                    f"{kind.label} is already occupied for the selected dates",
                    conflict_id=availability.conflict_id
                )
        return None

    @staticmethod
    def update_subscription_status(
        db: Session,
        subscription_id: int,
        status: str,
        scope: TenantScope = PLATFORM_SCOPE
    ) -> ServiceResult[StudentSubscription]:
        """
        Move a booking to another status (activation, cancellation, expiry).

        Moving a booking into a blocking status (active or pending by default)
        re-checks the seat and locker it holds over its own period, so a
        cancelled booking cannot be reactivated onto a resource that another
        booking has taken since.
        """
        if status not in SUBSCRIPTION_STATUSES:
            return ServiceResult.fail(ErrorCode.INVALID, f"Unknown booking status: {status}")

        try:
            found = SubscriptionService.get_subscription_in_scope(db, subscription_id, scope)
            if not found.success or found.data is None:
                return found
            subscription = found.data

            if status != subscription.status and status in BOOKING_BLOCKING_STATUSES:
                held = [
                    (kind, getattr(subscription, field), False)
                    for kind, field in RESOURCE_FIELDS
                    if getattr(subscription, field) is not None
                ]
                failure = SubscriptionService._claim_resources(
                    db,
                    held,
                    subscription.branch_id,
                    ensure_utc(subscription.start_date),
                    ensure_utc(subscription.end_date),
                    scope,
                    exclude_subscription_id=subscription.id
                )
                if failure:
                    db.rollback()
                    return failure

            subscription.status = status
            db.commit()
            db.refresh(subscription)
            return ServiceResult.ok(subscription)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to update booking {subscription_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, "Failed to update booking")

    @staticmethod
    def _latest_open_booking(
        db: Session,
        student_id: int,
        branch_id: int,
        now: datetime
    ) -> Optional[StudentSubscription]:
        """Latest-ending active or pending booking of a student that has not ended."""
        return db.query(StudentSubscription).filter(
            StudentSubscription.student_id == student_id,
            StudentSubscription.branch_id == branch_id,
            StudentSubscription.status.in_([SUBSCRIPTION_STATUS_ACTIVE, SUBSCRIPTION_STATUS_PENDING]),
            StudentSubscription.end_date > now
        ).order_by(StudentSubscription.end_date.desc()).first()

    @staticmethod
    def create_subscription(
        db: Session,
        branch_id: int,
        booking: NewSubscription,
        scope: TenantScope = PLATFORM_SCOPE,
        now: Optional[datetime] = None
    ) -> ServiceResult[StudentSubscription]:
        """
        Create a booking for a student in a branch.

        The period covers ``booking.quantity`` plan cycles. Unless the booking
        is an add-on, it starts right after the student's latest active or
        pending booking in the branch that has not ended yet; otherwise it
        starts at ``booking.start_date``.

        With ``with_locker`` and no explicit locker, the locker numbered like
        the seat is attached. Seat and locker are checked against active and
        pending bookings; a conflict fails with "Seat is already occupied for
        the selected dates" (or the locker equivalent) and nothing is written.

        Args:
            db: Database session
            branch_id: Branch the booking belongs to
            booking: Student, plan, resources and period of the booking
            scope: Caller's tenant scope
            now: Reference time for finding the booking to renew. Defaults to utc_now().

        Returns:
            ServiceResult with the created booking on success
        """
        if not 1 <= booking.quantity <= MAX_BOOKING_CYCLES:
            return ServiceResult.fail(
                ErrorCode.INVALID, f"Quantity must be between 1 and {MAX_BOOKING_CYCLES}"
            )
        if booking.status not in (SUBSCRIPTION_STATUS_ACTIVE, SUBSCRIPTION_STATUS_PENDING):
            return ServiceResult.fail(ErrorCode.INVALID, "New bookings must be active or pending")

        now = ensure_utc(now) if now else utc_now()

        try:
            found = ResourceService.get_branch_in_scope(db, branch_id, scope)
            if not found.success or found.data is None:
                return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or "Branch not found")
            branch = found.data

            student = db.query(Student).filter(
                Student.id == booking.student_id,
                Student.library_id == branch.library_id
            ).first()
            if not student:
                return ServiceResult.fail(ErrorCode.NOT_FOUND, "Student not found")

            plan = db.query(Plan).filter(
                Plan.id == booking.plan_id,
                Plan.library_id == branch.library_id
            ).first()
            if not plan:
                return ServiceResult.fail(ErrorCode.NOT_FOUND, "Plan not found")

            resources: List[Tuple[ResourceKind, int, bool]] = []
            if booking.seat_id is not None:
                resources.append((ResourceKind.SEAT, booking.seat_id, True))

            locker_id = booking.locker_id
            if locker_id is None and booking.with_locker:
                if booking.seat_id is None:
                    return ServiceResult.fail(ErrorCode.INVALID, "Seat selection required for a booking with a locker")
                seat = db.query(Seat).filter(Seat.id == booking.seat_id).first()
                if not seat:
                    return ServiceResult.fail(ErrorCode.NOT_FOUND, "Seat not found")
                paired = ResourceService.find_locker_by_seat_number(db, branch.id, seat.number, scope)
                if not paired.success or paired.data is None:
                    return ServiceResult.fail(ErrorCode.NOT_FOUND, f"Locker {seat.number} not found")
                locker_id = paired.data.id
            if locker_id is not None:
                resources.append((ResourceKind.LOCKER, locker_id, True))

            start = ensure_utc(booking.start_date)
            if not booking.is_add_on:
                previous = SubscriptionService._latest_open_booking(db, student.id, branch.id, now)
                if previous:
                    start = ensure_utc(previous.end_date) + timedelta(seconds=RENEWAL_START_GAP_SECONDS)
            end = start + timedelta(days=plan.duration_days * booking.quantity)

            failure = SubscriptionService._claim_resources(db, resources, branch.id, start, end, scope)
            if failure:
                db.rollback()
                return failure

            subscription = StudentSubscription(
                library_id=branch.library_id,
                branch_id=branch.id,
                student_id=student.id,
                plan_id=plan.id,
                seat_id=booking.seat_id,
                locker_id=locker_id,
                start_date=start,
                end_date=end,
                status=booking.status,
                amount=0 if booking.is_add_on else plan.price * booking.quantity
            )
            db.add(subscription)
            db.commit()
            db.refresh(subscription)
            logger.info(
                f"Created booking {subscription.id} for student {student.id} "
                f"from {start.isoformat()} to {end.isoformat()}"
            )
            return ServiceResult.ok(subscription)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(f"Failed to create booking for student {booking.student_id}: {e}")
            return ServiceResult.fail(ErrorCode.PERSISTENCE, "Failed to create booking")

    @staticmethod
    def list_eligible_subscriptions(
        db: Session,
        branch_id: int,
        kind: ResourceKind,
        scope: TenantScope = PLATFORM_SCOPE,
        now: Optional[datetime] = None
    ) -> ServiceResult[List[StudentSubscription]]:
        """
        Active, not yet ended bookings of a branch without a resource of this kind.

        These are the candidates offered when assigning a seat or locker.
        """
        found = ResourceService.get_branch_in_scope(db, branch_id, scope)
        if not found.success:
            return ServiceResult.fail(found.error_code or ErrorCode.NOT_FOUND, found.error or "Branch not found")

        now = ensure_utc(now) if now else utc_now()
        column = subscription_resource_column(kind)
        subscriptions = db.query(StudentSubscription).join(
            Student, StudentSubscription.student_id == Student.id
        ).filter(
            StudentSubscription.branch_id == branch_id,
            StudentSubscription.status == SUBSCRIPTION_STATUS_ACTIVE,
            StudentSubscription.end_date >= now,
            column.is_(None)
        ).order_by(Student.name.asc(), StudentSubscription.id.asc()).all()
        return ServiceResult.ok(subscriptions)

