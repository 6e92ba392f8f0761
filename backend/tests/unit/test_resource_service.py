"""
Unit tests for ResourceService.

Tests for seat/locker management, availability checking and occupancy.
"""

import pytest
from datetime import timedelta
from sqlalchemy.orm import Session

from core.constants import (
    SUBSCRIPTION_STATUS_ACTIVE,
    SUBSCRIPTION_STATUS_CANCELLED,
    SUBSCRIPTION_STATUS_EXPIRED,
    SUBSCRIPTION_STATUS_PENDING,
)
from core.sentinels import MISSING
from models import Branch, Locker, ResourceKind, Seat
from services.resource_service import ResourceService
from shared_types import ErrorCode, ResourceUpdate, TenantScope
from utils.datetime_utils import utc_now
from tests.factories import (
    create_branch,
    create_library,
    create_locker,
    create_seat,
    create_student,
    create_subscription,
    utc,
)


@pytest.fixture
def branch(db_session: Session) -> Branch:
    library = create_library(db_session)
    return create_branch(db_session, library)


class TestCheckResourceAvailability:
    """Test the overlap check against existing bookings."""

    def test_overlapping_booking_conflicts(self, db_session: Session, branch: Branch):
        """An active January booking blocks a mid-January to mid-February request."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        existing = create_subscription(
            db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), seat=seat
        )

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 15), utc(2025, 2, 15)
        )

        assert result.available is False
        assert result.conflict_id == existing.id

    def test_disjoint_booking_is_available(self, db_session: Session, branch: Branch):
        """A February request does not conflict with a January booking."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), seat=seat)

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 2, 1), utc(2025, 2, 28)
        )

        assert result.available is True
        assert result.conflict_id is None

    def test_touching_bounds_conflict(self, db_session: Session, branch: Branch):
        """Bounds are inclusive, so sharing the end instant is an overlap."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), seat=seat)

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 31), utc(2025, 2, 28)
        )

        assert result.available is False

    def test_pending_blocks_by_default(self, db_session: Session, branch: Branch):
        """Pending bookings hold the resource for new bookings."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        pending = create_subscription(
            db_session, student, utc(2025, 1, 1), utc(2025, 1, 31),
            seat=seat, status=SUBSCRIPTION_STATUS_PENDING
        )

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 10), utc(2025, 1, 12)
        )

        assert result.available is False
        assert result.conflict_id == pending.id

    @pytest.mark.parametrize("status", [SUBSCRIPTION_STATUS_EXPIRED, SUBSCRIPTION_STATUS_CANCELLED])
    def test_retired_bookings_do_not_block(self, db_session: Session, branch: Branch, status: str):
        """Expired and cancelled bookings never block."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(
            db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), seat=seat, status=status
        )

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 10), utc(2025, 1, 12)
        )

        assert result.available is True

    def test_custom_statuses(self, db_session: Session, branch: Branch):
        """Restricting statuses to active ignores pending bookings."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(
            db_session, student, utc(2025, 1, 1), utc(2025, 1, 31),
            seat=seat, status=SUBSCRIPTION_STATUS_PENDING
        )

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 10), utc(2025, 1, 12),
            statuses=[SUBSCRIPTION_STATUS_ACTIVE]
        )

        assert result.available is True

    def test_excluded_booking_is_ignored(self, db_session: Session, branch: Branch):
        """A booking checked against its own interval is not its own conflict."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        own = create_subscription(db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), seat=seat)

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 1), utc(2025, 1, 31),
            exclude_subscription_id=own.id
        )

        assert result.available is True

    def test_seat_and_locker_are_checked_separately(self, db_session: Session, branch: Branch):
        """A locker booking does not block the seat with the same id."""
        seat = create_seat(db_session, branch)
        locker = create_locker(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(db_session, student, utc(2025, 1, 1), utc(2025, 1, 31), locker=locker)

        seat_result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 10), utc(2025, 1, 12)
        )
        locker_result = ResourceService.check_resource_availability(
            db_session, ResourceKind.LOCKER, locker.id, utc(2025, 1, 10), utc(2025, 1, 12)
        )

        assert seat_result.available is True
        assert locker_result.available is False

    def test_unknown_resource_reports_available(self, db_session: Session):
        """The check itself does not resolve the resource."""
        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, 9999, utc(2025, 1, 1), utc(2025, 1, 2)
        )

        assert result.available is True

    def test_first_conflict_is_reported(self, db_session: Session, branch: Branch):
        """With several conflicts the lowest booking id is reported."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        first = create_subscription(db_session, student, utc(2025, 1, 1), utc(2025, 1, 10), seat=seat)
        create_subscription(db_session, student, utc(2025, 1, 11), utc(2025, 1, 20), seat=seat)

        result = ResourceService.check_resource_availability(
            db_session, ResourceKind.SEAT, seat.id, utc(2025, 1, 1), utc(2025, 1, 31)
        )

        assert result.conflict_id == first.id


class TestListBranchResourceOccupancy:
    """Test derived occupancy of seats and lockers."""

    def test_occupancy_is_derived_from_active_bookings(self, db_session: Session, branch: Branch):
        """Ending tomorrow is occupied, ended yesterday is free, no booking is free."""
        now = utc_now()
        ongoing = create_seat(db_session, branch, number="A1")
        ended = create_seat(db_session, branch, number="A2")
        empty = create_seat(db_session, branch, number="A3")
        student = create_student(db_session, branch)
        create_subscription(
            db_session, student, now - timedelta(days=10), now + timedelta(days=1), seat=ongoing
        )
        create_subscription(
            db_session, student, now - timedelta(days=10), now - timedelta(days=1), seat=ended
        )

        result = ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.SEAT)
        occupancy = {item.id: item.is_occupied for item in result}

        assert occupancy == {ongoing.id: True, ended.id: False, empty.id: False}

    def test_pending_booking_does_not_occupy(self, db_session: Session, branch: Branch):
        """Only active bookings make a resource occupied."""
        now = utc_now()
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(
            db_session, student, now - timedelta(days=1), now + timedelta(days=5),
            seat=seat, status=SUBSCRIPTION_STATUS_PENDING
        )

        result = ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.SEAT)

        assert result[0].is_occupied is False

    def test_future_booking_occupies(self, db_session: Session, branch: Branch):
        """A booking that has not started but will end later counts as occupied."""
        now = utc_now()
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        create_subscription(
            db_session, student, now + timedelta(days=3), now + timedelta(days=30), seat=seat
        )

        result = ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.SEAT)

        assert result[0].is_occupied is True

    def test_ordered_by_number_then_id(self, db_session: Session, branch: Branch):
        """Numbers sort lexically."""
        create_seat(db_session, branch, number="A2")
        create_seat(db_session, branch, number="A10")
        create_seat(db_session, branch, number="A1")

        result = ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.SEAT)

        assert [item.number for item in result] == ["A1", "A10", "A2"]

    def test_lists_lockers_of_branch_only(self, db_session: Session, branch: Branch):
        """Other branches and the other kind are not included."""
        other_branch = create_branch(db_session, branch.library, name="Annex")
        locker = create_locker(db_session, branch, number="L1")
        create_locker(db_session, other_branch, number="L1")
        create_seat(db_session, branch, number="L1")

        result = ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.LOCKER)

        assert [item.id for item in result] == [locker.id]
        assert result[0].to_dict()["branch_id"] == branch.id

    def test_empty_branch(self, db_session: Session, branch: Branch):
        assert ResourceService.list_branch_resource_occupancy(db_session, branch.id, ResourceKind.SEAT) == []


class TestCreateResource:
    """Test seat and locker creation."""

    def test_create_seat(self, db_session: Session, branch: Branch):
        """Creating a seat bumps the branch seat counter."""
        result = ResourceService.create_resource(
            db_session, ResourceKind.SEAT, branch.id, number=" B7 ", section="Silent"
        )

        assert result.success is True
        seat = result.data
        assert isinstance(seat, Seat)
        assert seat.number == "B7"
        assert seat.type == "standard"
        assert seat.library_id == branch.library_id
        db_session.refresh(branch)
        assert branch.seat_count == 1

    def test_create_locker(self, db_session: Session, branch: Branch):
        result = ResourceService.create_resource(db_session, ResourceKind.LOCKER, branch.id, number="L5")

        assert result.success is True
        assert isinstance(result.data, Locker)
        db_session.refresh(branch)
        assert branch.seat_count == 0

    def test_duplicate_number_rejected(self, db_session: Session, branch: Branch):
        create_seat(db_session, branch, number="A1")

        result = ResourceService.create_resource(db_session, ResourceKind.SEAT, branch.id, number="A1")

        assert result.success is False
        assert result.error_code == ErrorCode.CONFLICT
        assert result.error == "Seat number already exists in this branch"

    def test_same_number_allowed_in_other_branch(self, db_session: Session, branch: Branch):
        other_branch = create_branch(db_session, branch.library, name="Annex")
        create_seat(db_session, branch, number="A1")

        result = ResourceService.create_resource(db_session, ResourceKind.SEAT, other_branch.id, number="A1")

        assert result.success is True

    def test_blank_number_rejected(self, db_session: Session, branch: Branch):
        result = ResourceService.create_resource(db_session, ResourceKind.LOCKER, branch.id, number="   ")

        assert result.error_code == ErrorCode.INVALID
        assert result.error == "Locker number is required"

    def test_seat_limit(self, db_session: Session):
        library = create_library(db_session, max_seats=1)
        branch = create_branch(db_session, library)
        create_seat(db_session, branch, number="A1")

        result = ResourceService.create_resource(db_session, ResourceKind.SEAT, branch.id, number="A2")

        assert result.error_code == ErrorCode.CONFLICT
        assert result.error == "Seat limit reached"

    def test_unknown_branch(self, db_session: Session):
        result = ResourceService.create_resource(db_session, ResourceKind.SEAT, 404, number="A1")

        assert result.error_code == ErrorCode.NOT_FOUND

    def test_branch_outside_scope(self, db_session: Session, branch: Branch):
        other_library = create_library(db_session, name="Elsewhere")

        result = ResourceService.create_resource(
            db_session, ResourceKind.SEAT, branch.id, number="A1",
            scope=TenantScope(library_id=other_library.id)
        )

        assert result.error_code == ErrorCode.UNAUTHORIZED


class TestCreateBulkSeats:
    """Test bulk seat creation."""

    def test_creates_range_with_prefix(self, db_session: Session, branch: Branch):
        result = ResourceService.create_bulk_seats(db_session, branch.id, start=1, end=3, prefix="A")

        assert result.success is True
        assert [seat.number for seat in result.data] == ["A1", "A2", "A3"]
        db_session.refresh(branch)
        assert branch.seat_count == 3

    def test_skips_existing_numbers(self, db_session: Session, branch: Branch):
        create_seat(db_session, branch, number="A2")

        result = ResourceService.create_bulk_seats(db_session, branch.id, start=1, end=3, prefix="A")

        assert [seat.number for seat in result.data] == ["A1", "A3"]

    def test_all_existing_creates_nothing(self, db_session: Session, branch: Branch):
        create_seat(db_session, branch, number="1")

        result = ResourceService.create_bulk_seats(db_session, branch.id, start=1, end=1)

        assert result.success is True
        assert result.data == []

    def test_invalid_range(self, db_session: Session, branch: Branch):
        result = ResourceService.create_bulk_seats(db_session, branch.id, start=5, end=1)

        assert result.error_code == ErrorCode.INVALID
        assert result.error == "Invalid seat range"

    def test_whole_batch_respects_seat_limit(self, db_session: Session):
        library = create_library(db_session, max_seats=2)
        branch = create_branch(db_session, library)

        result = ResourceService.create_bulk_seats(db_session, branch.id, start=1, end=3)

        assert result.error == "Seat limit reached"
        assert db_session.query(Seat).count() == 0


class TestUpdateResource:
    """Test partial seat/locker updates."""

    def test_partial_update(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch, number="A1")

        result = ResourceService.update_resource(
            db_session, ResourceKind.SEAT, seat.id, ResourceUpdate(section="Window", is_active=False)
        )

        assert result.success is True
        assert result.data.section == "Window"
        assert result.data.is_active is False
        assert result.data.number == "A1"

    def test_clear_section(self, db_session: Session, branch: Branch):
        locker = create_locker(db_session, branch)
        ResourceService.update_resource(db_session, ResourceKind.LOCKER, locker.id, ResourceUpdate(section="Back"))

        result = ResourceService.update_resource(
            db_session, ResourceKind.LOCKER, locker.id, ResourceUpdate(section=None)
        )

        assert result.data.section is None

    def test_duplicate_number(self, db_session: Session, branch: Branch):
        create_seat(db_session, branch, number="A1")
        seat = create_seat(db_session, branch, number="A2")

        result = ResourceService.update_resource(
            db_session, ResourceKind.SEAT, seat.id, ResourceUpdate(number="A1")
        )

        assert result.error_code == ErrorCode.CONFLICT

    def test_renaming_to_own_number_is_allowed(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch, number="A1")

        result = ResourceService.update_resource(
            db_session, ResourceKind.SEAT, seat.id, ResourceUpdate(number="A1")
        )

        assert result.success is True

    def test_null_is_active_rejected(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch)

        result = ResourceService.update_resource(
            db_session, ResourceKind.SEAT, seat.id, ResourceUpdate(is_active=None)  # type: ignore[arg-type]
        )

        assert result.error_code == ErrorCode.INVALID

    def test_empty_update_changes_nothing(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch, number="A1")

        result = ResourceService.update_resource(db_session, ResourceKind.SEAT, seat.id, ResourceUpdate())

        assert result.success is True
        assert result.data.number == "A1"
        assert ResourceUpdate().changed_fields() == {}
        assert ResourceUpdate(number=MISSING).changed_fields() == {}

    def test_not_found(self, db_session: Session):
        result = ResourceService.update_resource(db_session, ResourceKind.LOCKER, 77, ResourceUpdate(section="x"))

        assert result.error_code == ErrorCode.NOT_FOUND
        assert result.error == "Locker not found"


class TestDeleteResource:
    """Test seat/locker deletion."""

    def test_delete_unreferenced_seat(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch)

        result = ResourceService.delete_resource(db_session, ResourceKind.SEAT, seat.id)

        assert result.success is True
        assert db_session.query(Seat).count() == 0
        db_session.refresh(branch)
        assert branch.seat_count == 0

    def test_delete_refused_with_history(self, db_session: Session, branch: Branch):
        """Resources with bookings are kept; they must be deactivated."""
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        booking = create_subscription(
            db_session, student, utc(2024, 1, 1), utc(2024, 1, 31),
            seat=seat, status=SUBSCRIPTION_STATUS_EXPIRED
        )

        result = ResourceService.delete_resource(db_session, ResourceKind.SEAT, seat.id)

        assert result.error_code == ErrorCode.CONFLICT
        assert result.conflict_id == booking.id
        assert db_session.query(Seat).count() == 1


class TestResourceHistory:
    """Test booking history of a resource."""

    def test_history_latest_first_with_limit(self, db_session: Session, branch: Branch):
        seat = create_seat(db_session, branch)
        student = create_student(db_session, branch)
        old = create_subscription(db_session, student, utc(2024, 1, 1), utc(2024, 1, 31), seat=seat)
        mid = create_subscription(db_session, student, utc(2024, 2, 1), utc(2024, 2, 28), seat=seat)
        new = create_subscription(db_session, student, utc(2024, 3, 1), utc(2024, 3, 31), seat=seat)

        result = ResourceService.get_resource_history(db_session, ResourceKind.SEAT, seat.id)
        limited = ResourceService.get_resource_history(db_session, ResourceKind.SEAT, seat.id, limit=2)

        assert [s.id for s in result.data] == [new.id, mid.id, old.id]
        assert [s.id for s in limited.data] == [new.id, mid.id]

    def test_history_of_unknown_resource(self, db_session: Session):
        result = ResourceService.get_resource_history(db_session, ResourceKind.SEAT, 123)

        assert result.error_code == ErrorCode.NOT_FOUND


class TestFindLockerBySeatNumber:
    """Test locker lookup by seat number."""

    def test_found(self, db_session: Session, branch: Branch):
        locker = create_locker(db_session, branch, number="A1")

        result = ResourceService.find_locker_by_seat_number(db_session, branch.id, "A1")

        assert result.data.id == locker.id

    def test_not_found(self, db_session: Session, branch: Branch):
        result = ResourceService.find_locker_by_seat_number(db_session, branch.id, "Z9")

        assert result.error_code == ErrorCode.NOT_FOUND
        assert result.error == "Locker not found"


class TestScope:
    """Test tenant scope checks on resource lookup."""

    def test_staff_scope_limited_to_branch(self, db_session: Session, branch: Branch):
        other_branch = create_branch(db_session, branch.library, name="Annex")
        seat = create_seat(db_session, other_branch)
        scope = TenantScope(library_id=branch.library_id, branch_id=branch.id)

        result = ResourceService.get_resource_in_scope(db_session, ResourceKind.SEAT, seat.id, scope)

        assert result.error_code == ErrorCode.UNAUTHORIZED

    def test_owner_scope_covers_all_branches(self, db_session: Session, branch: Branch):
        other_branch = create_branch(db_session, branch.library, name="Annex")
        seat = create_seat(db_session, other_branch)

        result = ResourceService.get_resource_in_scope(
            db_session, ResourceKind.SEAT, seat.id, TenantScope(library_id=branch.library_id)
        )

        assert result.success is True
