"""
Booking creation and partial-update structures.

Each field of an update is MISSING (leave unchanged), None (clear, where the
column is nullable) or a value.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from core.constants import SUBSCRIPTION_STATUS_ACTIVE
from core.sentinels import MISSING, Maybe, is_set


@dataclass
class SubscriptionResourceUpdate:
    """Changes to the resources and period of a subscription."""
    seat_id: Maybe[Optional[int]] = MISSING
    locker_id: Maybe[Optional[int]] = MISSING
    start_date: Maybe[datetime] = MISSING
    end_date: Maybe[datetime] = MISSING

    def changed_fields(self) -> Dict[str, Any]:
        """Fields that were provided, including explicit None."""
        return {
            name: value
            for name, value in (
                ("seat_id", self.seat_id),
                ("locker_id", self.locker_id),
                ("start_date", self.start_date),
                ("end_date", self.end_date),
            )
            if is_set(value)
        }


@dataclass
class ResourceUpdate:
    """Changes to a seat or locker."""
    number: Maybe[str] = MISSING
    section: Maybe[Optional[str]] = MISSING
    type: Maybe[Optional[str]] = MISSING
    is_active: Maybe[bool] = MISSING

    def changed_fields(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in (
                ("number", self.number),
                ("section", self.section),
                ("type", self.type),
                ("is_active", self.is_active),
            )
            if is_set(value)
        }


@dataclass
class NewSubscription:
    """
    A booking to create for a student.

    The period covers ``quantity`` consecutive plan cycles. When the student
    already holds an active or pending booking in the branch that has not
    ended, the new period starts after it unless ``is_add_on`` is set.
    """
    student_id: int
    plan_id: int
    start_date: datetime
    seat_id: Optional[int] = None
    locker_id: Optional[int] = None
    quantity: int = 1
    with_locker: bool = False
    is_add_on: bool = False
    status: str = SUBSCRIPTION_STATUS_ACTIVE
