"""
Resource kinds and lookups shared by seats and lockers.

Seats and lockers live in separate tables but follow the same occupancy
rules; ResourceKind selects the model and the subscription column to use.
"""

import enum
from typing import Type, Union

from sqlalchemy.orm import InstrumentedAttribute

from models.seat import Seat
from models.locker import Locker
from models.student_subscription import StudentSubscription

ResourceModel = Union[Seat, Locker]


class ResourceKind(str, enum.Enum):
    """Kind of physical resource a subscription can claim."""
    SEAT = "seat"
    LOCKER = "locker"

    @property
    def label(self) -> str:
        """Capitalized name used in user-facing messages."""
        return self.value.capitalize()


def resource_model(kind: ResourceKind) -> Type[ResourceModel]:
    """Return the ORM model for a resource kind."""
    return Seat if kind == ResourceKind.SEAT else Locker


def subscription_resource_column(kind: ResourceKind) -> InstrumentedAttribute:  # type: ignore[type-arg]
    """Return the StudentSubscription foreign key column for a resource kind."""
    if kind == ResourceKind.SEAT:
        return StudentSubscription.seat_id
    return StudentSubscription.locker_id
