# Package initialization
# Import all models to ensure relationships are properly established
from .library import Library
from .branch import Branch
from .seat import Seat
from .locker import Locker
from .student import Student
from .plan import Plan
from .student_subscription import StudentSubscription
from .user import User
from .resource import ResourceKind, resource_model, subscription_resource_column

__all__ = [
    "Library",
    "Branch",
    "Seat",
    "Locker",
    "Student",
    "Plan",
    "StudentSubscription",
    "User",
    "ResourceKind",
    "resource_model",
    "subscription_resource_column",
]
