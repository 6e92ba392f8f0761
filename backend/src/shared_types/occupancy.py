"""
Shared types for resource availability and occupancy.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass
class ResourceAvailability:
    """
    Result of an overlap check for one resource and interval.

    conflict_id is the id of the first conflicting subscription when the
    resource is not available.
    """
    available: bool
    conflict_id: Optional[int] = None


@dataclass
class ResourceOccupancy:
    """A seat or locker with its derived occupancy at query time."""
    id: int
    number: str
    section: Optional[str]
    type: Optional[str]
    is_active: bool
    is_occupied: bool
    library_id: int
    branch_id: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary format."""
        return asdict(self)
