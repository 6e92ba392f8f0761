"""
Seat model.

Seats are never hard-deleted while a subscription references them; they are
deactivated through is_active instead.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, ForeignKey, TIMESTAMP, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import DEFAULT_SEAT_TYPE


class Seat(Base):
    """Seat entity, a bookable resource of a branch."""

    __tablename__ = "seats"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the seat."""

    library_id: Mapped[int] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), index=True)
    """Reference to the library (tenant) that owns this seat."""

    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id", ondelete="CASCADE"), index=True)
    """Reference to the branch the seat is located in."""

    number: Mapped[str] = mapped_column(String(50))
    """Human-readable seat number (e.g., "A12"). Unique within the branch."""

    section: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    """Optional section / zone of the branch."""

    type: Mapped[str] = mapped_column(String(50), default=DEFAULT_SEAT_TYPE, nullable=False)
    """Seat classification (e.g., "standard", "premium", "cabin")."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Soft-disable flag. Inactive seats stay listed but should not be offered."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    branch = relationship("Branch", back_populates="seats")
    subscriptions = relationship("StudentSubscription", back_populates="seat")

    __table_args__ = (
        UniqueConstraint('branch_id', 'number', name='uq_seat_branch_number'),
    )
