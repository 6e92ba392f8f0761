"""
Student subscription (booking) model.

A subscription links a student to a plan and optionally claims one seat and
one locker for the closed interval [start_date, end_date]. Subscriptions are
retired by status change, never deleted.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Numeric, ForeignKey, TIMESTAMP, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base
from core.constants import SUBSCRIPTION_STATUS_PENDING


class StudentSubscription(Base):
    """Booking of a student, scoped by library and branch."""

    __tablename__ = "student_subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    library_id: Mapped[int] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), index=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id", ondelete="CASCADE"), index=True)
    student_id: Mapped[int] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), index=True)
    plan_id: Mapped[Optional[int]] = mapped_column(ForeignKey("plans.id", ondelete="SET NULL"), nullable=True)

    seat_id: Mapped[Optional[int]] = mapped_column(ForeignKey("seats.id", ondelete="RESTRICT"), nullable=True)
    """Claimed seat. RESTRICT keeps booking history pointing at real seats."""

    locker_id: Mapped[Optional[int]] = mapped_column(ForeignKey("lockers.id", ondelete="RESTRICT"), nullable=True)
    """Claimed locker."""

    start_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """First instant of the booking (inclusive)."""

    end_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    """Last instant of the booking (inclusive)."""

    status: Mapped[str] = mapped_column(String(20), default=SUBSCRIPTION_STATUS_PENDING, nullable=False)
    """One of pending, active, expired, cancelled."""

    amount: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    student = relationship("Student", back_populates="subscriptions")
    plan = relationship("Plan")
    seat = relationship("Seat", back_populates="subscriptions")
    locker = relationship("Locker", back_populates="subscriptions")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'active', 'expired', 'cancelled')",
            name="ck_student_subscription_status"
        ),
        # Availability and occupancy queries filter by resource, status and bounds
        Index('ix_subscription_seat_status_dates', 'seat_id', 'status', 'start_date', 'end_date'),
        Index('ix_subscription_locker_status_dates', 'locker_id', 'status', 'start_date', 'end_date'),
    )
