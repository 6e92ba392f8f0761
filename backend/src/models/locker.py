"""
Locker model.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, ForeignKey, TIMESTAMP, Boolean, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Locker(Base):
    """Locker entity, optionally booked alongside a seat."""

    __tablename__ = "lockers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    library_id: Mapped[int] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), index=True)
    branch_id: Mapped[int] = mapped_column(ForeignKey("branches.id", ondelete="CASCADE"), index=True)

    number: Mapped[str] = mapped_column(String(50))
    """Locker number. Often matches a seat number in the same branch."""

    section: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    branch = relationship("Branch", back_populates="lockers")
    subscriptions = relationship("StudentSubscription", back_populates="locker")

    __table_args__ = (
        UniqueConstraint('branch_id', 'number', name='uq_locker_branch_number'),
    )
