"""
Branch model representing a physical study-space location of a library.
"""

from datetime import datetime
from sqlalchemy import String, Integer, ForeignKey, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Branch(Base):
    """Branch entity. Seats and lockers belong to exactly one branch."""

    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the branch."""

    library_id: Mapped[int] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), index=True)
    """Reference to the library that owns this branch."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name of the branch."""

    seat_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    """Number of seats in the branch, maintained on seat creation and deletion."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    library = relationship("Library", back_populates="branches")
    seats = relationship("Seat", back_populates="branch")
    lockers = relationship("Locker", back_populates="branch")
