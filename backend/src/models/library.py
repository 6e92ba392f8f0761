"""
Library model representing a tenant.

Every branch, resource, student and subscription is scoped by library_id.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.database import Base


class Library(Base):
    """Library (tenant) account."""

    __tablename__ = "libraries"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the library."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name of the library."""

    max_seats: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    """Seat limit across all branches from the platform plan. None means unlimited."""

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    # Relationships
    branches = relationship("Branch", back_populates="library", cascade="all, delete-orphan")
