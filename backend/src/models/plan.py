"""
Plan model describing a purchasable study-space plan of a library.
"""

from datetime import datetime
from sqlalchemy import String, Integer, Numeric, ForeignKey, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class Plan(Base):
    """Library plan (e.g., "Monthly full day")."""

    __tablename__ = "plans"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    library_id: Mapped[int] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    duration_days: Mapped[int] = mapped_column(Integer, default=30, nullable=False)
    price: Mapped[float] = mapped_column(Numeric(10, 2), default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
