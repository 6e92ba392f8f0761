"""
User model for everyone who signs in: platform admins, library owners,
branch staff and students.

The role and the library/branch scope on this row drive tenant isolation in
auth.dependencies.
"""

from typing import Optional
from datetime import datetime
from sqlalchemy import String, Boolean, ForeignKey, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from core.database import Base


class User(Base):
    """Authenticated identity with a role and a tenant scope."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    email: Mapped[str] = mapped_column(String(255), unique=True)
    name: Mapped[str] = mapped_column(String(255))

    role: Mapped[str] = mapped_column(String(20))
    """One of platform_admin, owner, staff, student."""

    library_id: Mapped[Optional[int]] = mapped_column(ForeignKey("libraries.id", ondelete="CASCADE"), nullable=True, index=True)
    """Tenant of the user. None for platform admins."""

    branch_id: Mapped[Optional[int]] = mapped_column(ForeignKey("branches.id", ondelete="SET NULL"), nullable=True)
    """Branch the user is bound to. Required for staff; owners span all branches."""

    student_id: Mapped[Optional[int]] = mapped_column(ForeignKey("students.id", ondelete="CASCADE"), nullable=True)
    """Student record for users with the student role."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "role IN ('platform_admin', 'owner', 'staff', 'student')",
            name="ck_user_role"
        ),
    )
