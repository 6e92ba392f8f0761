"""
Discriminated result type returned by service operations.

Business failures (conflicts, missing rows, scope violations, bad input) are
reported as failed results instead of exceptions; the API layer maps them to
HTTP status codes.
"""

import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorCode(str, enum.Enum):
    """Category of a failed service result."""
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INVALID = "invalid"
    PERSISTENCE = "persistence"


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service operation.

    Exactly one of data (on success) or error (on failure) is meaningful.
    conflict_id carries the id of the blocking subscription for conflicts.
    """
    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    conflict_id: Optional[int] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "ServiceResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(
        cls,
        error_code: ErrorCode,
        error: str,
        conflict_id: Optional[int] = None
    ) -> "ServiceResult[T]":
        return cls(success=False, error=error, error_code=error_code, conflict_id=conflict_id)
