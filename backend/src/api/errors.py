"""
Translation of failed service results into HTTP errors.
"""

from fastapi import HTTPException, status

from shared_types import ErrorCode, ServiceResult

_STATUS_BY_ERROR_CODE = {
    ErrorCode.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCode.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorCode.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorCode.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_failure(result: ServiceResult) -> None:  # type: ignore[type-arg]
    """Raise an HTTPException carrying the result's message if it failed."""
    if result.success:
        return
    code = result.error_code or ErrorCode.PERSISTENCE
    raise HTTPException(status_code=_STATUS_BY_ERROR_CODE[code], detail=result.error)
