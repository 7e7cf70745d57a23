"""Translation of signature workflow errors to HTTP errors."""

from fastapi import HTTPException, status

from procura.services.approval.exceptions import (
    ApprovalError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)


def http_error(exc: ApprovalError) -> HTTPException:
    """Build the HTTPException matching a workflow error."""
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.reason)
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.reason)
    if isinstance(exc, ConflictError):
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": exc.reason, "retryable": True},
        )
    if isinstance(exc, InvalidStateError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.reason)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.reason)
