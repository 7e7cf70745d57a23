"""Signature workflow errors.

Every failure propagates to the caller. Only ``ConflictError`` is meant to be
retried, after re-reading the document and re-evaluating eligibility.
"""


class ApprovalError(Exception):
    """Base class for signature workflow errors."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class NotFoundError(ApprovalError):
    """Document, configuration or template does not exist."""


class InvalidStateError(ApprovalError):
    """Document state does not allow the operation."""


class ForbiddenError(ApprovalError):
    """Actor is not eligible for the operation."""


class ConflictError(ApprovalError):
    """A concurrent change won the race for the same document."""
