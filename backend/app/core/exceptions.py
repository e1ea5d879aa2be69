# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the session credit ledger.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
Each carries a stable ``code`` so clients can tell client errors
apart from operational incidents.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when an argument fails business validation (InvalidArgument)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when the request conflicts with the current state of the ledger."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenException(DomainException):
    """Raised when the caller lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class InsufficientCreditException(ConflictException):
    """Raised when no usable credit grant exists or a grant is already exhausted."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "No session credits available. Please purchase credits first.",
            code="INSUFFICIENT_CREDIT",
            details=details or {},
        )


class InvalidStateException(ConflictException):
    """Raised when an entity is not in a state that allows the operation."""

    def __init__(self, message: str, *, current_state: Optional[str] = None):
        super().__init__(
            message=message,
            code="INVALID_STATE",
            details={"current_state": current_state} if current_state else {},
        )


class PolicyUnavailableException(ServiceException):
    """Raised when no cancellation policy can be resolved for an evaluation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "No active cancellation policy is configured",
            code="POLICY_UNAVAILABLE",
            details=details or {},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
