"""
Custom Exception Classes for the Salary Ledger service
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class BaseAPIException(HTTPException):
    """Base exception class for API errors with enhanced error details."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        error_data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.error_data = error_data or {}


# Authentication & Authorization Exceptions
class AuthenticationError(BaseAPIException):
    """Authentication failed."""

    def __init__(self, detail: str = "Authentication failed", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="AUTH_FAILED",
            error_data=error_data,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InvalidTokenError(BaseAPIException):
    """Invalid or expired token."""

    def __init__(self, detail: str = "Invalid or expired token", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="INVALID_TOKEN",
            error_data=error_data,
            headers={"WWW-Authenticate": "Bearer"}
        )


class InsufficientPermissionsError(BaseAPIException):
    """User doesn't have required permissions."""

    def __init__(self, detail: str = "Insufficient permissions", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="INSUFFICIENT_PERMISSIONS",
            error_data=error_data
        )


# Resource Exceptions
class ResourceNotFoundError(BaseAPIException):
    """Requested resource not found."""

    def __init__(self, resource_type: str, resource_id: Any = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} not found"
        if resource_id is not None:
            detail += f" (ID: {resource_id})"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="RESOURCE_NOT_FOUND",
            error_data={"resource_type": resource_type, "resource_id": resource_id, **(error_data or {})}
        )


class ResourceAlreadyExistsError(BaseAPIException):
    """Resource already exists."""

    def __init__(self, resource_type: str, field: str = None, value: str = None, error_data: Optional[Dict[str, Any]] = None):
        detail = f"{resource_type} already exists"
        if field and value:
            detail += f" with {field}: {value}"

        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="RESOURCE_ALREADY_EXISTS",
            error_data={"resource_type": resource_type, "field": field, "value": value, **(error_data or {})}
        )


# Validation Exceptions
class ValidationError(BaseAPIException):
    """Data validation failed."""

    def __init__(self, detail: str, field: str = None, value: Any = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code="VALIDATION_ERROR",
            error_data={"field": field, "value": value, **(error_data or {})}
        )


# Database Exceptions
class DatabaseError(BaseAPIException):
    """Database operation failed."""

    def __init__(self, detail: str = "Database operation failed", operation: str = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="DATABASE_ERROR",
            error_data={"operation": operation, **(error_data or {})}
        )


# Ledger Exceptions
class InvalidUserError(BaseAPIException):
    """Caller-supplied user identity is missing or malformed."""

    def __init__(self, value: Any = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid user ID. Please log in again.",
            error_code="INVALID_USER",
            error_data={"value": value if value is None else str(value), **(error_data or {})}
        )


class UnauthorizedSettlementError(BaseAPIException):
    """Requester is not allowed to settle salaries."""

    def __init__(self, role: str = None, employee_id: int = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only employers are allowed to mark payments as done",
            error_code="UNAUTHORIZED_SETTLEMENT",
            error_data={"role": role, "employee_id": employee_id, **(error_data or {})}
        )


class NoUnpaidSalaryError(BaseAPIException):
    """Employee has no unpaid records of any kind."""

    def __init__(self, employee_id: int, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee has no unpaid salaries",
            error_code="NO_UNPAID_SALARY",
            error_data={"employee_id": employee_id, **(error_data or {})}
        )


class NothingToRequestError(BaseAPIException):
    """Payment requested while nothing is owed."""

    def __init__(self, user_id: int, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No unpaid salaries to request",
            error_code="NOTHING_TO_REQUEST",
            error_data={"user_id": user_id, **(error_data or {})}
        )


class SettlementFailedError(BaseAPIException):
    """Settlement transaction could not complete and was rolled back."""

    def __init__(self, employee_id: int, detail: str = "Error processing payment", error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            error_code="SETTLEMENT_FAILED",
            error_data={"employee_id": employee_id, **(error_data or {})}
        )


class ImmutableRecordError(BaseAPIException):
    """Attempt to modify or delete an append-only record."""

    def __init__(self, entity_type: str, entity_id: Any = None, operation: str = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"{entity_type} records are immutable and cannot be modified",
            error_code="IMMUTABLE_RECORD",
            error_data={"entity_type": entity_type, "entity_id": entity_id, "operation": operation}
        )


class NotificationError(Exception):
    """Notification delivery failed. Logged, never surfaced to API callers."""

    def __init__(self, subject: str, reason: str):
        super().__init__(f"Notification '{subject}' failed: {reason}")
        self.subject = subject
        self.reason = reason


# Configuration Exceptions
class ConfigurationError(BaseAPIException):
    """Configuration error."""

    def __init__(self, detail: str = "Configuration error", config_key: str = None, error_data: Optional[Dict[str, Any]] = None):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="CONFIGURATION_ERROR",
            error_data={"config_key": config_key, **(error_data or {})}
        )
