"""
Cadence - Custom Exceptions.

Centralized exception handling with standardized error responses.
"""

from typing import Any
from uuid import UUID


class CadenceException(Exception):
    """Base exception for Cadence application."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        request_id: UUID | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        super().__init__(message)


class UnauthorizedException(CadenceException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            code="UNAUTHORIZED",
            message=message,
            status_code=401,
        )


class ForbiddenException(CadenceException):
    """Raised when the actor lacks the role required on a tag."""

    def __init__(self, message: str = "Insufficient permissions", required_role: str | None = None):
        details = {"required_role": required_role} if required_role else None
        super().__init__(
            code="FORBIDDEN",
            message=message,
            status_code=403,
            details=details,
        )


class NotFoundException(CadenceException):
    """Raised when a resource is not found."""

    def __init__(self, resource_type: str, resource_id: str | UUID):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource_type} not found: {resource_id}",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class ConflictException(CadenceException):
    """Raised when a write would contradict existing state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None, code: str = "CONFLICT"):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
        )


class DuplicateAssignmentException(ConflictException):
    """Raised when adding a role for a (tag, user) pair that already holds one."""

    def __init__(self, tag: str, user_id: str, current_role: str | None = None):
        details: dict[str, Any] = {"tag": tag, "user_id": user_id}
        if current_role:
            details["current_role"] = current_role
        super().__init__(
            f"User {user_id} already has a role on tag '{tag}'",
            details=details,
            code="DUPLICATE_ASSIGNMENT",
        )


class ValidationException(CadenceException):
    """Raised for validation errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            status_code=400,
            details={"errors": errors} if errors else None,
        )


class FeatureDisabledException(CadenceException):
    """Raised when a feature flag is disabled."""

    def __init__(self, feature_name: str):
        super().__init__(
            code="FEATURE_DISABLED",
            message=f"Feature '{feature_name}' is currently disabled",
            status_code=503,
            details={"feature": feature_name},
        )


class PersistenceException(CadenceException):
    """Raised when the store fails. The message stays generic; the cause is logged."""

    def __init__(self, operation: str):
        super().__init__(
            code="PERSISTENCE_ERROR",
            message="Storage operation failed",
            status_code=500,
            details={"operation": operation},
        )
