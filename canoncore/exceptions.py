"""Custom exception hierarchy for CanonCore."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses and operation results."""

    # Hierarchy errors
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    INVALID_SCOPE = "INVALID_SCOPE"
    CIRCULAR_HIERARCHY = "CIRCULAR_HIERARCHY"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    ACCESS_DENIED = "ACCESS_DENIED"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class CanonException(Exception):
    """
    Base exception for all CanonCore errors.

    Carries a human-readable message, a machine-readable error code,
    the HTTP status code to answer with, and optional details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for a JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


class NodeNotFoundError(CanonException):
    """No universe, collection, group or content item has this id."""

    def __init__(self, node_id: str, kind: str = "node"):
        super().__init__(
            f"{kind.capitalize()} not found: {node_id}",
            ErrorCode.NODE_NOT_FOUND,
            status_code=404,
            details={"node_id": node_id, "kind": kind}
        )


class ValidationError(CanonException):
    """Validation failed for user input (malformed id, bad order, invalid scope)."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            error_code,
            status_code=400,
            details=details
        )


class CircularHierarchyError(CanonException):
    """Placing the node under the requested parent would create a cycle."""

    def __init__(self, node_id: str, parent_id: str):
        super().__init__(
            f"Cannot move {node_id} under its own descendant {parent_id}",
            ErrorCode.CIRCULAR_HIERARCHY,
            status_code=400,
            details={"node_id": node_id, "parent_id": parent_id}
        )


class AuthenticationError(CanonException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class AuthorizationError(CanonException):
    """Actor does not own the universe the operation targets."""

    def __init__(self, message: str = "Not found or access denied", scope_id: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.ACCESS_DENIED,
            status_code=403,
            details={"scope_id": scope_id} if scope_id else {},
        )


class DatabaseError(CanonException):
    """Database operation failed."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = str(original_error)

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
