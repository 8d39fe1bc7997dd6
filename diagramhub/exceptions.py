"""Error types for diagramhub.

Every error the service layer raises is a ``DiagramHubError``. Subclasses
fix the error code and HTTP status as class attributes, so the API
boundary renders all of them through one handler.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Values of the ``error`` field in error responses."""

    WORKSPACE_NOT_FOUND = "WORKSPACE_NOT_FOUND"
    DOCUMENT_NOT_FOUND = "DOCUMENT_NOT_FOUND"
    VERSION_NOT_FOUND = "VERSION_NOT_FOUND"
    SHARE_NOT_FOUND = "SHARE_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    FILE_NOT_FOUND = "FILE_NOT_FOUND"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"
    CONFLICT = "CONFLICT"

    # Storage transfers
    CANCELLED = "CANCELLED"
    UNAVAILABLE = "UNAVAILABLE"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class DiagramHubError(Exception):
    """Base error. Rendered as ``{"error", "message", "details"}``."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error_code.value, "message": self.message, "details": self.details}


class NotFoundError(DiagramHubError):
    """Resource is absent or soft-deleted."""

    status_code = 404
    resource = "Resource"

    def __init__(self, resource_id: Any):
        super().__init__(f"{self.resource} not found: {resource_id}", {"id": resource_id})


class WorkspaceNotFoundError(NotFoundError):
    error_code = ErrorCode.WORKSPACE_NOT_FOUND
    resource = "Workspace"


class DocumentNotFoundError(NotFoundError):
    error_code = ErrorCode.DOCUMENT_NOT_FOUND
    resource = "Document"


class VersionNotFoundError(NotFoundError):
    error_code = ErrorCode.VERSION_NOT_FOUND
    resource = "Version"


class SharedAccessNotFoundError(NotFoundError):
    error_code = ErrorCode.SHARE_NOT_FOUND
    resource = "Shared access"


class UserNotFoundError(NotFoundError):
    error_code = ErrorCode.USER_NOT_FOUND
    resource = "User"


class ValidationError(DiagramHubError):
    """Bad user input; ``field`` names the offending input when known."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else None)


class AuthenticationError(DiagramHubError):
    error_code = ErrorCode.UNAUTHORIZED
    status_code = 401

    def __init__(self, message: str = "Invalid or missing authentication"):
        super().__init__(message)


class ForbiddenError(DiagramHubError):
    """The caller is known but the action is not allowed."""

    error_code = ErrorCode.FORBIDDEN
    status_code = 403

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message)


class ConflictError(DiagramHubError):
    """Uniqueness violation or a concurrent write that lost the race."""

    error_code = ErrorCode.CONFLICT
    status_code = 409


class UnavailableError(DiagramHubError):
    """Database or storage transport failed."""

    error_code = ErrorCode.UNAVAILABLE
    status_code = 503

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        # Driver messages can carry hosts and credentials; they are logged, never sent.
        super().__init__(message)
        self.original_error = original_error


class StorageNotFoundError(DiagramHubError):
    """No blob stored under the requested key."""

    error_code = ErrorCode.FILE_NOT_FOUND
    status_code = 404

    def __init__(self, key: str):
        super().__init__(f"File not found: {key}", {"key": key})


class StorageCancelledError(DiagramHubError):
    """Transfer aborted by deadline or caller cancellation; nothing was stored."""

    error_code = ErrorCode.CANCELLED
    status_code = 408

    def __init__(self, key: str, reason: str = "cancelled"):
        super().__init__(f"Upload {reason}: {key}", {"key": key, "reason": reason})


class StorageUnavailableError(UnavailableError):
    """Storage backend could not be reached or failed mid-transfer."""
