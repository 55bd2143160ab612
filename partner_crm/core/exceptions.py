"""Custom exception classes for the partner CRM."""

from typing import Optional

from fastapi import status


class CRMError(Exception):
    """Base exception for the CRM. Carries the HTTP status and error code."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: Optional[str] = None

    def __init__(
        self,
        message: str = "An error occurred",
        code: Optional[str] = None,
        details: Optional[str] = None,
    ):
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        super().__init__(self.message)


class ValidationError(CRMError):
    """Raised when input validation fails."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class AuthenticationError(CRMError):
    """Raised when authentication fails."""
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_TOKEN"


class AuthorizationError(CRMError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"


class ResourceNotFoundError(CRMError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ResourceConflictError(CRMError):
    """Raised when a resource already exists."""
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class ServiceUnavailableError(CRMError):
    """Raised when a required backing service is down or unconfigured."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "SERVICE_UNAVAILABLE"


# Exception shortcuts
def not_found(detail: str = "Recurso não encontrado") -> ResourceNotFoundError:
    return ResourceNotFoundError(detail)
