"""
Domain errors raised by the service layer.
Each carries an error code and the HTTP status the API renders it with.
"""
from typing import Any, Optional


class WalkinError(Exception):
    """Base exception for service errors"""
    error_code = "WALKIN_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(WalkinError):
    """Input rejected by a business rule"""
    error_code = "VALIDATION_ERROR"
    status_code = 422


class NotFoundError(WalkinError):
    """Resource not found"""
    error_code = "NOT_FOUND"
    status_code = 404


class ConflictError(WalkinError):
    """Operation conflicts with current state"""
    error_code = "CONFLICT"
    status_code = 409


class AlreadyCheckedInError(ConflictError):
    error_code = "ALREADY_CHECKED_IN"


class AlreadyCheckedOutError(ConflictError):
    error_code = "ALREADY_CHECKED_OUT"


class NoCheckInError(ConflictError):
    error_code = "NO_CHECK_IN"


class DuplicatePendingRequestError(ConflictError):
    error_code = "DUPLICATE_PENDING_REQUEST"


class RequestAlreadyReviewedError(ConflictError):
    error_code = "ALREADY_REVIEWED"


class EmailAlreadyInUseError(ConflictError):
    error_code = "EMAIL_ALREADY_IN_USE"


class AuthenticationError(WalkinError):
    """Missing or invalid credentials"""
    error_code = "UNAUTHENTICATED"
    status_code = 401


class InvalidCredentialsError(AuthenticationError):
    error_code = "INVALID_CREDENTIALS"


class PermissionDeniedError(WalkinError):
    """Authenticated but not allowed"""
    error_code = "PERMISSION_DENIED"
    status_code = 403


class GeofenceError(WalkinError):
    """GPS fix rejected for check-in or check-out"""
    status_code = 422

    def __init__(self, message: str, error_type: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message, details)
        self.error_code = error_type
