"""Custom exceptions for Flippy++"""


class FlippyError(Exception):
    """Base exception for Flippy++"""

    status_code = 500

    def __init__(self, message: str = "Server error."):
        self.message = message
        super().__init__(message)


class ValidationError(FlippyError):
    """Malformed or missing input"""
    status_code = 400


class AuthenticationError(FlippyError):
    """No session, or credentials did not match"""
    status_code = 401


class AuthorizationError(FlippyError):
    """Admin re-authentication failed"""
    status_code = 401


class ForbiddenError(AuthorizationError):
    """Authenticated, but the role does not allow the action"""
    status_code = 403


class NotFoundError(FlippyError):
    """Entity does not exist or is not owned by the caller"""
    status_code = 404


class ConflictError(FlippyError):
    """Unique constraint violated (e.g. duplicate email)"""
    status_code = 409


class QuotaExhaustedError(FlippyError):
    """User has no remaining API calls"""
    status_code = 403


class StorageError(FlippyError):
    """Database operation failed"""
    status_code = 500


class UpstreamError(FlippyError):
    """External AI service failed or replied with garbage"""
    status_code = 502


class ServiceUnavailableError(FlippyError):
    """External AI service is not configured"""
    status_code = 503


class ConfigError(FlippyError):
    """Configuration error"""
    pass
