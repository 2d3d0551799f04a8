"""
Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status and machine-readable code it maps to at the
API boundary, plus an optional context dict that is logged but never returned
to the caller.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class AuthServiceError(Exception):
    status_code = 500
    error = "INTERNAL_ERROR"
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    status_code = 400
    error = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthenticationError(AuthServiceError):
    status_code = 401
    error = "UNAUTHORIZED"
    default_message = "Authentication failed"


class InvalidCredentials(AuthenticationError):
    default_message = "Invalid email or password"


class InvalidRefreshToken(AuthenticationError):
    default_message = "Invalid refresh token"


class InvalidSignature(AuthenticationError):
    default_message = "Invalid token"


class TokenExpired(AuthenticationError):
    default_message = "Token expired"


class TokenRevoked(AuthenticationError):
    default_message = "Token has been revoked"


class UpstreamIdentityError(AuthenticationError):
    default_message = "Invalid Google token"


class PermissionDenied(AuthServiceError):
    status_code = 403
    error = "FORBIDDEN"
    default_message = "Access denied: insufficient permissions"


class NotFoundError(AuthServiceError):
    status_code = 404
    error = "NOT_FOUND"
    default_message = "Resource not found"


class TokenNotFound(NotFoundError):
    default_message = "Refresh token not found"


class ConflictError(AuthServiceError):
    status_code = 409
    error = "CONFLICT"
    default_message = "Conflict"


class RateLimited(AuthServiceError):
    status_code = 429
    error = "RATE_LIMITED"
    default_message = "Too many requests, please try again later"

    def __init__(self, message: Optional[str] = None, retry_after: int = 0,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message, context)
        self.retry_after = retry_after
