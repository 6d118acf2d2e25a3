"""Custom exceptions for the EcoLimpio backend"""

from typing import Any, Dict, Optional


class EcoLimpioError(Exception):
    """Base exception for EcoLimpio"""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any):
        self.message = message
        self.extra: Dict[str, Any] = extra
        super().__init__(message)


class ValidationError(EcoLimpioError):
    """Bad input shape, format or length"""
    status_code = 400


class AuthenticationError(EcoLimpioError):
    """Missing, invalid or expired session or credentials"""
    status_code = 401


class AuthorizationError(EcoLimpioError):
    """Authenticated but the role is not allowed"""
    status_code = 403


class NotFoundError(EcoLimpioError):
    """Record does not exist"""
    status_code = 404


class AccountLockedError(EcoLimpioError):
    """Identity is temporarily locked after repeated failures"""

    def __init__(self, message: str, lockout_minutes: int, status_code: int = 423):
        self.lockout_minutes = lockout_minutes
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(EcoLimpioError):
    """Rate limit exceeded"""
    status_code = 429

    def __init__(self, message: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(message)


class UpstreamServiceError(EcoLimpioError):
    """CAPTCHA or SMS provider failure. Callers degrade instead of surfacing it."""
    status_code = 502


class SessionHashCollisionError(EcoLimpioError):
    """Could not mint a unique access hash within the retry budget"""
    status_code = 500


class ConfigError(EcoLimpioError):
    """Configuration error"""
    pass


class DuplicateError(ValidationError):
    """A unique constraint rejected the write"""
    pass
