# app/core/errors.py

"""
Error taxonomy shared by every core operation.

Each error carries an HTTP status and a stable ``code`` so that clients can
branch on the reason (prompt for a password, show "expired", send to login)
instead of parsing messages.
"""

from typing import Any, Dict, Optional


class VaultError(Exception):
    status_code = 500
    code = "storage_failure"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body = {"error": self.message, "code": self.code}
        body.update(self.extra)
        return body


class ValidationError(VaultError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid request"


class ConflictError(VaultError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"


class AuthError(VaultError):
    status_code = 401
    code = "auth_required"
    default_message = "Authentication required"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("authRequired", True)
        super().__init__(message, **extra)


class NotFoundError(VaultError):
    status_code = 404
    code = "not_found"
    default_message = "Content not found or expired"


class ExpiredError(VaultError):
    status_code = 410
    code = "expired"
    default_message = "Content has expired"


class ForbiddenError(VaultError):
    status_code = 403
    code = "forbidden"
    default_message = "Access denied"


class PasswordRequiredError(VaultError):
    status_code = 401
    code = "password_required"
    default_message = "Password required"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        extra.setdefault("requiresPassword", True)
        super().__init__(message, **extra)


class StorageFailure(VaultError):
    status_code = 500
    code = "storage_failure"
    default_message = "Storage failure"
