"""
Error taxonomy shared by services and routers.

Services raise these; the API layer maps them to HTTP responses through the
exception handler registered in ``walkthrough_api.application``:

    Forbidden          403  role or ownership check failed
    InvalidTransition  409  review status precondition violated
    ValidationError    400  missing or malformed required field
    NotFound           404  no such walkthrough, user, teacher, ...
    UpstreamFailure    502  email or AI provider call failed
    AuthenticationError 401 missing or invalid credentials
    Conflict           409  uniqueness violation (username, email, name)
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class WalkthroughAPIError(Exception):
    """Base exception for all domain errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class AuthenticationError(WalkthroughAPIError):
    status_code = 401

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message, code="AUTH_FAILED")


class Forbidden(WalkthroughAPIError):
    status_code = 403

    def __init__(self, message: str = "Access denied", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="FORBIDDEN", details=details)


class NotFound(WalkthroughAPIError):
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        details = {"resource": resource}
        if resource_id is not None:
            details["id"] = resource_id
        super().__init__(message, code="NOT_FOUND", details=details)


class ValidationError(WalkthroughAPIError):
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message,
            code="VALIDATION_ERROR",
            details={"field": field} if field else None,
        )


class InvalidTransition(WalkthroughAPIError):
    status_code = 409

    def __init__(self, walkthrough_id: str, action: str, expected: str, actual: Optional[str] = None):
        message = f"Cannot {action} review: status must be '{expected}'"
        if actual is not None:
            message += f" (currently '{actual}')"
        super().__init__(
            message,
            code="INVALID_TRANSITION",
            details={"walkthrough_id": walkthrough_id, "expected": expected, "actual": actual},
        )


class Conflict(WalkthroughAPIError):
    status_code = 409

    def __init__(self, message: str):
        super().__init__(message, code="CONFLICT")


class UpstreamFailure(WalkthroughAPIError):
    status_code = 502

    def __init__(self, service: str, message: str):
        super().__init__(
            f"{service} call failed: {message}",
            code="UPSTREAM_FAILURE",
            details={"service": service},
        )
        self.service = service
