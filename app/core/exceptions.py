# app/core/exceptions.py
"""Custom exceptions for the SchoolHub application."""
from typing import Any, Dict, Optional


class SchoolHubException(Exception):
    """Base exception for SchoolHub application."""
    status_code = 500

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.code = code
        self.extra = extra or {}
        super().__init__(self.message)


class BadRequestError(SchoolHubException):
    status_code = 400


class AuthenticationError(SchoolHubException):
    status_code = 401

    def __init__(self, message: str = "Authentication required", code: Optional[str] = None):
        super().__init__(message, code=code)


class ForbiddenError(SchoolHubException):
    status_code = 403

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class NotFoundError(SchoolHubException):
    """Resource not found exception"""
    status_code = 404

    def __init__(self, resource: str, extra: Optional[Dict[str, Any]] = None):
        super().__init__(f"{resource} not found", extra=extra)


class ConflictError(SchoolHubException):
    status_code = 409


class MissingOrgError(SchoolHubException):
    """Raised when an org-scoped route is called by a user without an org."""
    status_code = 400

    def __init__(self):
        super().__init__("Organization not found for user", code="MISSING_ORG_ID")


class DatabaseError(SchoolHubException):
    status_code = 500
