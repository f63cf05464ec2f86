"""
Result Models

DESIGN DECISION: Service operations never raise across their boundary.
They return a `ServiceResult` describing either the payload or a typed
failure. The HTTP layer is the only place that turns an `ErrorKind` into a
status code.
"""

from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from expense_ledger.models.ledger import UserSummary


T = TypeVar("T")


class ErrorKind(str, Enum):
    """Failure taxonomy shared by every service."""
    VALIDATION = "validation_error"
    DUPLICATE_EMAIL = "duplicate_email"
    INVALID_CREDENTIALS = "invalid_credentials"
    INVALID_KIND = "invalid_kind"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal_failure"


class ValidationIssue(BaseModel):
    """A single input problem found by a validator."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_short', 'mismatch')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


class ServiceResult(BaseModel, Generic[T]):
    """
    Outcome of a service call.

    `warnings` never turn a success into a failure; they flag degraded
    follow-up steps such as a stale cached balance.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[ErrorKind] = None
    message: str = ""
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "") -> "ServiceResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(
        cls,
        error: ErrorKind,
        message: str,
        issues: Optional[list[ValidationIssue]] = None,
    ) -> "ServiceResult[T]":
        return cls(success=False, error=error, message=message, issues=issues or [])


class TokenClaims(BaseModel):
    """Identity carried inside a bearer token."""

    user_id: int
    email: str
    full_name: str
    jti: str
    issued_at: datetime
    expires_at: datetime


class LoginPayload(BaseModel):
    """Data returned by a successful login."""

    token: str
    expires_at: datetime
    user: UserSummary
