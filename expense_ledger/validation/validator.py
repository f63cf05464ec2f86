"""
Input Validation

The HTTP layer already validates request bodies with pydantic, but the
services are callable directly, so they re-check every constraint here.

IMPORTANT: Validation NEVER silently fixes issues beyond trimming
surrounding whitespace. Anything else is reported back to the caller as a
list of ValidationIssue objects.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from email_validator import EmailNotValidError, validate_email

from expense_ledger.models.results import ValidationIssue


EMAIL_MAX_LENGTH = 255
FULL_NAME_MIN_LENGTH = 3
FULL_NAME_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 3
DESCRIPTION_MAX_LENGTH = 255

# Numeric(18, 2) leaves 16 integer digits
MAX_AMOUNT = Decimal("9999999999999999.99")


class RegistrationValidator:
    """Checks the fields of a registration request."""

    def validate(
        self,
        email: Optional[str],
        full_name: Optional[str],
        password: Optional[str],
        confirm_password: Optional[str],
    ) -> list[ValidationIssue]:
        """Returns every issue found; an empty list means the input is valid."""
        issues = []
        issues.extend(self._validate_email(email))
        issues.extend(self._validate_full_name(full_name))
        issues.extend(self._validate_password(password, confirm_password))
        return issues

    def _validate_email(self, email: Optional[str]) -> list[ValidationIssue]:
        if not email:
            return [ValidationIssue(
                field="email",
                issue_type="missing",
                message="Email is required",
            )]

        if len(email) > EMAIL_MAX_LENGTH:
            return [ValidationIssue(
                field="email",
                issue_type="too_long",
                message=f"Email must be at most {EMAIL_MAX_LENGTH} characters",
            )]

        try:
            # Syntax only; the address is stored exactly as given
            validate_email(email, check_deliverability=False)
        except EmailNotValidError as e:
            return [ValidationIssue(
                field="email",
                issue_type="invalid_format",
                message=f"Email is not valid: {e}",
            )]

        return []

    def _validate_full_name(self, full_name: Optional[str]) -> list[ValidationIssue]:
        name = (full_name or "").strip()
        if not name:
            return [ValidationIssue(
                field="full_name",
                issue_type="missing",
                message="Full name is required",
            )]
        if not FULL_NAME_MIN_LENGTH <= len(name) <= FULL_NAME_MAX_LENGTH:
            return [ValidationIssue(
                field="full_name",
                issue_type="invalid_length",
                message=(
                    f"Full name must be between {FULL_NAME_MIN_LENGTH} "
                    f"and {FULL_NAME_MAX_LENGTH} characters"
                ),
            )]
        return []

    def _validate_password(
        self,
        password: Optional[str],
        confirm_password: Optional[str],
    ) -> list[ValidationIssue]:
        issues = []

        if not password:
            issues.append(ValidationIssue(
                field="password",
                issue_type="missing",
                message="Password is required",
            ))
        elif not PASSWORD_MIN_LENGTH <= len(password) <= PASSWORD_MAX_LENGTH:
            issues.append(ValidationIssue(
                field="password",
                issue_type="invalid_length",
                message=(
                    f"Password must be between {PASSWORD_MIN_LENGTH} "
                    f"and {PASSWORD_MAX_LENGTH} characters"
                ),
            ))

        if not confirm_password:
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="missing",
                message="Password confirmation is required",
            ))
        elif password != confirm_password:
            issues.append(ValidationIssue(
                field="confirm_password",
                issue_type="mismatch",
                message="Passwords do not match",
            ))

        return issues


class TransactionValidator:
    """
    Checks and normalizes the mutable fields of a ledger entry.

    The kind is checked separately by the service because an unknown kind
    has its own error (INVALID_KIND) rather than a generic validation error.
    """

    def validate(
        self,
        description: Optional[str],
        amount: Any,
        transaction_date: Any,
    ) -> list[ValidationIssue]:
        issues = []
        issues.extend(self._validate_description(description))
        issues.extend(self._validate_amount(amount))
        issues.extend(self._validate_date(transaction_date))
        return issues

    @staticmethod
    def normalize_description(description: str) -> str:
        return description.strip()

    @staticmethod
    def normalize_amount(amount: Any) -> Decimal:
        """Exact decimal with two fractional digits. Call only after validate()."""
        return Decimal(str(amount)).quantize(Decimal("0.01"))

    @staticmethod
    def normalize_date(value: date) -> datetime:
        """
        Convert to an aware UTC datetime.

        Naive datetimes are taken to be UTC already; a plain date becomes
        midnight UTC of that day.
        """
        if isinstance(value, datetime):
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc)
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    def _validate_description(self, description: Optional[str]) -> list[ValidationIssue]:
        text = (description or "").strip()
        if not text:
            return [ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
            )]
        if not DESCRIPTION_MIN_LENGTH <= len(text) <= DESCRIPTION_MAX_LENGTH:
            return [ValidationIssue(
                field="description",
                issue_type="invalid_length",
                message=(
                    f"Description must be between {DESCRIPTION_MIN_LENGTH} "
                    f"and {DESCRIPTION_MAX_LENGTH} characters"
                ),
            )]
        return []

    def _validate_amount(self, amount: Any) -> list[ValidationIssue]:
        if amount is None:
            return [ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
            )]

        if isinstance(amount, bool):
            value = None
        else:
            try:
                value = Decimal(str(amount))
            except (InvalidOperation, ValueError):
                value = None

        if value is None or not value.is_finite():
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_format",
                message="Amount must be a number",
            )]

        if value <= 0:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            )]

        if value.normalize().as_tuple().exponent < -2:
            return [ValidationIssue(
                field="amount",
                issue_type="invalid_precision",
                message="Amount can have at most two decimal places",
            )]

        if value > MAX_AMOUNT:
            return [ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Amount is too large",
            )]

        return []

    def _validate_date(self, transaction_date: Any) -> list[ValidationIssue]:
        if transaction_date is None:
            return [ValidationIssue(
                field="transaction_date",
                issue_type="missing",
                message="Transaction date is required",
            )]
        if not isinstance(transaction_date, date):
            return [ValidationIssue(
                field="transaction_date",
                issue_type="invalid_type",
                message="Transaction date must be a date or datetime",
            )]
        return []
