"""Tests for registration and transaction input validation."""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from expense_ledger.validation import RegistrationValidator, TransactionValidator


class TestRegistrationValidator:
    """Tests for registration field checks."""

    def setup_method(self):
        self.validator = RegistrationValidator()

    def issues_for(self, **overrides):
        data = {
            "email": "alice@fastmail.com",
            "full_name": "Alice Andrews",
            "password": "s3cret-pass",
            "confirm_password": "s3cret-pass",
        }
        data.update(overrides)
        return self.validator.validate(**data)

    def test_valid_registration(self):
        assert self.issues_for() == []

    def test_invalid_email_format(self):
        issues = self.issues_for(email="not-an-email")
        assert [(i.field, i.issue_type) for i in issues] == [("email", "invalid_format")]

    def test_missing_email(self):
        issues = self.issues_for(email="")
        assert issues[0].field == "email"
        assert issues[0].issue_type == "missing"

    def test_email_too_long(self):
        email = "a" * 250 + "@fastmail.com"
        issues = self.issues_for(email=email)
        assert issues[0].issue_type == "too_long"

    @pytest.mark.parametrize("name", ["Al", "x" * 256])
    def test_full_name_length(self, name):
        issues = self.issues_for(full_name=name)
        assert [(i.field, i.issue_type) for i in issues] == [("full_name", "invalid_length")]

    def test_full_name_is_measured_after_trimming(self):
        issues = self.issues_for(full_name="  Al  ")
        assert issues[0].issue_type == "invalid_length"

    @pytest.mark.parametrize("password", ["12345", "x" * 101])
    def test_password_length(self, password):
        issues = self.issues_for(password=password, confirm_password=password)
        assert [(i.field, i.issue_type) for i in issues] == [("password", "invalid_length")]

    def test_password_boundaries_accepted(self):
        assert self.issues_for(password="123456", confirm_password="123456") == []
        long_password = "x" * 100
        assert self.issues_for(password=long_password, confirm_password=long_password) == []

    def test_password_mismatch(self):
        issues = self.issues_for(confirm_password="different-pass")
        assert [(i.field, i.issue_type) for i in issues] == [("confirm_password", "mismatch")]

    def test_reports_every_problem(self):
        """All issues are returned together, not just the first."""
        issues = self.validator.validate("bad", "", "", "")
        fields = {i.field for i in issues}
        assert fields == {"email", "full_name", "password", "confirm_password"}


class TestTransactionValidator:
    """Tests for ledger entry checks and normalization."""

    def setup_method(self):
        self.validator = TransactionValidator()
        self.today = date(2024, 3, 1)

    def test_valid_entry(self):
        assert self.validator.validate("Salary", Decimal("1000.00"), self.today) == []

    @pytest.mark.parametrize("amount", [0, Decimal("-5"), "-0.01"])
    def test_amount_must_be_positive(self, amount):
        issues = self.validator.validate("Salary", amount, self.today)
        assert issues[0].issue_type == "invalid_value"

    def test_amount_precision(self):
        """More than two fractional digits is rejected, not rounded."""
        issues = self.validator.validate("Coffee", Decimal("3.005"), self.today)
        assert issues[0].issue_type == "invalid_precision"

    def test_trailing_zeros_do_not_count_as_precision(self):
        assert self.validator.validate("Coffee", Decimal("3.5000"), self.today) == []

    @pytest.mark.parametrize("amount", ["abc", float("nan"), float("inf"), True])
    def test_amount_must_be_a_number(self, amount):
        issues = self.validator.validate("Coffee", amount, self.today)
        assert issues[0].issue_type == "invalid_format"

    def test_amount_too_large(self):
        issues = self.validator.validate("Lottery", Decimal("10000000000000000.00"), self.today)
        assert issues[0].issue_type == "too_large"

    @pytest.mark.parametrize("description", ["ab", "  ab  ", "x" * 256])
    def test_description_length(self, description):
        issues = self.validator.validate(description, Decimal("1.00"), self.today)
        assert [(i.field, i.issue_type) for i in issues] == [("description", "invalid_length")]

    def test_missing_date(self):
        issues = self.validator.validate("Salary", Decimal("1.00"), None)
        assert issues[0].field == "transaction_date"

    def test_date_must_be_a_date(self):
        issues = self.validator.validate("Salary", Decimal("1.00"), "2024-03-01")
        assert issues[0].issue_type == "invalid_type"

    def test_normalize_amount(self):
        assert self.validator.normalize_amount(100) == Decimal("100.00")
        assert str(self.validator.normalize_amount("12.5")) == "12.50"

    def test_normalize_description(self):
        assert self.validator.normalize_description("  Rent  ") == "Rent"

    def test_normalize_plain_date(self):
        assert self.validator.normalize_date(self.today) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_normalize_naive_datetime_is_taken_as_utc(self):
        naive = datetime(2024, 3, 1, 8, 30)
        assert self.validator.normalize_date(naive) == datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)

    def test_normalize_aware_datetime_converts_to_utc(self):
        plus_two = timezone(timedelta(hours=2))
        local = datetime(2024, 3, 1, 10, 0, tzinfo=plus_two)
        normalized = self.validator.normalize_date(local)
        assert normalized.tzinfo == timezone.utc
        assert normalized.hour == 8
